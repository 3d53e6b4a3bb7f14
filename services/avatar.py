"""Deterministic initials avatars."""

from __future__ import annotations

import base64
from typing import NamedTuple
from xml.sax.saxutils import escape

PALETTE = (
    "#8b5cf6",
    "#3b82f6",
    "#10b981",
    "#f59e0b",
    "#ef4444",
    "#6366f1",
    "#ec4899",
    "#14b8a6",
)


class Avatar(NamedTuple):
    initials: str
    color: str
    data_url: str


def _initials(name: str) -> str:
    tokens = name.split()
    if len(tokens) >= 2:
        return (tokens[0][0] + tokens[-1][0]).upper()
    return name[:2].upper()


def _name_hash(name: str) -> int:
    """32-bit signed rolling hash: h = c + (h << 5) - h."""

    value = 0
    for char in name:
        value = (ord(char) + (value << 5) - value) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def _color(name: str) -> str:
    return PALETTE[abs(_name_hash(name)) % len(PALETTE)]


def derive_avatar(name: str | None, size: int = 200) -> Avatar | None:
    """Return the initials, color and SVG data URL for a display name.

    The result depends only on ``name`` and ``size``; blank names yield None.
    """

    name = (name or "").strip()
    if not name:
        return None

    initials = _initials(name)
    color = _color(name)
    svg = (
        f'<svg width="{size}" height="{size}" xmlns="http://www.w3.org/2000/svg">'
        f'<rect width="{size}" height="{size}" fill="{color}"/>'
        f'<text x="50%" y="50%" text-anchor="middle" dy=".35em" fill="white" '
        f'font-size="{size * 0.4:g}" font-weight="600" '
        f'font-family="system-ui, -apple-system, sans-serif">{escape(initials)}</text>'
        "</svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return Avatar(initials, color, f"data:image/svg+xml;base64,{encoded}")
