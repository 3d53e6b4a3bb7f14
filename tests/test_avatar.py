"""Tests for deterministic initials avatars."""

import base64

import pytest

from services.avatar import PALETTE, _name_hash, derive_avatar


def _svg(avatar) -> str:
    encoded = avatar.data_url.split(",", 1)[1]
    return base64.b64decode(encoded).decode("utf-8")


@pytest.mark.parametrize(
    "name, initials",
    [
        ("Ada Lovelace", "AL"),
        ("jean claude van damme", "JD"),
        ("Cher", "CH"),
        ("x", "X"),
    ],
)
def test_initials(name, initials):
    assert derive_avatar(name).initials == initials


@pytest.mark.parametrize("name", [None, "", "   "])
def test_blank_names_have_no_avatar(name):
    assert derive_avatar(name) is None


def test_same_name_gives_same_avatar():
    assert derive_avatar("Grace Hopper") == derive_avatar("Grace Hopper")


def test_color_comes_from_palette_by_hash():
    assert _name_hash("a") == 97
    assert derive_avatar("a").color == PALETTE[97 % len(PALETTE)]


def test_hash_stays_within_signed_32_bits():
    value = _name_hash("Maximilian Alexander Montgomery-Worthington " * 20)
    assert -(2**31) <= value < 2**31


def test_data_url_is_svg_with_initials_and_color():
    avatar = derive_avatar("Grace Hopper", size=120)

    assert avatar.data_url.startswith("data:image/svg+xml;base64,")
    svg = _svg(avatar)
    assert 'width="120"' in svg
    assert avatar.color in svg
    assert ">GH</text>" in svg


def test_markup_in_initials_is_escaped():
    svg = _svg(derive_avatar("<b> &"))
    assert "&lt;&amp;" in svg
    assert "<b>" not in svg
