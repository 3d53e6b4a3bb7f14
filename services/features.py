"""Rule-based feature suggestion and feature list validation."""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from models.project import FEATURE_COMPLEXITIES, PROJECT_CATEGORIES

from .errors import ValidationError


def _feature(name: str, description: str, complexity: str, hours: int) -> dict:
    return {
        "name": name,
        "description": description,
        "complexity": complexity,
        "estimated_hours": hours,
        "completed": False,
    }


# Scanned in order; each matching group contributes exactly one feature.
# Keywords match whole words only, so inflections are listed explicitly.
KEYWORD_GROUPS: tuple[tuple[tuple[str, ...], dict], ...] = (
    (
        ("login", "logins", "log in", "sign in", "signin", "sign up", "signup", "register",
         "registration", "auth", "authentication", "password", "passwords", "account",
         "accounts"),
        _feature("User Authentication", "Secure login and registration system", "medium", 8),
    ),
    (
        ("dashboard", "dashboards", "analytics", "report", "reports", "reporting", "metrics",
         "chart", "charts", "admin panel"),
        _feature("Dashboard", "Main user interface with data visualization", "complex", 16),
    ),
    (
        ("shop", "shops", "shopping", "cart", "checkout", "payment", "payments", "paypal",
         "ecommerce", "e-commerce", "purchase", "purchases", "billing", "storefront"),
        _feature("E-commerce", "Product catalog, cart and checkout with payments", "complex", 24),
    ),
    (
        ("social", "friend", "friends", "follow", "follows", "followers", "community", "feed",
         "feeds", "comment", "comments"),
        _feature("Social Features", "Profiles, follows, feeds and comments", "complex", 20),
    ),
    (
        ("chat", "chats", "message", "messages", "messaging", "inbox"),
        _feature("Messaging", "Real-time one-to-one and group messaging", "complex", 18),
    ),
    (
        ("notification", "notifications", "notify", "alert", "alerts", "reminder",
         "reminders"),
        _feature("Notifications", "Push and email notifications for key events", "medium", 8),
    ),
    (
        ("map", "maps", "location", "locations", "gps", "geolocation", "nearby", "directions"),
        _feature("Location Services", "Maps, geolocation and nearby search", "medium", 12),
    ),
    (
        ("photo", "photos", "image", "images", "video", "videos", "upload", "uploads",
         "gallery", "camera", "media"),
        _feature("Media Management", "Upload, store and display images and video", "medium", 10),
    ),
    (
        ("search", "filter", "filters", "catalog"),
        _feature("Search", "Full-text search with filters and sorting", "medium", 8),
    ),
    (
        ("booking", "bookings", "appointment", "appointments", "calendar", "schedule",
         "scheduling", "reservation", "reservations"),
        _feature("Booking & Scheduling", "Calendar availability and reservations", "complex", 16),
    ),
)

FALLBACK_FEATURES: tuple[dict, ...] = (
    _feature("Core Functionality", "Primary workflows described in the project brief", "medium", 12),
    _feature("Settings", "User preferences and configuration", "simple", 4),
)

_GROUP_PATTERNS = tuple(
    re.compile(r"\b(?:" + "|".join(re.escape(keyword) for keyword in keywords) + r")\b")
    for keywords, _ in KEYWORD_GROUPS
)


def matched_groups(prompt: str) -> list[int]:
    """Return the indexes of the keyword groups present in ``prompt``."""

    text = (prompt or "").lower()
    return [index for index, pattern in enumerate(_GROUP_PATTERNS) if pattern.search(text)]


def suggest_features(prompt: str, category: str) -> list[dict]:
    """Map a free-text brief to fixed feature records.

    Deterministic for a given (prompt, category): no randomness, no I/O.
    """

    if category not in PROJECT_CATEGORIES:
        raise ValidationError.for_field(
            "category", f"category must be one of {', '.join(PROJECT_CATEGORIES)}"
        )

    indexes = matched_groups(prompt)
    if not indexes:
        return [dict(feature) for feature in FALLBACK_FEATURES]
    return [dict(KEYWORD_GROUPS[index][1]) for index in indexes]


def suggestion_confidence(prompt: str) -> float:
    """Confidence recorded alongside a suggestion; fallback answers score lowest."""

    matches = len(matched_groups(prompt))
    if not matches:
        return 0.5
    return round(min(0.95, 0.7 + 0.05 * matches), 2)


def _as_hours(value: Any) -> float | None:
    if value in (None, ""):
        return None
    if isinstance(value, bool):
        raise ValueError("boolean")
    hours = Decimal(str(value))
    if hours < 0:
        raise ValueError("negative")
    return float(hours)


def normalize_features(raw: Any) -> list[dict]:
    """Validate a client-supplied feature list and return its canonical form."""

    if not isinstance(raw, list):
        raise ValidationError.for_field("features", "features must be a list")

    errors: list[dict[str, str]] = []
    features: list[dict] = []
    for index, item in enumerate(raw):
        field = f"features[{index}]"
        if not isinstance(item, dict):
            errors.append({"field": field, "message": "feature must be an object"})
            continue

        name = str(item.get("name") or "").strip()
        if not name:
            errors.append({"field": f"{field}.name", "message": "name is required"})

        complexity = item.get("complexity") or "medium"
        if complexity not in FEATURE_COMPLEXITIES:
            errors.append(
                {
                    "field": f"{field}.complexity",
                    "message": "complexity must be one of simple, medium, complex",
                }
            )

        try:
            hours = _as_hours(item.get("estimated_hours"))
        except (InvalidOperation, TypeError, ValueError):
            errors.append(
                {
                    "field": f"{field}.estimated_hours",
                    "message": "estimated_hours must be a non-negative number",
                }
            )
            hours = None

        features.append(
            {
                "name": name,
                "description": str(item.get("description") or "").strip(),
                "complexity": complexity,
                "estimated_hours": hours,
                "completed": bool(item.get("completed", False)),
            }
        )

    if errors:
        raise ValidationError(errors)
    return features
