"""Tests for rule-based feature suggestions and feature validation."""

import pytest

from services.errors import ValidationError
from services.features import normalize_features, suggest_features, suggestion_confidence


def _names(features):
    return [feature["name"] for feature in features]


def test_keywords_map_to_features_in_fixed_order():
    prompt = "An app where users can login and chat with friends"

    features = suggest_features(prompt, "mobile-app")

    assert _names(features) == ["User Authentication", "Social Features", "Messaging"]
    assert all(feature["completed"] is False for feature in features)
    assert suggestion_confidence(prompt) == 0.85


def test_matching_ignores_case():
    assert _names(suggest_features("LOGIN SCREEN", "web-app")) == ["User Authentication"]


def test_fallback_when_nothing_matches():
    prompt = "Something quite unusual here"

    assert _names(suggest_features(prompt, "other")) == ["Core Functionality", "Settings"]
    assert suggestion_confidence(prompt) == 0.5


def test_suggestions_are_deterministic_and_independent():
    first = suggest_features("booking calendar for a salon", "website")
    first[0]["completed"] = True

    second = suggest_features("booking calendar for a salon", "website")

    assert second[0]["completed"] is False
    assert _names(second) == ["Booking & Scheduling"]


def test_unknown_category_rejected():
    with pytest.raises(ValidationError) as excinfo:
        suggest_features("login page", "spaceship")
    assert excinfo.value.errors[0]["field"] == "category"


def test_normalize_features_fills_defaults():
    features = normalize_features([{"name": " Payments ", "estimated_hours": "6"}])

    assert features == [
        {
            "name": "Payments",
            "description": "",
            "complexity": "medium",
            "estimated_hours": 6.0,
            "completed": False,
        }
    ]


def test_normalize_features_reports_each_bad_field():
    with pytest.raises(ValidationError) as excinfo:
        normalize_features(
            [
                {"name": "", "complexity": "huge"},
                {"name": "Ok", "estimated_hours": -1},
                "not-a-feature",
            ]
        )

    fields = {error["field"] for error in excinfo.value.errors}
    assert fields == {
        "features[0].name",
        "features[0].complexity",
        "features[1].estimated_hours",
        "features[2]",
    }


def test_normalize_features_requires_list():
    with pytest.raises(ValidationError):
        normalize_features({"name": "Solo"})


def test_login_and_dashboard_brief():
    features = suggest_features("I need user login and a dashboard", "web-app")

    assert _names(features) == ["User Authentication", "Dashboard"]


def test_greeting_gets_fallback_pair():
    assert _names(suggest_features("hello", "web-app")) == ["Core Functionality", "Settings"]


def test_keywords_match_whole_words_only():
    prompt = "A blog where authors post feedback about mapping"

    assert _names(suggest_features(prompt, "website")) == ["Core Functionality", "Settings"]
    assert suggestion_confidence(prompt) == 0.5


def test_listed_inflections_match():
    features = suggest_features("Logins, maps and photos", "mobile-app")

    assert _names(features) == [
        "User Authentication",
        "Location Services",
        "Media Management",
    ]
