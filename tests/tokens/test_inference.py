"""Tests for path-driven token type inference."""

from __future__ import annotations

import pytest

from tokenfinder.tokens import infer_type, normalize_path


def test_normalize_path_lowercases_and_joins() -> None:
    assert normalize_path(("Brand", "Color", "Primary")) == "brand.color.primary"


@pytest.mark.parametrize(
    ("value", "path", "expected"),
    [
        ("#FF0000", "anything", "color"),
        ("rgba(0, 0, 0, 0.5)", "overlay", "color"),
        ("hsl(210, 50%, 40%)", "accent", "color"),
        ("blue", "brand.color.primary", "color"),
        ("200ms", "motion.fast", "duration"),
        ("ease", "motion.duration.curve", "duration"),
        ("12px", "border.radius", "borderRadius"),
        ("8px", "card.corner", "borderRadius"),
        ("1px", "border.width", "borderWidth"),
        ("2px", "icon.stroke.weight", "borderWidth"),
        ("16px", "misc.value", "dimension"),
        ("1.5rem", "layout.gutter", "dimension"),
        ("large", "spacing.section", "dimension"),
        ("8", "scale.2x", "dimension"),
        ("Inter", "font.family.body", "fontFamily"),
        ("bold", "font.weight.heading", "fontWeight"),
        ("uppercase", "text.case", "typography"),
        ("0 1px 2px black", "shadow.sm", "shadow"),
        ("1px solid red", "border.default", "border"),
        ("hello", "misc", "string"),
    ],
)
def test_infer_type_for_strings(value: str, path: str, expected: str) -> None:
    assert infer_type(value, path) == expected


@pytest.mark.parametrize(
    ("value", "path", "expected"),
    [
        (4, "radius.sm", "borderRadius"),
        (1, "border.width.thin", "borderWidth"),
        (400, "font.weight.regular", "fontWeight"),
        (0.5, "opacity.half", "number"),
        (10, "layer.z-index", "number"),
        (16, "spacing.md", "dimension"),
        (8, "scale.2x", "dimension"),
        (3, "misc.count", "number"),
    ],
)
def test_infer_type_for_numbers(value: float, path: str, expected: str) -> None:
    assert infer_type(value, path) == expected


def test_booleans_are_not_numeric() -> None:
    assert infer_type(True, "spacing.md") == "string"


@pytest.mark.parametrize(
    ("value", "path", "expected"),
    [
        ({"blur": "4px", "color": "#000"}, "card", "shadow"),
        ({"x": 0, "y": 2}, "elevation.1", "shadow"),
        ({"fontFamily": "Inter", "fontSize": "14px"}, "body", "typography"),
        ({"width": "1px", "color": "#ccc"}, "divider", "border"),
        ({"color": "#ccc", "style": "dashed"}, "outline", "border"),
        ({"anything": 1}, "border.focus", "border"),
        ({"foo": 1}, "misc", "string"),
    ],
)
def test_infer_type_for_objects(value: dict, path: str, expected: str) -> None:
    assert infer_type(value, path) == expected


def test_other_values_are_strings() -> None:
    assert infer_type(["#fff", "#000"], "color.palette") == "string"
    assert infer_type(None, "color.primary") == "string"


def test_colour_signals_take_precedence_over_dimension_values() -> None:
    assert infer_type("4px", "color.border.radius") == "color"
