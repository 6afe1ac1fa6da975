"""Standard roof palette with typical RGB values.

Maps a validated #RRGGBB color to the nearest palette label, used to fill in
color descriptions and as the "fallback" provenance when no model answers.
"""

import math

from roof_api.schemas.inference import InferenceResponse

STANDARD_COLORS: dict[str, tuple[int, int, int]] = {
    "black": (30, 30, 30),
    "dark gray": (80, 80, 80),
    "light gray": (180, 180, 180),
    "red": (180, 50, 50),
    "brown": (120, 80, 50),
    "tan": (210, 180, 140),
    "green": (80, 120, 60),
    "blue": (60, 100, 150),
    "white": (240, 240, 240),
    "other": (128, 128, 128),
}

# sqrt(3 * 255^2), the largest possible RGB distance
_MAX_DISTANCE = math.sqrt(3 * 255 ** 2)


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB, got {hex_color!r}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def map_to_standard_color(
    rgb: tuple[int, int, int], allowed_colors: list[str] | None = None
) -> tuple[str, float]:
    """Closest palette color and a confidence (1.0 = exact match).

    With allowed_colors, only palette entries in that list are considered.
    When none of them is a palette color, the first allowed color (or
    "other" for an empty list) is returned with confidence 0.0.
    """
    candidates = {
        name: ref for name, ref in STANDARD_COLORS.items()
        if allowed_colors is None or name in allowed_colors
    }
    if not candidates:
        return (allowed_colors[0] if allowed_colors else "other"), 0.0

    closest, min_dist = next(iter(candidates)), _MAX_DISTANCE
    for name, ref in candidates.items():
        dist = math.dist(rgb, ref)
        if dist < min_dist:
            closest, min_dist = name, dist
    return closest, max(0.0, 1.0 - min_dist / _MAX_DISTANCE)


def fallback_suggestion(hex_color: str, allowed_colors: list[str]) -> InferenceResponse:
    """Palette-distance suggestion, restricted to the request's allowed colors."""
    name, confidence = map_to_standard_color(hex_to_rgb(hex_color), allowed_colors)
    return InferenceResponse(
        color=name,
        confidence=round(confidence, 3),
        explanation=f"nearest palette color to {hex_color.upper()}",
        method="fallback",
    )
