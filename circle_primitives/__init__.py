"""Primitives - Field, circle group, and Fiat-Shamir channel building blocks."""

from circle_primitives.channel import (
    DIGEST_SIZE,
    DrawHints,
    Sha256Channel,
    check_draw_hint,
    felt_from_draw_hint,
)
from circle_primitives.circle import (
    M31_CIRCLE_GEN,
    M31_CIRCLE_LOG_ORDER,
    CanonicCoset,
    CirclePoint,
    CirclePointIndex,
    Coset,
    LineDomain,
)
from circle_primitives.field import (
    CM31,
    FF,
    FF2,
    FF4,
    M31_PRIME,
    QM31,
    SECURE_EXTENSION_DEGREE,
)

__all__ = [
    # Field
    "FF",
    "FF2",
    "FF4",
    "CM31",
    "QM31",
    "M31_PRIME",
    "SECURE_EXTENSION_DEGREE",
    # Circle
    "CirclePoint",
    "CirclePointIndex",
    "Coset",
    "CanonicCoset",
    "LineDomain",
    "M31_CIRCLE_GEN",
    "M31_CIRCLE_LOG_ORDER",
    # Channel
    "Sha256Channel",
    "DrawHints",
    "DIGEST_SIZE",
    "check_draw_hint",
    "felt_from_draw_hint",
]
