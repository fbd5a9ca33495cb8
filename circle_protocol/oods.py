"""Out-of-domain sampling: drawing a random secure circle point."""

from dataclasses import dataclass
from typing import Tuple

from circle_primitives.channel import DrawHints, Sha256Channel
from circle_primitives.circle import CirclePoint
from circle_primitives.field import QM31


@dataclass(frozen=True)
class OODSHint:
    """Replay witness for the out-of-domain point.

    The point is the image of a drawn t under the rational parametrization
    x = (1 - t^2) / (1 + t^2), y = 2t / (1 + t^2). Carrying x and y lets a
    verifier without field inversion check x * (1 + t^2) == 1 - t^2 and
    y * (1 + t^2) == 2t instead.
    """
    draw_hint: DrawHints
    x: QM31
    y: QM31

    def point(self) -> CirclePoint:
        return CirclePoint(self.x, self.y)

    def push_to(self, builder) -> None:
        self.draw_hint.push_to(builder)
        self.x.push_to(builder)
        self.y.push_to(builder)


def point_from_t(t: QM31) -> CirclePoint:
    """Map t to a circle point. Every point except (-1, 0) has such a t."""
    t_square = t.square()
    one_plus_t_square_inv = (QM31.one() + t_square).inverse()
    x = (QM31.one() - t_square) * one_plus_t_square_inv
    y = (t + t) * one_plus_t_square_inv
    return CirclePoint(x, y)


def check_point_for_t(t: QM31, x: QM31, y: QM31) -> bool:
    """Multiplication-only check that (x, y) is the point for t."""
    one_plus_t_square = QM31.one() + t.square()
    return x * one_plus_t_square == QM31.one() - t.square() and y * one_plus_t_square == t + t


def get_random_point_with_hint(channel: Sha256Channel) -> Tuple[CirclePoint, OODSHint]:
    """Draw a random point on the circle over QM31."""
    t, draw_hint = channel.draw_felt_and_hints()
    point = point_from_t(t)
    return point, OODSHint(draw_hint=draw_hint, x=point.x, y=point.y)
