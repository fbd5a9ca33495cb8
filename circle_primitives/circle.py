"""Circle group over M31 and QM31: points, point indices, cosets, line domains.

The circle curve is x^2 + y^2 = 1. Over M31 its points form a cyclic group of
order 2^31, generated by M31_CIRCLE_GEN. Domain points are addressed by their
CirclePointIndex (discrete log with respect to the generator), which makes
coset arithmetic plain integer arithmetic mod 2^31.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Generic, TypeVar

from circle_primitives.field import FF, QM31

# --- Constants ---

M31_CIRCLE_LOG_ORDER = 31
_INDEX_MASK = (1 << M31_CIRCLE_LOG_ORDER) - 1

Coord = TypeVar("Coord", FF, QM31)


def _one_like(value):
    return QM31.one() if isinstance(value, QM31) else FF(1)


def _zero_like(value):
    return QM31.zero() if isinstance(value, QM31) else FF(0)


def _coord_eq(lhs, rhs) -> bool:
    if isinstance(lhs, QM31) or isinstance(rhs, QM31):
        return _to_qm31(lhs) == _to_qm31(rhs)
    return int(lhs) == int(rhs)


def _to_qm31(value) -> QM31:
    return value if isinstance(value, QM31) else QM31.from_m31(value)


def double_x(x):
    """x coordinate of 2P given the x coordinate of P: 2x^2 - 1."""
    sq = x * x
    return sq + sq - _one_like(x)


# --- Circle Point ---

@dataclass(frozen=True, eq=False)
class CirclePoint(Generic[Coord]):
    """A point on the circle curve over M31 (FF coordinates) or QM31."""
    x: Coord
    y: Coord

    @classmethod
    def zero(cls, like=None) -> "CirclePoint":
        """Group identity (1, 0) in the field of `like` (M31 by default)."""
        like = FF(0) if like is None else like
        return cls(_one_like(like), _zero_like(like))

    def __add__(self, other: "CirclePoint") -> "CirclePoint":
        x = self.x * other.x - self.y * other.y
        y = self.x * other.y + self.y * other.x
        return CirclePoint(x, y)

    def __neg__(self) -> "CirclePoint":
        return self.conjugate()

    def __sub__(self, other: "CirclePoint") -> "CirclePoint":
        return self + other.conjugate()

    def double(self) -> "CirclePoint":
        return self + self

    def mul(self, scalar: int) -> "CirclePoint":
        """Scalar multiplication by double-and-add."""
        result = CirclePoint.zero(self.x)
        cur = self
        while scalar > 0:
            if scalar & 1:
                result = result + cur
            cur = cur.double()
            scalar >>= 1
        return result

    def conjugate(self) -> "CirclePoint":
        """Group inverse: (x, -y)."""
        return CirclePoint(self.x, -self.y)

    def antipode(self) -> "CirclePoint":
        return CirclePoint(-self.x, -self.y)

    def into_ef(self) -> "CirclePoint[QM31]":
        """Embed an M31 point into the secure extension."""
        return CirclePoint(_to_qm31(self.x), _to_qm31(self.y))

    def is_on_circle(self) -> bool:
        return _coord_eq(self.x * self.x + self.y * self.y, _one_like(self.x))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CirclePoint):
            return NotImplemented
        return _coord_eq(self.x, other.x) and _coord_eq(self.y, other.y)

    def __hash__(self) -> int:
        return hash((_to_qm31(self.x), _to_qm31(self.y)))

    def __repr__(self) -> str:
        return f"CirclePoint(x={self.x!r}, y={self.y!r})"


M31_CIRCLE_GEN = CirclePoint(FF(2), FF(1268011823))
"""Generator of the order-2^31 circle group over M31."""


@lru_cache(maxsize=4096)
def _point_at_index(index: int) -> CirclePoint:
    return M31_CIRCLE_GEN.mul(index)


# --- Point Index ---

@dataclass(frozen=True, order=True)
class CirclePointIndex:
    """Discrete log of a circle point with respect to M31_CIRCLE_GEN, mod 2^31."""
    value: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", self.value & _INDEX_MASK)

    @classmethod
    def zero(cls) -> "CirclePointIndex":
        return cls(0)

    @classmethod
    def generator(cls) -> "CirclePointIndex":
        return cls(1)

    @classmethod
    def subgroup_gen(cls, log_size: int) -> "CirclePointIndex":
        """Index of a generator of the subgroup of order 2^log_size."""
        if not 0 <= log_size <= M31_CIRCLE_LOG_ORDER:
            raise ValueError(f"log_size must be in [0, {M31_CIRCLE_LOG_ORDER}], got {log_size}")
        return cls(1 << (M31_CIRCLE_LOG_ORDER - log_size))

    def __add__(self, other: "CirclePointIndex") -> "CirclePointIndex":
        return CirclePointIndex(self.value + other.value)

    def __sub__(self, other: "CirclePointIndex") -> "CirclePointIndex":
        return CirclePointIndex(self.value - other.value)

    def __neg__(self) -> "CirclePointIndex":
        return CirclePointIndex(-self.value)

    def __mul__(self, scalar: int) -> "CirclePointIndex":
        return CirclePointIndex(self.value * scalar)

    def half(self) -> "CirclePointIndex":
        if self.value & 1:
            raise ValueError(f"cannot halve odd index {self.value}")
        return CirclePointIndex(self.value >> 1)

    def to_point(self) -> CirclePoint:
        return _point_at_index(self.value)


# --- Cosets ---

@dataclass(frozen=True)
class Coset:
    """Coset initial + <step> of size 2^log_size, described by point indices."""
    initial_index: CirclePointIndex
    step_size: CirclePointIndex
    log_size: int

    @classmethod
    def new(cls, initial_index: CirclePointIndex, log_size: int) -> "Coset":
        return cls(initial_index, CirclePointIndex.subgroup_gen(log_size), log_size)

    @classmethod
    def subgroup(cls, log_size: int) -> "Coset":
        """The subgroup of order 2^log_size."""
        return cls.new(CirclePointIndex.zero(), log_size)

    @classmethod
    def odds(cls, log_size: int) -> "Coset":
        """G_{2n} + <G_n>: the odd multiples of a generator of order 2^(log_size+1)."""
        return cls.new(CirclePointIndex.subgroup_gen(log_size + 1), log_size)

    @classmethod
    def half_odds(cls, log_size: int) -> "Coset":
        """G_{4n} + <G_n>."""
        return cls.new(CirclePointIndex.subgroup_gen(log_size + 2), log_size)

    @property
    def initial(self) -> CirclePoint:
        return self.initial_index.to_point()

    @property
    def step(self) -> CirclePoint:
        return self.step_size.to_point()

    def size(self) -> int:
        return 1 << self.log_size

    def index_at(self, i: int) -> CirclePointIndex:
        return self.initial_index + self.step_size * i

    def at(self, i: int) -> CirclePoint:
        return self.index_at(i).to_point()

    def double(self) -> "Coset":
        """Image of the coset under the doubling map; half the size."""
        if self.log_size == 0:
            raise ValueError("cannot double a coset of size 1")
        return Coset(self.initial_index * 2, self.step_size * 2, self.log_size - 1)


@dataclass(frozen=True)
class CanonicCoset:
    """Trace domain of size 2^log_size: the odds coset, stepped by G_n."""
    log_size: int

    @property
    def coset(self) -> Coset:
        return Coset.odds(self.log_size)

    @property
    def step(self) -> CirclePoint:
        return CirclePointIndex.subgroup_gen(self.log_size).to_point()

    def size(self) -> int:
        return 1 << self.log_size

    def at(self, i: int) -> CirclePoint:
        return self.coset.at(i)


@dataclass(frozen=True)
class LineDomain:
    """Evaluation domain of a line polynomial: the x coordinates of a coset."""
    coset: Coset

    @property
    def log_size(self) -> int:
        return self.coset.log_size

    def size(self) -> int:
        return self.coset.size()

    def at(self, i: int) -> FF:
        return self.coset.at(i).x

    def double(self) -> "LineDomain":
        """Domain of the folded line polynomial."""
        return LineDomain(self.coset.double())

