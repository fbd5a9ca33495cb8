"""Mersenne-31 field GF(p) and its extensions CM31 = GF(p^2), QM31 = GF(p^4).

Uses galois for all field arithmetic. FF, FF2 and FF4 are the field types; CM31
and QM31 wrap a single FF2 / FF4 scalar so they compare and hash by value and
mix with base field scalars in ordinary expressions.

Coordinates are written in the tower basis everywhere in this codebase:

    CM31 = FF[i] / (i^2 + 1)            a + b*i                  -> [a, b]
    QM31 = CM31[u] / (u^2 - (2 + i))    (a + b*i) + (c + d*i)*u  -> [a, b, c, d]

galois works in the power basis of u, whose minimal polynomial over M31 is
(u^2 - 2)^2 + 1 = u^4 - 4u^2 + 5. With i = u^2 - 2 and i*u = u^3 - 2u the
tower element [a, b, c, d] is (a - 2b) + (c - 2d)*u + b*u^2 + d*u^3.
"""

from dataclasses import dataclass
from typing import List, Sequence, Union

import galois
import numpy as np

# --- Field Construction ---

M31_PRIME = (1 << 31) - 1

FF = galois.GF(M31_PRIME)
"""Base field GF(2^31 - 1)."""

FF2 = galois.GF(M31_PRIME**2, irreducible_poly=galois.Poly([1, 0, 1], field=FF))
"""Complex extension GF(p^2) with irreducible polynomial x^2 + 1."""

FF4 = galois.GF(M31_PRIME**4, irreducible_poly=galois.Poly([1, 0, M31_PRIME - 4, 0, 5], field=FF))
"""Secure extension GF(p^4) with irreducible polynomial x^4 - 4x^2 + 5."""

SECURE_EXTENSION_DEGREE = 4
"""Number of base field coordinates in a QM31 element."""

IntLike = Union[int, FF]


def _reduce(value: IntLike) -> int:
    """Python int (any sign) or FF scalar as a canonical integer in [0, p)."""
    return int(value) % M31_PRIME


# --- Basis Conversion ---
# galois vectors are in descending power order; tower coordinates ascend.


def cm31_coeffs_to_ff2(a: IntLike, b: IntLike) -> FF2:
    return FF2.Vector([_reduce(b), _reduce(a)])


def ff2_to_cm31_coeffs(elem: FF2) -> List[int]:
    return [int(c) for c in elem.vector()[::-1]]


def qm31_coeffs_to_ff4(a: IntLike, b: IntLike, c: IntLike, d: IntLike) -> FF4:
    """Tower coordinates [a, b, c, d] to an FF4 element."""
    a, b, c, d = _reduce(a), _reduce(b), _reduce(c), _reduce(d)
    power = [(a - 2 * b) % M31_PRIME, (c - 2 * d) % M31_PRIME, b, d]
    return FF4.Vector(power[::-1])


def ff4_to_qm31_coeffs(elem: FF4) -> List[int]:
    """Inverse of qm31_coeffs_to_ff4."""
    p0, p1, p2, p3 = (int(c) for c in elem.vector()[::-1])
    return [(p0 + 2 * p2) % M31_PRIME, p2, (p1 + 2 * p3) % M31_PRIME, p3]


# --- Complex Extension ---

@dataclass(frozen=True, eq=False)
class CM31:
    """Element a + b*i of the complex extension of M31."""
    value: FF2

    # Let numpy defer mixed FF/CM31 arithmetic to our reflected operators.
    __array_ufunc__ = None

    @classmethod
    def from_ints(cls, a: IntLike, b: IntLike) -> "CM31":
        return cls(cm31_coeffs_to_ff2(a, b))

    @classmethod
    def from_m31(cls, a: IntLike) -> "CM31":
        return cls(FF2(_reduce(a)))

    @classmethod
    def zero(cls) -> "CM31":
        return cls(FF2(0))

    @classmethod
    def one(cls) -> "CM31":
        return cls(FF2(1))

    def __add__(self, other) -> "CM31":
        return CM31(self.value + _lift_ff2(other))

    __radd__ = __add__

    def __sub__(self, other) -> "CM31":
        return CM31(self.value - _lift_ff2(other))

    def __rsub__(self, other) -> "CM31":
        return CM31(_lift_ff2(other) - self.value)

    def __neg__(self) -> "CM31":
        return CM31(-self.value)

    def __mul__(self, other) -> "CM31":
        return CM31(self.value * _lift_ff2(other))

    __rmul__ = __mul__

    def square(self) -> "CM31":
        return self * self

    def is_zero(self) -> bool:
        return int(self.value) == 0

    def inverse(self) -> "CM31":
        if self.is_zero():
            raise ZeroDivisionError("0 has no inverse in CM31")
        return CM31(self.value ** -1)

    def to_ints(self) -> List[int]:
        return ff2_to_cm31_coeffs(self.value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CM31):
            return NotImplemented
        return int(self.value) == int(other.value)

    def __hash__(self) -> int:
        return hash(int(self.value))

    def __repr__(self) -> str:
        return "CM31({}, {})".format(*self.to_ints())


def _lift_ff2(value) -> FF2:
    if isinstance(value, CM31):
        return value.value
    return FF2(_reduce(value))


# --- Secure Extension ---

@dataclass(frozen=True, eq=False)
class QM31:
    """Element (a + b*i) + (c + d*i)*u of the secure extension of M31."""
    value: FF4

    __array_ufunc__ = None

    @classmethod
    def from_ints(cls, a: IntLike, b: IntLike, c: IntLike, d: IntLike) -> "QM31":
        """Construct from tower coordinates, reducing each mod p."""
        return cls(qm31_coeffs_to_ff4(a, b, c, d))

    @classmethod
    def from_m31(cls, value: IntLike) -> "QM31":
        """Embed a base field element."""
        return cls(FF4(_reduce(value)))

    @classmethod
    def from_m31_array(cls, coords: Sequence[IntLike]) -> "QM31":
        """Construct from four canonical base field coordinates.

        Raises:
            ValueError: On a wrong coordinate count or a coordinate outside [0, p).
        """
        if len(coords) != SECURE_EXTENSION_DEGREE:
            raise ValueError(f"QM31 needs {SECURE_EXTENSION_DEGREE} coordinates, got {len(coords)}")
        ints = [int(c) for c in coords]
        for c in ints:
            if not 0 <= c < M31_PRIME:
                raise ValueError(f"coordinate {c} is not a canonical M31 element")
        return cls.from_ints(*ints)

    @classmethod
    def zero(cls) -> "QM31":
        return cls(FF4(0))

    @classmethod
    def one(cls) -> "QM31":
        return cls(FF4(1))

    @classmethod
    def from_partial_evals(cls, evals: Sequence["QM31"]) -> "QM31":
        """Recombine e0 + e1*i + e2*u + e3*i*u from the four sub-column values."""
        if len(evals) != SECURE_EXTENSION_DEGREE:
            raise ValueError(f"expected {SECURE_EXTENSION_DEGREE} partial evaluations, got {len(evals)}")
        res = evals[0]
        res = res + evals[1] * cls.from_ints(0, 1, 0, 0)
        res = res + evals[2] * cls.from_ints(0, 0, 1, 0)
        res = res + evals[3] * cls.from_ints(0, 0, 0, 1)
        return res

    def to_partial_evals(self) -> List["QM31"]:
        """Split into the four base field coordinates, each embedded in QM31."""
        return [QM31.from_m31(c) for c in self.to_ints()]

    def __add__(self, other) -> "QM31":
        return QM31(self.value + _lift_ff4(other))

    __radd__ = __add__

    def __sub__(self, other) -> "QM31":
        return QM31(self.value - _lift_ff4(other))

    def __rsub__(self, other) -> "QM31":
        return QM31(_lift_ff4(other) - self.value)

    def __neg__(self) -> "QM31":
        return QM31(-self.value)

    def __mul__(self, other) -> "QM31":
        return QM31(self.value * _lift_ff4(other))

    __rmul__ = __mul__

    def __truediv__(self, other) -> "QM31":
        return self * _as_qm31(other).inverse()

    def square(self) -> "QM31":
        return self * self

    def pow(self, exponent: int) -> "QM31":
        return QM31(self.value ** exponent)

    def is_zero(self) -> bool:
        return int(self.value) == 0

    def inverse(self) -> "QM31":
        if self.is_zero():
            raise ZeroDivisionError("0 has no inverse in QM31")
        return QM31(self.value ** -1)

    def to_ints(self) -> List[int]:
        """Ascending tower coordinates [a, b, c, d]."""
        return ff4_to_qm31_coeffs(self.value)

    def to_m31_array(self) -> FF:
        return FF(self.to_ints())

    def to_bytes(self) -> bytes:
        """Four little-endian u32 tower coordinates."""
        return np.asarray(self.to_ints(), dtype="<u4").tobytes()

    def push_to(self, builder) -> None:
        for coord in self.to_ints():
            builder.push_int(coord)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, QM31):
            return NotImplemented
        return int(self.value) == int(other.value)

    def __hash__(self) -> int:
        return hash(int(self.value))

    def __repr__(self) -> str:
        return "QM31({}, {}, {}, {})".format(*self.to_ints())


def _lift_ff4(value) -> FF4:
    if isinstance(value, QM31):
        return value.value
    if isinstance(value, CM31):
        a, b = value.to_ints()
        return qm31_coeffs_to_ff4(a, b, 0, 0)
    return FF4(_reduce(value))


def _as_qm31(value) -> QM31:
    return value if isinstance(value, QM31) else QM31(_lift_ff4(value))


# --- Bulk Conversion ---

def qm31_to_flat_list(values: Sequence[QM31]) -> List[int]:
    """Flatten QM31 values to [a0, b0, c0, d0, a1, ...]."""
    result = []
    for v in values:
        result.extend(v.to_ints())
    return result


def qm31_from_flat_list(flat: Sequence[int]) -> List[QM31]:
    """Inverse of qm31_to_flat_list."""
    if len(flat) % SECURE_EXTENSION_DEGREE != 0:
        raise ValueError(f"flat length {len(flat)} is not a multiple of {SECURE_EXTENSION_DEGREE}")
    coords = np.asarray(flat, dtype=np.int64).reshape(-1, SECURE_EXTENSION_DEGREE)
    return [QM31.from_m31_array(row.tolist()) for row in coords]
