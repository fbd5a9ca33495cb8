"""Fibonacci AIR: constraint evaluation at an out-of-domain point.

The trace is a single column a_0, a_1, ... of length 2^log_size over M31
satisfying the squared-Fibonacci recurrence a_{k+2} = a_k^2 + a_{k+1}^2, with
a_0 = 1 and a_{n-1} = claim. Each constraint is evaluated as a quotient by its
vanishing polynomial, using only the mask values sampled at the point:

    step:      (m0^2 + m1^2 - m2) * selector(p) / Z_subgroup(p)
    boundary:  (m0 - linear(p)) / Z_{first, last}(p)

where the selector excludes the last two rows (the recurrence does not wrap
around) and linear(p) interpolates 1 at the first row and claim at the last.
The quotients are combined as step * alpha + boundary.
"""

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from circle_primitives.circle import CanonicCoset, CirclePoint, Coset, double_x
from circle_primitives.field import FF, QM31, SECURE_EXTENSION_DEGREE
from circle_protocol.errors import InvalidStructure

# --- Type Aliases ---

# [component][column][mask offset]
ComponentMask = List[List[List[QM31]]]
ComponentPoints = List[List[List[CirclePoint]]]


# --- Vanishing Polynomials ---

def pair_vanishing(excluded0: CirclePoint, excluded1: CirclePoint, p: CirclePoint) -> QM31:
    """Line through two excluded points, evaluated at p. Vanishes exactly on them."""
    return (
        (excluded0.y - excluded1.y) * p.x
        + (excluded1.x - excluded0.x) * p.y
        + (excluded0.x * excluded1.y - excluded0.y * excluded1.x)
    )


def coset_vanishing(coset: Coset, p: CirclePoint) -> QM31:
    """Polynomial of degree |coset| vanishing on the coset, evaluated at p."""
    # Rotate the coset onto a canonic coset, whose points double down to x = 0.
    shift = coset.step_size.half().to_point().into_ef()
    p = p - coset.initial.into_ef() + shift
    x = p.x
    for _ in range(1, coset.log_size):
        x = double_x(x)
    return x


# --- Hints ---

@dataclass
class CompositionHint:
    """Constraint quotients at the OODS point, in (boundary, step) order."""
    constraint_eval_quotients_by_mask: List[QM31] = field(default_factory=list)

    def push_to(self, builder) -> None:
        for quotient in self.constraint_eval_quotients_by_mask:
            quotient.push_to(builder)


# --- AIR ---

class FibonacciAir:
    """Single-component AIR for the squared-Fibonacci sequence."""

    mask_offsets: List[List[int]] = [[0, 1, 2]]

    def __init__(self, log_size: int, claim: int):
        if log_size < 2:
            raise ValueError(f"log_size must be at least 2, got {log_size}")
        self.log_size = log_size
        self.claim = FF(int(claim) % FF.order)

    # --- Layout ---

    def column_log_sizes(self) -> List[int]:
        """Trace log-size of every trace column."""
        return [self.log_size] * len(self.mask_offsets)

    def composition_log_degree_bound(self) -> int:
        return self.log_size + 1

    @property
    def mask_width(self) -> int:
        """Total number of trace values sampled at the OODS point."""
        return sum(len(offsets) for offsets in self.mask_offsets)

    @property
    def composition_split(self) -> int:
        """Number of sub-columns the composition polynomial is committed as."""
        return SECURE_EXTENSION_DEGREE

    def trace_step(self) -> CirclePoint:
        return CanonicCoset(self.log_size).step

    def mask_points(self, point: CirclePoint) -> ComponentPoints:
        """Points at which each trace column is sampled, relative to `point`."""
        step = self.trace_step()
        return [[
            [point + step.mul(offset).into_ef() for offset in offsets]
            for offsets in self.mask_offsets
        ]]

    # --- Constraints ---

    def boundary_constraint_fraction(self, point: CirclePoint, mask: Sequence[QM31]) -> Tuple[QM31, QM31]:
        """(numerator, denominator) of the boundary quotient."""
        constraint_zero_domain = Coset.subgroup(self.log_size)
        p = constraint_zero_domain.at(constraint_zero_domain.size() - 1)
        # 1 at the identity (first row), claim at p (last row).
        linear = QM31.one() + point.y * ((self.claim - FF(1)) * p.y ** -1)
        num = mask[0] - linear
        denom = pair_vanishing(p.into_ef(), CirclePoint.zero().into_ef(), point)
        return num, denom

    def step_constraint_fraction(self, point: CirclePoint, mask: Sequence[QM31]) -> Tuple[QM31, QM31]:
        """(numerator, denominator) of the transition quotient."""
        constraint_zero_domain = Coset.subgroup(self.log_size)
        constraint_value = mask[0].square() + mask[1].square() - mask[2]
        selector = pair_vanishing(
            constraint_zero_domain.at(constraint_zero_domain.size() - 2).into_ef(),
            constraint_zero_domain.at(constraint_zero_domain.size() - 1).into_ef(),
            point,
        )
        num = constraint_value * selector
        denom = coset_vanishing(constraint_zero_domain, point)
        return num, denom

    def boundary_constraint_eval_quotient_by_mask(self, point: CirclePoint, mask: Sequence[QM31]) -> QM31:
        """Boundary quotient from the single mask value at offset 0."""
        num, denom = self.boundary_constraint_fraction(point, mask)
        return num / denom

    def step_constraint_eval_quotient_by_mask(self, point: CirclePoint, mask: Sequence[QM31]) -> QM31:
        """Transition quotient from the three mask values."""
        num, denom = self.step_constraint_fraction(point, mask)
        return num / denom

    def eval_composition_polynomial_at_point(
        self,
        point: CirclePoint,
        mask: ComponentMask,
        random_coeff: QM31,
    ) -> QM31:
        """Random linear combination of all constraint quotients at `point`."""
        column_mask = mask[0][0]
        accumulation = QM31.zero()
        for evaluation in (
            self.step_constraint_eval_quotient_by_mask(point, column_mask),
            self.boundary_constraint_eval_quotient_by_mask(point, column_mask[:1]),
        ):
            accumulation = accumulation * random_coeff + evaluation
        return accumulation

    def composition_hint(self, point: CirclePoint, mask: ComponentMask) -> CompositionHint:
        column_mask = mask[0][0]
        return CompositionHint(constraint_eval_quotients_by_mask=[
            self.boundary_constraint_eval_quotient_by_mask(point, column_mask[:1]),
            self.step_constraint_eval_quotient_by_mask(point, column_mask),
        ])

    def check_composition_hint(self, point: CirclePoint, mask: ComponentMask, hint: CompositionHint) -> bool:
        """Whether each hinted quotient times its denominator gives its numerator.

        Uses multiplication only, so it holds for exactly one value per quotient
        whenever `point` is off the vanishing domains.
        """
        if len(hint.constraint_eval_quotients_by_mask) != 2:
            return False
        column_mask = mask[0][0]
        boundary, step = hint.constraint_eval_quotients_by_mask
        for quotient, (num, denom) in (
            (boundary, self.boundary_constraint_fraction(point, column_mask[:1])),
            (step, self.step_constraint_fraction(point, column_mask)),
        ):
            if quotient * denom != num:
                return False
        return True

    # --- Sampled Values ---

    def sampled_values_to_mask(self, sampled_values: Sequence[Sequence[Sequence[QM31]]]) -> Tuple[ComponentMask, QM31]:
        """Split the proof's sampled values into the trace mask and composition value.

        Expects two trees: the trace tree with one column per mask column, each
        holding one value per mask offset, and the composition tree with
        `composition_split` columns of one value each.

        Raises:
            InvalidStructure: If the sampled values have any other shape.
        """
        if len(sampled_values) != 2:
            raise InvalidStructure(f"expected 2 sampled-value trees, got {len(sampled_values)}")
        trace_tree, composition_tree = sampled_values

        if len(trace_tree) != len(self.mask_offsets):
            raise InvalidStructure(
                f"expected {len(self.mask_offsets)} trace columns, got {len(trace_tree)}")
        for column, offsets in zip(trace_tree, self.mask_offsets):
            if len(column) != len(offsets):
                raise InvalidStructure(f"expected {len(offsets)} mask values per column, got {len(column)}")

        if len(composition_tree) != self.composition_split:
            raise InvalidStructure(
                f"expected {self.composition_split} composition columns, got {len(composition_tree)}")
        if any(len(column) != 1 for column in composition_tree):
            raise InvalidStructure("expected one sampled value per composition column")

        mask = [[list(column) for column in trace_tree]]
        composition_value = QM31.from_partial_evals([column[0] for column in composition_tree])
        return mask, composition_value
