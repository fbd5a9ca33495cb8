"""
Tests for the Fibonacci AIR: vanishing polynomials, mask layout and
constraint evaluation at out-of-domain points.
"""

import pytest

from circle_primitives.channel import Sha256Channel
from circle_primitives.circle import CanonicCoset, CirclePoint, Coset
from circle_primitives.field import FF, QM31
from circle_protocol.air import CompositionHint, FibonacciAir, coset_vanishing, pair_vanishing
from circle_protocol.errors import InvalidStructure
from circle_protocol.oods import get_random_point_with_hint


def _random_point(seed: bytes) -> CirclePoint:
    point, _ = get_random_point_with_hint(Sha256Channel.from_seed(seed))
    return point


class TestVanishing:

    def test_coset_vanishing_zero_on_coset(self):
        for coset in (Coset.subgroup(3), Coset.odds(3), CanonicCoset(4).coset):
            for i in range(coset.size()):
                assert coset_vanishing(coset, coset.at(i).into_ef()).is_zero()

    def test_coset_vanishing_nonzero_elsewhere(self):
        assert not coset_vanishing(Coset.subgroup(3), Coset.odds(3).at(0).into_ef()).is_zero()
        assert not coset_vanishing(Coset.subgroup(3), _random_point(b"v")).is_zero()

    def test_pair_vanishing(self):
        coset = Coset.subgroup(4)
        e0, e1 = coset.at(14).into_ef(), coset.at(15).into_ef()
        assert pair_vanishing(e0, e1, e0).is_zero()
        assert pair_vanishing(e0, e1, e1).is_zero()
        assert not pair_vanishing(e0, e1, coset.at(3).into_ef()).is_zero()


class TestFibonacciAir:

    def test_layout(self, air):
        assert air.column_log_sizes() == [5]
        assert air.composition_log_degree_bound() == 6
        assert air.mask_width == 3
        assert air.composition_split == 4

    def test_rejects_tiny_trace(self):
        with pytest.raises(ValueError):
            FibonacciAir(1, 1)

    def test_mask_points(self, air):
        point = _random_point(b"mask")
        points = air.mask_points(point)
        step = air.trace_step().into_ef()
        assert points == [[[point, point + step, point + step + step]]]
        assert all(p.is_on_circle() for p in points[0][0])

    def test_composition_matches_hint(self, air):
        point = _random_point(b"composition")
        mask = [[[QM31.from_ints(1, 2, 3, 4), QM31.from_ints(5, 6, 7, 8), QM31.from_ints(9, 1, 2, 3)]]]
        random_coeff = QM31.from_ints(11, 12, 13, 14)
        boundary, step = air.composition_hint(point, mask).constraint_eval_quotients_by_mask
        assert air.eval_composition_polynomial_at_point(point, mask, random_coeff) == step * random_coeff + boundary

    def test_step_quotient_vanishes_on_recurrence(self, air):
        point = _random_point(b"step")
        a, b = QM31.from_ints(3, 0, 0, 0), QM31.from_ints(4, 1, 0, 0)
        mask = [a, b, a.square() + b.square()]
        assert air.step_constraint_eval_quotient_by_mask(point, mask).is_zero()

    def test_boundary_quotient_vanishes_at_first_row_value(self, air):
        point = _random_point(b"boundary")
        p_last = Coset.subgroup(air.log_size).at((1 << air.log_size) - 1)
        linear = QM31.one() + point.y * ((air.claim - FF(1)) * p_last.y ** -1)
        assert air.boundary_constraint_eval_quotient_by_mask(point, [linear]).is_zero()

    def test_check_composition_hint(self, air):
        point = _random_point(b"bound")
        mask = [[[QM31.from_ints(1, 2, 3, 4), QM31.from_ints(5, 6, 7, 8), QM31.from_ints(9, 1, 2, 3)]]]
        hint = air.composition_hint(point, mask)
        assert air.check_composition_hint(point, mask, hint)

        boundary, step = hint.constraint_eval_quotients_by_mask
        assert not air.check_composition_hint(point, mask, CompositionHint([boundary, step + QM31.one()]))
        assert not air.check_composition_hint(point, mask, CompositionHint([boundary]))

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_check_composition_hint_tied_to_mask(self, air, index):
        point = _random_point(b"bound")
        mask = [[[QM31.from_ints(1, 2, 3, 4), QM31.from_ints(5, 6, 7, 8), QM31.from_ints(9, 1, 2, 3)]]]
        hint = air.composition_hint(point, mask)
        mask[0][0][index] = mask[0][0][index] + QM31.from_ints(0, 0, 1, 0)
        assert not air.check_composition_hint(point, mask, hint)


class TestSampledValuesToMask:

    def _values(self, n_mask=3, n_composition=4):
        return [
            [[QM31.from_m31(i) for i in range(n_mask)]],
            [[QM31.from_m31(10 + i)] for i in range(n_composition)],
        ]

    def test_valid(self, air):
        mask, composition = air.sampled_values_to_mask(self._values())
        assert mask == [[[QM31.from_m31(0), QM31.from_m31(1), QM31.from_m31(2)]]]
        assert composition == QM31.from_ints(10, 11, 12, 13)

    @pytest.mark.parametrize("values", [
        [],
        [[[QM31.zero()] * 3]],
        [[[QM31.zero()] * 2], [[QM31.zero()]] * 4],
        [[[QM31.zero()] * 3], [[QM31.zero()]] * 3],
        [[[QM31.zero()] * 3], [[QM31.zero()]] * 3 + [[]]],
        [[[QM31.zero()] * 3, [QM31.zero()] * 3], [[QM31.zero()]] * 4],
    ])
    def test_invalid_shapes(self, air, values):
        with pytest.raises(InvalidStructure):
            air.sampled_values_to_mask(values)
