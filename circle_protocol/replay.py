"""Replaying a hint bundle the way a constrained verifier does.

The replayer only hashes and multiplies: every challenge is recovered from its
DrawHints after checking the hint against the block the channel would draw, the
OODS point is checked against t without inversion, and each hinted constraint
quotient is checked against the trace values by multiplying back its
denominator, and the composition value against the hinted quotients.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from circle_primitives.channel import DrawHints, Sha256Channel, check_draw_hint, felt_from_draw_hint
from circle_primitives.circle import CirclePoint
from circle_primitives.field import QM31
from circle_protocol.air import ComponentMask, FibonacciAir
from circle_protocol.errors import InvalidHint, OodsNotMatching, ProofOfWorkFailed
from circle_protocol.fiat_shamir import FiatShamirHints
from circle_protocol.oods import check_point_for_t
from circle_protocol.pow import PoWHint, hash_with_nonce
from circle_protocol.queries import Queries


@dataclass
class ReplayedChallenges:
    """Challenges recovered from a hint bundle, in draw order."""
    random_coeff: QM31
    oods_point: CirclePoint
    random_coeff2: QM31
    circle_poly_alpha: QM31
    folding_alphas: List[QM31] = field(default_factory=list)
    queries: Optional[Queries] = None


def _replay_draw(channel: Sha256Channel, hint: DrawHints, what: str) -> None:
    if not check_draw_hint(channel.digest, channel.n_draws, hint):
        raise InvalidHint(f"{what} hint does not match the channel")
    channel.n_draws += hint.n_blocks()


def _replay_felt(channel: Sha256Channel, hint: DrawHints, what: str) -> QM31:
    _replay_draw(channel, hint, what)
    return felt_from_draw_hint(hint)


def _trace_mask(air: FibonacciAir, trace_oods_values: List[QM31]) -> ComponentMask:
    """Regroup the flat trace values into the AIR's [component][column][offset] mask."""
    if len(trace_oods_values) != air.mask_width:
        raise InvalidHint(f"expected {air.mask_width} trace OODS values, got {len(trace_oods_values)}")
    columns, start = [], 0
    for offsets in air.mask_offsets:
        columns.append(list(trace_oods_values[start:start + len(offsets)]))
        start += len(offsets)
    return [columns]


def _check_pow_hint(channel: Sha256Channel, hint: PoWHint) -> None:
    if hint.digest != channel.digest:
        raise InvalidHint("proof-of-work hint was taken at a different digest")
    n_zero_bytes = hint.n_bits // 8
    expected = bytes(n_zero_bytes)
    if hint.msb is not None:
        if hint.msb >= 1 << (8 - hint.n_bits % 8):
            raise ProofOfWorkFailed("most significant hash byte exceeds the difficulty")
        expected += bytes([hint.msb])
    expected += hint.prefix
    if hash_with_nonce(channel.digest, hint.nonce) != expected:
        raise ProofOfWorkFailed("hash of digest and nonce does not have the hinted form")
    channel.mix_nonce(hint.nonce)


def replay_fs_hints(
    hints: FiatShamirHints,
    channel: Sha256Channel,
    air: FibonacciAir,
    query_log_size: int,
    n_queries: int,
) -> ReplayedChallenges:
    """Re-derive every challenge in `hints` against a channel in its initial state.

    Raises:
        InvalidHint: If a draw hint does not reproduce its block or holds
            the wrong number of words.
        OodsNotMatching: If the hinted quotients do not follow from the trace values
            or do not combine to the composition value.
        ProofOfWorkFailed: If the proof-of-work hint does not meet the difficulty.
    """
    channel.mix_digest(hints.commitments[0])
    random_coeff = _replay_felt(channel, hints.random_coeff_hint, "random_coeff")

    channel.mix_digest(hints.commitments[1])
    t = _replay_felt(channel, hints.oods_hint.draw_hint, "oods")
    if not check_point_for_t(t, hints.oods_hint.x, hints.oods_hint.y):
        raise InvalidHint("OODS point does not match t")

    oods_point = hints.oods_hint.point()
    mask = _trace_mask(air, hints.trace_oods_values)
    if not air.check_composition_hint(oods_point, mask, hints.composition_hint):
        raise OodsNotMatching("composition hint does not follow from the trace values")

    boundary, step = hints.composition_hint.constraint_eval_quotients_by_mask
    composition_value = QM31.from_partial_evals(hints.composition_oods_values)
    if composition_value != step * random_coeff + boundary:
        raise OodsNotMatching()

    channel.mix_felts(list(hints.trace_oods_values) + list(hints.composition_oods_values))
    random_coeff2 = _replay_felt(channel, hints.random_coeff_hint2, "random_coeff2")
    circle_poly_alpha = _replay_felt(channel, hints.circle_poly_alpha_hint, "circle_poly_alpha")

    folding_alphas = []
    for commitment, folding_hint in hints.fri_commitment_and_folding_hints:
        channel.mix_digest(commitment)
        folding_alphas.append(_replay_felt(channel, folding_hint, "folding_alpha"))

    channel.mix_felts(hints.last_layer)
    _check_pow_hint(channel, hints.pow_hint)

    _replay_draw(channel, hints.queries_hints, "queries")
    try:
        queries = Queries.from_hint(hints.queries_hints, query_log_size, n_queries)
    except ValueError as e:
        raise InvalidHint(f"queries hint: {e}") from e

    return ReplayedChallenges(
        random_coeff=random_coeff,
        oods_point=oods_point,
        random_coeff2=random_coeff2,
        circle_poly_alpha=circle_poly_alpha,
        folding_alphas=folding_alphas,
        queries=queries,
    )
