"""
Tests for replaying a hint bundle against a fresh channel.
"""

from dataclasses import replace

import pytest

from circle_primitives.channel import DrawHints
from circle_primitives.field import QM31
from circle_protocol.air import CompositionHint
from circle_protocol.errors import InvalidHint, OodsNotMatching, ProofOfWorkFailed
from circle_protocol.fiat_shamir import generate_fs_hints
from circle_protocol.pow import PoWHint, grind
from circle_protocol.queries import Queries
from circle_protocol.replay import replay_fs_hints
from tests.conftest import fresh_channel


@pytest.fixture(scope="module")
def fs_output(honest_proof, air, config):
    return generate_fs_hints(honest_proof, fresh_channel(), air, config)


def _replay(fs_output, hints, air, config):
    return replay_fs_hints(hints, fresh_channel(), air, fs_output.fri_input.column_log_sizes[0], config.n_queries)


def _redraw_after_sampled_values(hints, trace_oods_values, query_log_size, config):
    """Hints with new trace values and every later draw hint taken afresh."""
    channel = fresh_channel()
    channel.mix_digest(hints.commitments[0])
    channel.draw_felt_and_hints()
    channel.mix_digest(hints.commitments[1])
    channel.draw_felt_and_hints()

    channel.mix_felts(list(trace_oods_values) + list(hints.composition_oods_values))
    _, random_coeff_hint2 = channel.draw_felt_and_hints()
    _, circle_poly_alpha_hint = channel.draw_felt_and_hints()
    fri_hints = []
    for commitment, _ in hints.fri_commitment_and_folding_hints:
        channel.mix_digest(commitment)
        fri_hints.append((commitment, channel.draw_felt_and_hints()[1]))

    channel.mix_felts(hints.last_layer)
    nonce = grind(channel, config.pow_bits)
    pow_hint = PoWHint.from_digest(channel.digest, nonce, config.pow_bits)
    channel.mix_nonce(nonce)
    _, queries_hints = Queries.generate_with_hints(channel, query_log_size, config.n_queries)

    return replace(
        hints,
        trace_oods_values=list(trace_oods_values),
        random_coeff_hint2=random_coeff_hint2,
        circle_poly_alpha_hint=circle_poly_alpha_hint,
        fri_commitment_and_folding_hints=fri_hints,
        pow_hint=pow_hint,
        queries_hints=queries_hints,
    )


class TestReplay:

    def test_challenges_match(self, fs_output, air, config):
        challenges = _replay(fs_output, fs_output.fiat_shamir_hints, air, config)
        fri_input = fs_output.fri_input
        assert challenges.random_coeff2 == fri_input.random_coeff
        assert challenges.circle_poly_alpha == fri_input.circle_poly_alpha
        assert challenges.folding_alphas == fri_input.folding_alphas
        assert challenges.queries == fri_input.queries
        assert challenges.oods_point == fri_input.sampled_points[1][0][0]

    def test_ends_in_verifier_state(self, fs_output, honest_proof, air, config):
        verifier_channel = fresh_channel()
        generate_fs_hints(honest_proof, verifier_channel, air, config)
        replay_channel = fresh_channel()
        replay_fs_hints(fs_output.fiat_shamir_hints, replay_channel, air,
                        fs_output.fri_input.column_log_sizes[0], config.n_queries)
        assert replay_channel.digest == verifier_channel.digest
        assert replay_channel.n_draws == verifier_channel.n_draws


class TestReplayRejects:

    def test_altered_draw_hint(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        words = list(hints.random_coeff_hint2.words)
        words[3] ^= 1 << 7
        tampered = replace(hints, random_coeff_hint2=DrawHints(tuple(words), hints.random_coeff_hint2.residue))
        with pytest.raises(InvalidHint):
            _replay(fs_output, tampered, air, config)

    def test_altered_oods_point(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        tampered = replace(hints, oods_hint=replace(hints.oods_hint, y=-hints.oods_hint.y))
        with pytest.raises(InvalidHint):
            _replay(fs_output, tampered, air, config)

    def test_altered_composition_hint(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        boundary, step = hints.composition_hint.constraint_eval_quotients_by_mask
        tampered = replace(hints, composition_hint=CompositionHint([boundary + QM31.one(), step]))
        with pytest.raises(OodsNotMatching):
            _replay(fs_output, tampered, air, config)

    def test_altered_pow_prefix(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        prefix = bytes([hints.pow_hint.prefix[0] ^ 1]) + hints.pow_hint.prefix[1:]
        tampered = replace(hints, pow_hint=replace(hints.pow_hint, prefix=prefix))
        with pytest.raises(ProofOfWorkFailed):
            _replay(fs_output, tampered, air, config)

    def test_skipped_layer(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        tampered = replace(hints, fri_commitment_and_folding_hints=hints.fri_commitment_and_folding_hints[1:])
        with pytest.raises(InvalidHint):
            _replay(fs_output, tampered, air, config)

    def test_redrawn_hints_replay(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        query_log_size = fs_output.fri_input.column_log_sizes[0]
        redrawn = _redraw_after_sampled_values(hints, hints.trace_oods_values, query_log_size, config)
        assert redrawn.random_coeff_hint2 == hints.random_coeff_hint2
        assert redrawn.queries_hints == hints.queries_hints
        _replay(fs_output, redrawn, air, config)

    @pytest.mark.parametrize("index", [0, 1, 2])
    def test_altered_trace_value(self, fs_output, air, config, index):
        hints = fs_output.fiat_shamir_hints
        trace_oods_values = list(hints.trace_oods_values)
        trace_oods_values[index] = trace_oods_values[index] + QM31.one()
        tampered = _redraw_after_sampled_values(
            hints, trace_oods_values, fs_output.fri_input.column_log_sizes[0], config)
        with pytest.raises(OodsNotMatching, match="trace values"):
            _replay(fs_output, tampered, air, config)

    def test_short_trace_values(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        tampered = replace(hints, trace_oods_values=hints.trace_oods_values[:2])
        with pytest.raises(InvalidHint):
            _replay(fs_output, tampered, air, config)

    def test_trailing_query_word(self, fs_output, air, config):
        hints = fs_output.fiat_shamir_hints
        words = hints.queries_hints.words
        residue = hints.queries_hints.residue
        if len(residue) < 4:
            pytest.skip("query draw consumed its last block")
        extra = int.from_bytes(residue[:4], "little")
        tampered = replace(hints, queries_hints=DrawHints(words + (extra,), residue[4:]))
        with pytest.raises(InvalidHint, match="queries hint"):
            _replay(fs_output, tampered, air, config)
