"""
Tests for the SHA-256 channel and its draw hints.
"""

import hashlib
import struct

import pytest

from circle_primitives.channel import (
    DIGEST_SIZE,
    DrawHints,
    Sha256Channel,
    check_draw_hint,
    felt_from_draw_hint,
    word_to_m31,
)
from circle_primitives.field import M31_PRIME, QM31


class TestAbsorption:
    """Absorbing data rehashes the digest and resets the draw counter."""

    def test_from_seed(self):
        assert Sha256Channel.from_seed(b"seed").digest == hashlib.sha256(b"seed").digest()

    def test_rejects_bad_digest_length(self):
        with pytest.raises(ValueError):
            Sha256Channel(bytes(DIGEST_SIZE - 1))
        with pytest.raises(ValueError):
            Sha256Channel().mix_digest(b"short")

    def test_mix_digest(self):
        channel = Sha256Channel()
        commitment = bytes(range(32))
        channel.mix_digest(commitment)
        assert channel.digest == hashlib.sha256(bytes(32) + commitment).digest()

    def test_mix_felts_encoding(self):
        channel = Sha256Channel()
        felts = [QM31.from_ints(1, 2, 3, 4), QM31.from_ints(5, 6, 7, 8)]
        channel.mix_felts(felts)
        data = struct.pack("<8I", 1, 2, 3, 4, 5, 6, 7, 8)
        assert channel.digest == hashlib.sha256(bytes(32) + data).digest()

    def test_mix_nonce_encoding(self):
        channel = Sha256Channel()
        channel.mix_nonce(258)
        assert channel.digest == hashlib.sha256(bytes(32) + struct.pack("<Q", 258)).digest()

    def test_mix_resets_counter(self):
        channel = Sha256Channel.from_seed(b"seed")
        channel.draw_felt()
        channel.draw_felt()
        assert channel.n_draws == 2
        channel.mix_nonce(0)
        assert channel.n_draws == 0


class TestDraws:
    """Draws advance the counter but leave the digest alone."""

    def test_draw_keeps_digest(self):
        channel = Sha256Channel.from_seed(b"seed")
        digest = channel.digest
        block = channel.draw_random_bytes()
        assert channel.digest == digest
        assert channel.n_draws == 1
        assert block == hashlib.sha256(digest + struct.pack("<I", 0)).digest()

    def test_consecutive_draws_differ(self):
        channel = Sha256Channel.from_seed(b"seed")
        assert channel.draw_felt() != channel.draw_felt()

    def test_deterministic(self):
        a = Sha256Channel.from_seed(b"seed")
        b = Sha256Channel.from_seed(b"seed")
        a.mix_digest(bytes(32))
        b.mix_digest(bytes(32))
        assert a.draw_felt_and_hints() == b.draw_felt_and_hints()

    def test_copy_is_independent(self):
        channel = Sha256Channel.from_seed(b"seed")
        clone = channel.copy()
        clone.draw_felt()
        assert channel.n_draws == 0
        assert clone.digest == channel.digest


class TestDrawHints:
    """Hints reproduce the drawn block and the drawn element."""

    def test_felt_hint_shape(self):
        _, hint = Sha256Channel.from_seed(b"seed").draw_felt_and_hints()
        assert len(hint.words) == 4
        assert len(hint.residue) == 16
        assert hint.n_blocks() == 1

    def test_felt_matches_hint(self):
        felt, hint = Sha256Channel.from_seed(b"seed").draw_felt_and_hints()
        assert felt_from_draw_hint(hint) == felt

    def test_check_draw_hint(self):
        channel = Sha256Channel.from_seed(b"seed")
        channel.draw_felt()
        digest, n_draws = channel.digest, channel.n_draws
        _, hint = channel.draw_felt_and_hints()
        assert check_draw_hint(digest, n_draws, hint)
        assert not check_draw_hint(digest, n_draws + 1, hint)

    def test_check_draw_hint_rejects_altered_words(self):
        channel = Sha256Channel.from_seed(b"seed")
        _, hint = channel.draw_felt_and_hints()
        words = list(hint.words)
        words[0] ^= 1
        assert not check_draw_hint(channel.digest, 0, DrawHints(tuple(words), hint.residue))
        assert not check_draw_hint(channel.digest, 0, DrawHints(hint.words, hint.residue[:-1]))

    def test_word_to_m31(self):
        assert word_to_m31(5) == 5
        assert word_to_m31(5 | (1 << 31)) == 5
        assert word_to_m31(M31_PRIME) == 0
        assert word_to_m31(0xFFFFFFFF) == 0

    def test_felt_from_hint_needs_four_words(self):
        with pytest.raises(ValueError):
            felt_from_draw_hint(DrawHints((1, 2, 3), bytes(20)))
