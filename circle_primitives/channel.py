"""
Fiat-Shamir channel over SHA-256, with replay hints for every draw.

The channel keeps a 32-byte digest and a draw counter. Absorbing anything
(a digest, field elements, a nonce) rehashes the digest and resets the counter;
each draw hashes (digest || counter) into a fresh 32-byte block without touching
the digest. Every draw also returns a DrawHints: the raw 32-bit words that were
consumed from the drawn blocks plus the unconsumed tail of the last block. A
script verifier that can hash but cannot cheaply split a hash into words checks
a draw by concatenating the hinted words and residue and comparing the result
with the block it hashed itself.
"""

import hashlib
import struct
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from circle_primitives.field import M31_PRIME, QM31, SECURE_EXTENSION_DEGREE

# --- Constants ---

DIGEST_SIZE = 32
WORD_SIZE = 4
WORDS_PER_BLOCK = DIGEST_SIZE // WORD_SIZE

_M31_MASK = 0x7FFFFFFF


# --- Hints ---

@dataclass(frozen=True)
class DrawHints:
    """Replay witness for one challenge draw.

    Attributes:
        words: Raw little-endian u32 words consumed, in draw order, across
               as many blocks as the draw needed.
        residue: Bytes of the last drawn block that were not consumed.
    """
    words: Tuple[int, ...]
    residue: bytes

    def n_blocks(self) -> int:
        consumed = len(self.words) * WORD_SIZE + len(self.residue)
        return consumed // DIGEST_SIZE

    def push_to(self, builder) -> None:
        for word in self.words:
            builder.push_int(word)
        builder.push_bytes(self.residue)


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def _block_hash(digest: bytes, counter: int) -> bytes:
    return _sha256(digest + struct.pack("<I", counter))


def _split_words(block: bytes) -> List[int]:
    return np.frombuffer(block, dtype="<u4").tolist()


def word_to_m31(word: int) -> int:
    """Map a raw u32 word to a base field element: keep 31 bits, reduce mod p."""
    return (word & _M31_MASK) % M31_PRIME


def felt_from_draw_hint(hint: DrawHints) -> QM31:
    """Recover the drawn QM31 challenge from its hint."""
    if len(hint.words) != SECURE_EXTENSION_DEGREE:
        raise ValueError(f"felt draw consumes {SECURE_EXTENSION_DEGREE} words, hint has {len(hint.words)}")
    return QM31.from_ints(*(word_to_m31(w) for w in hint.words))


def check_draw_hint(digest: bytes, n_draws: int, hint: DrawHints) -> bool:
    """Check that `hint` is exactly what drawing from (digest, n_draws) consumed."""
    n_blocks = hint.n_blocks()
    if n_blocks == 0 or (len(hint.words) * WORD_SIZE + len(hint.residue)) % DIGEST_SIZE != 0:
        return False
    blocks = b"".join(_block_hash(digest, n_draws + j) for j in range(n_blocks))
    claimed = struct.pack(f"<{len(hint.words)}I", *hint.words) + hint.residue
    return blocks == claimed


# --- Channel ---

class Sha256Channel:
    """
    Fiat-Shamir channel using SHA-256.

    Attributes:
        digest: Current 32-byte transcript digest
        n_draws: Number of blocks drawn since the last absorption
    """

    def __init__(self, digest: bytes = bytes(DIGEST_SIZE)):
        if len(digest) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
        self.digest = bytes(digest)
        self.n_draws = 0

    @classmethod
    def from_seed(cls, seed: bytes) -> "Sha256Channel":
        """Channel pre-seeded with SHA-256(seed)."""
        return cls(_sha256(seed))

    def copy(self) -> "Sha256Channel":
        channel = Sha256Channel(self.digest)
        channel.n_draws = self.n_draws
        return channel

    # --- Absorption ---

    def _absorb(self, data: bytes) -> None:
        self.digest = _sha256(self.digest + data)
        self.n_draws = 0

    def mix_digest(self, digest: bytes) -> None:
        """Absorb a commitment or other 32-byte digest."""
        if len(digest) != DIGEST_SIZE:
            raise ValueError(f"digest must be {DIGEST_SIZE} bytes, got {len(digest)}")
        self._absorb(bytes(digest))

    def mix_felts(self, felts: Sequence[QM31]) -> None:
        """Absorb secure field elements, 16 bytes each."""
        self._absorb(b"".join(f.to_bytes() for f in felts))

    def mix_nonce(self, nonce: int) -> None:
        self._absorb(struct.pack("<Q", nonce))

    # --- Squeezing ---

    def draw_random_bytes(self) -> bytes:
        """Draw one 32-byte block."""
        block = _block_hash(self.digest, self.n_draws)
        self.n_draws += 1
        return block

    def draw_felt_and_hints(self) -> Tuple[QM31, DrawHints]:
        """Draw a QM31 challenge from the first four words of one block."""
        block = self.draw_random_bytes()
        words = _split_words(block)[:SECURE_EXTENSION_DEGREE]
        hint = DrawHints(words=tuple(words), residue=block[SECURE_EXTENSION_DEGREE * WORD_SIZE:])
        return felt_from_draw_hint(hint), hint

    def draw_felt(self) -> QM31:
        felt, _ = self.draw_felt_and_hints()
        return felt

    def __repr__(self) -> str:
        return f"Sha256Channel(digest={self.digest.hex()}, n_draws={self.n_draws})"
