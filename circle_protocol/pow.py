"""Proof of work (grinding) over the channel digest."""

import hashlib
import logging
import struct
from dataclasses import dataclass
from typing import Optional

from circle_primitives.channel import Sha256Channel
from circle_protocol.errors import ProofOfWorkFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProofOfWorkProof:
    nonce: int


def hash_with_nonce(digest: bytes, nonce: int) -> bytes:
    return hashlib.sha256(digest + struct.pack("<Q", nonce)).digest()


def leading_zero_bits(data: bytes) -> int:
    """Number of leading zero bits, reading bytes big-endian."""
    return len(data) * 8 - int.from_bytes(data, "big").bit_length()


@dataclass(frozen=True)
class PoWHint:
    """Replay witness tying a nonce to the digest and difficulty.

    The script verifier recomputes SHA-256(digest || nonce) and compares it with
    n_bits // 8 zero bytes, then `msb` (when n_bits is not byte aligned, a byte
    it range-checks below 2^(8 - n_bits % 8)), then `prefix`.
    """
    digest: bytes
    nonce: int
    n_bits: int
    prefix: bytes
    msb: Optional[int]

    @classmethod
    def from_digest(cls, digest: bytes, nonce: int, n_bits: int) -> "PoWHint":
        h = hash_with_nonce(digest, nonce)
        n_zero_bytes = n_bits // 8
        if n_bits % 8 == 0:
            return cls(digest, nonce, n_bits, prefix=h[n_zero_bytes:], msb=None)
        return cls(digest, nonce, n_bits, prefix=h[n_zero_bytes + 1:], msb=h[n_zero_bytes])

    def push_to(self, builder) -> None:
        builder.push_bytes(struct.pack("<Q", self.nonce))
        builder.push_bytes(self.prefix)
        if self.msb is not None:
            builder.push_int(self.msb)


class ProofOfWork:
    """Checks that a nonce grinds the current digest to n_bits leading zeros."""

    def __init__(self, n_bits: int):
        self.n_bits = n_bits

    def verify(self, channel: Sha256Channel, proof: ProofOfWorkProof) -> None:
        """Check the nonce against the channel digest, then absorb it.

        Raises:
            ProofOfWorkFailed: If the nonce does not meet the difficulty.
        """
        zeros = leading_zero_bits(hash_with_nonce(channel.digest, proof.nonce))
        if zeros < self.n_bits:
            logger.info("Proof of work failed: %d leading zero bits, need %d", zeros, self.n_bits)
            raise ProofOfWorkFailed(f"nonce {proof.nonce} gives {zeros} leading zero bits, need {self.n_bits}")
        channel.mix_nonce(proof.nonce)


def grind(channel: Sha256Channel, n_bits: int) -> int:
    """Find the smallest nonce satisfying the difficulty for the channel digest."""
    nonce = 0
    while leading_zero_bits(hash_with_nonce(channel.digest, nonce)) < n_bits:
        nonce += 1
    logger.debug("Ground nonce %d for %d bits", nonce, n_bits)
    return nonce
