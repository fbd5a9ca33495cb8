"""Verification failures.

Every check in the Fiat-Shamir pipeline is fatal: the first failing check raises
one of these and the proof is rejected. The subclass names the check, which is
useful when triaging fuzzing or tampering results.
"""


class VerificationError(Exception):
    """Raised when a proof is rejected."""


class InvalidStructure(VerificationError):
    """Proof data does not have the shape the AIR expects."""

    def __init__(self, reason: str = "Unexpected sampled_values structure"):
        super().__init__(reason)
        self.reason = reason


class OodsNotMatching(VerificationError):
    """Composition value recomputed from the trace mask disagrees with the proof."""


class FriVerificationError(VerificationError):
    """Base class for FRI commitment-phase failures."""


class InvalidNumFriLayers(FriVerificationError):
    """Folding stopped before, or ran past, the last-layer degree bound."""


class LastLayerDegreeInvalid(FriVerificationError):
    """Last-layer polynomial has more coefficients than its degree bound allows."""


class ProofOfWorkFailed(VerificationError):
    """Nonce does not meet the digest-derived difficulty."""


class InvalidHint(VerificationError):
    """A hint in a hint bundle does not replay against the channel."""
