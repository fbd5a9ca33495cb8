"""Protocol - Fiat-Shamir hint generation for circle STARK proofs."""

from circle_protocol.air import CompositionHint, FibonacciAir
from circle_protocol.config import StarkConfig
from circle_protocol.errors import (
    FriVerificationError,
    InvalidHint,
    InvalidNumFriLayers,
    InvalidStructure,
    LastLayerDegreeInvalid,
    OodsNotMatching,
    ProofOfWorkFailed,
    VerificationError,
)
from circle_protocol.fiat_shamir import FiatShamirHints, FriInput, FSOutput, generate_fs_hints
from circle_protocol.fri import FOLD_STEP, CirclePolyDegreeBound, FriConfig, LinePolyDegreeBound
from circle_protocol.oods import OODSHint, get_random_point_with_hint
from circle_protocol.pcs import CommitmentSchemeVerifier
from circle_protocol.pow import PoWHint, ProofOfWork, ProofOfWorkProof
from circle_protocol.proof import (
    CommitmentSchemeProof,
    FriLayerProof,
    FriProof,
    LinePoly,
    StarkProof,
    load_proof_from_json,
    proof_from_json,
    proof_to_json,
)
from circle_protocol.pushable import Builder
from circle_protocol.queries import Queries
from circle_protocol.replay import ReplayedChallenges, replay_fs_hints

__all__ = [
    # Orchestrator
    "generate_fs_hints",
    "FiatShamirHints",
    "FriInput",
    "FSOutput",
    # Replay
    "replay_fs_hints",
    "ReplayedChallenges",
    # Errors
    "VerificationError",
    "InvalidStructure",
    "OodsNotMatching",
    "FriVerificationError",
    "InvalidNumFriLayers",
    "LastLayerDegreeInvalid",
    "ProofOfWorkFailed",
    "InvalidHint",
    # Configuration
    "StarkConfig",
    "FriConfig",
    # Collaborators
    "FibonacciAir",
    "CompositionHint",
    "CommitmentSchemeVerifier",
    "OODSHint",
    "get_random_point_with_hint",
    "PoWHint",
    "ProofOfWork",
    "Queries",
    "CirclePolyDegreeBound",
    "LinePolyDegreeBound",
    "FOLD_STEP",
    # Proof
    "StarkProof",
    "CommitmentSchemeProof",
    "FriProof",
    "FriLayerProof",
    "LinePoly",
    "ProofOfWorkProof",
    "proof_to_json",
    "proof_from_json",
    "load_proof_from_json",
    # Serialization
    "Builder",
]
