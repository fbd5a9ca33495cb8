"""STARK proof data structures and JSON serialization.

Only the parts of the proof the Fiat-Shamir phase reads are modelled here:
commitments, the sampled-value table, FRI layer commitments, the last-layer
polynomial and the proof-of-work nonce.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from circle_primitives.channel import DIGEST_SIZE
from circle_primitives.field import QM31
from circle_protocol.pow import ProofOfWorkProof

# --- Type Aliases ---

Hash = bytes  # SHA-256 Merkle root
SampledValues = List[List[List[QM31]]]  # [tree][column][sample]


# --- Proof Data Structures ---

@dataclass
class LinePoly:
    """Line polynomial in coefficient form."""
    coeffs: List[QM31] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.coeffs)


@dataclass
class FriLayerProof:
    """Commitment of one inner FRI layer."""
    commitment: Hash = bytes(DIGEST_SIZE)


@dataclass
class FriProof:
    """FRI commitment-phase data: inner layers, outermost first, and the last layer."""
    inner_layers: List[FriLayerProof] = field(default_factory=list)
    last_layer_poly: LinePoly = field(default_factory=LinePoly)


@dataclass
class CommitmentSchemeProof:
    """Everything the commitment scheme contributes to a proof.

    Attributes:
        sampled_values: Values of each committed column at its sample points,
                        indexed [tree][column][sample].
        fri_proof: FRI layer commitments and last-layer polynomial.
        proof_of_work: Grinding nonce.
    """
    sampled_values: SampledValues = field(default_factory=list)
    fri_proof: FriProof = field(default_factory=FriProof)
    proof_of_work: ProofOfWorkProof = field(default_factory=lambda: ProofOfWorkProof(0))


@dataclass
class StarkProof:
    """Complete STARK proof for a single AIR.

    Attributes:
        commitments: Trace commitment, then composition-polynomial commitment.
        commitment_scheme_proof: Sampled values, FRI data and nonce.
    """
    commitments: List[Hash] = field(default_factory=list)
    commitment_scheme_proof: CommitmentSchemeProof = field(default_factory=CommitmentSchemeProof)


# --- JSON Serialization ---

def _qm31_to_json(v: QM31) -> List[str]:
    return [str(c) for c in v.to_ints()]


def _qm31_from_json(j: List[Any]) -> QM31:
    # Coordinates must be canonical; c and c + p would otherwise decode alike.
    return QM31.from_m31_array([int(c) for c in j])


def _nonce_from_json(s: str) -> int:
    nonce = int(s)
    if not 0 <= nonce < 1 << 64:
        raise ValueError(f"nonce must fit in 64 bits, got {nonce}")
    return nonce


def _hash_from_json(s: str) -> Hash:
    h = bytes.fromhex(s)
    if len(h) != DIGEST_SIZE:
        raise ValueError(f"hash must be {DIGEST_SIZE} bytes, got {len(h)}")
    return h


def proof_to_json(proof: StarkProof) -> Dict[str, Any]:
    """Convert STARK proof to JSON-serializable dictionary."""
    csp = proof.commitment_scheme_proof
    return {
        "commitments": [c.hex() for c in proof.commitments],
        "sampledValues": [
            [[_qm31_to_json(v) for v in column] for column in tree]
            for tree in csp.sampled_values
        ],
        "fri": {
            "innerLayers": [{"commitment": layer.commitment.hex()} for layer in csp.fri_proof.inner_layers],
            "lastLayerPoly": [_qm31_to_json(c) for c in csp.fri_proof.last_layer_poly.coeffs],
        },
        "nonce": str(csp.proof_of_work.nonce),
    }


def proof_from_json(j: Dict[str, Any]) -> StarkProof:
    """Inverse of proof_to_json."""
    try:
        sampled_values = [
            [[_qm31_from_json(v) for v in column] for column in tree]
            for tree in j["sampledValues"]
        ]
        fri = j["fri"]
        fri_proof = FriProof(
            inner_layers=[FriLayerProof(_hash_from_json(layer["commitment"])) for layer in fri["innerLayers"]],
            last_layer_poly=LinePoly([_qm31_from_json(c) for c in fri["lastLayerPoly"]]),
        )
        return StarkProof(
            commitments=[_hash_from_json(c) for c in j["commitments"]],
            commitment_scheme_proof=CommitmentSchemeProof(
                sampled_values=sampled_values,
                fri_proof=fri_proof,
                proof_of_work=ProofOfWorkProof(_nonce_from_json(j["nonce"])),
            ),
        )
    except KeyError as e:
        raise ValueError(f"Proof JSON is missing field {e}") from e


def load_proof_from_json(path: str) -> StarkProof:
    """Load STARK proof from JSON file."""
    with open(path) as f:
        return proof_from_json(json.load(f))


def save_proof_to_json(proof: StarkProof, path: str) -> None:
    with open(path, "w") as f:
        json.dump(proof_to_json(proof), f, indent=2)
