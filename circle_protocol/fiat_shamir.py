"""Fiat-Shamir hint generation.

Replays the verifier's transcript for a proof, checks everything a sound
verifier checks before the FRI opening phase, and records the hints a
script verifier needs to re-derive each challenge cheaply.

Transcript order (absorb-before-draw, never reordered):
1. trace commitment -> random_coeff
2. composition commitment -> OODS point
3. sampled values -> random_coeff (second draw)
4. circle-to-line folding alpha
5. per inner FRI layer: layer commitment -> folding alpha
6. last-layer polynomial -> proof-of-work nonce -> query positions

The channel is mutated in place. On failure it is left in whatever state the
failing check found it; it must not be reused for another attempt.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from circle_primitives.channel import DIGEST_SIZE, DrawHints, Sha256Channel
from circle_primitives.circle import CirclePoint, Coset, LineDomain
from circle_primitives.field import QM31
from circle_protocol.air import CompositionHint, FibonacciAir
from circle_protocol.config import StarkConfig
from circle_protocol.errors import (
    InvalidNumFriLayers,
    InvalidStructure,
    LastLayerDegreeInvalid,
    OodsNotMatching,
)
from circle_protocol.fri import FOLD_STEP, CirclePolyDegreeBound
from circle_protocol.oods import OODSHint, get_random_point_with_hint
from circle_protocol.pcs import CommitmentSchemeVerifier, Commitment, flatten_cols, zip_cols
from circle_protocol.pow import PoWHint, ProofOfWork
from circle_protocol.proof import StarkProof
from circle_protocol.pushable import Builder
from circle_protocol.queries import Queries

logger = logging.getLogger(__name__)

N_COMMITMENTS = 2
NONCE_BOUND = 1 << 64


# --- Output Bundles ---

@dataclass
class FiatShamirHints:
    """Hints for replaying the Fiat-Shamir transform up to query sampling.

    Field order is the wire order of `push_to`.
    """
    # Trace and composition commitments from the proof.
    commitments: List[Commitment]

    # random_coeff drawn after absorbing commitments[0].
    random_coeff_hint: DrawHints

    oods_hint: OODSHint

    # Trace mask values at the OODS point.
    trace_oods_values: List[QM31]

    # Composition value split into its sub-column values.
    composition_oods_values: List[QM31]

    composition_hint: CompositionHint

    # random_coeff drawn after absorbing all sampled values.
    random_coeff_hint2: DrawHints

    circle_poly_alpha_hint: DrawHints

    # (layer commitment, folding alpha hint) per inner layer, outermost first.
    fri_commitment_and_folding_hints: List[Tuple[Commitment, DrawHints]]

    last_layer: List[QM31]

    pow_hint: PoWHint

    queries_hints: DrawHints

    def push_to(self, builder: Builder) -> None:
        builder.push_bytes(self.commitments[0])
        self.random_coeff_hint.push_to(builder)
        builder.push_bytes(self.commitments[1])
        self.oods_hint.push_to(builder)
        for v in self.trace_oods_values:
            v.push_to(builder)
        for v in self.composition_oods_values:
            v.push_to(builder)
        self.composition_hint.push_to(builder)
        self.random_coeff_hint2.push_to(builder)
        self.circle_poly_alpha_hint.push_to(builder)
        for commitment, folding_hint in self.fri_commitment_and_folding_hints:
            builder.push_bytes(commitment)
            folding_hint.push_to(builder)
        for coeff in self.last_layer:
            coeff.push_to(builder)
        self.pow_hint.push_to(builder)
        self.queries_hints.push_to(builder)

    def to_builder(self) -> Builder:
        builder = Builder()
        self.push_to(builder)
        return builder


@dataclass
class FriInput:
    """Parameters for the FRI opening verifier derived from the transcript."""
    fri_log_blowup_factor: int

    # Largest column degree bound (log2).
    max_column_log_degree_bound: int

    # Distinct column log-sizes, strictly descending.
    column_log_sizes: List[int]

    # Evaluation-domain log-size of each committed column, per tree.
    commitment_scheme_column_log_sizes: List[List[int]]

    # Sample points per column, per tree: trace mask points, then the OODS point
    # once per composition sub-column.
    sampled_points: List[List[List[CirclePoint]]]

    sample_values: List[List[List[QM31]]]

    # Second random_coeff; the first one is only used for the OODS check.
    random_coeff: QM31

    circle_poly_alpha: QM31

    folding_alphas: List[QM31] = field(default_factory=list)

    last_layer_domain: Optional[LineDomain] = None

    queries: Optional[Queries] = None


@dataclass
class FSOutput:
    """Fiat-Shamir hints along with FRI inputs."""
    fiat_shamir_hints: FiatShamirHints
    fri_input: FriInput


# --- Orchestration ---

def _check_proof_shape(proof: StarkProof) -> None:
    """Reject proof fields the transcript cannot absorb.

    Raises:
        InvalidStructure: On a wrong commitment count, a commitment that is not
            DIGEST_SIZE bytes, or a nonce outside [0, 2^64).
    """
    if len(proof.commitments) != N_COMMITMENTS:
        raise InvalidStructure(f"expected {N_COMMITMENTS} commitments, got {len(proof.commitments)}")
    for i, commitment in enumerate(proof.commitments):
        if len(commitment) != DIGEST_SIZE:
            raise InvalidStructure(f"commitment {i} is {len(commitment)} bytes, expected {DIGEST_SIZE}")
    csp = proof.commitment_scheme_proof
    for i, layer in enumerate(csp.fri_proof.inner_layers):
        if len(layer.commitment) != DIGEST_SIZE:
            raise InvalidStructure(
                f"FRI layer {i} commitment is {len(layer.commitment)} bytes, expected {DIGEST_SIZE}")
    nonce = csp.proof_of_work.nonce
    if not 0 <= nonce < NONCE_BOUND:
        raise InvalidStructure(f"proof-of-work nonce {nonce} does not fit in 64 bits")


def generate_fs_hints(
    proof: StarkProof,
    channel: Sha256Channel,
    air: FibonacciAir,
    config: Optional[StarkConfig] = None,
) -> FSOutput:
    """Generate Fiat-Shamir hints along with FRI inputs.

    Args:
        proof: Proof to check.
        channel: Pre-seeded channel, owned by this call until it returns.
        air: Constraint system the proof claims to satisfy.
        config: Protocol constants (defaults to StarkConfig()).

    Returns:
        FSOutput with the hint bundle and the FRI opening parameters.

    Raises:
        InvalidStructure, OodsNotMatching, InvalidNumFriLayers,
        LastLayerDegreeInvalid, ProofOfWorkFailed: On the first failed check.
    """
    config = config or StarkConfig()
    fri_config = config.fri_config()
    csp = proof.commitment_scheme_proof

    _check_proof_shape(proof)

    # --- Commitments and OODS point ---
    commitment_scheme = CommitmentSchemeVerifier(fri_config.log_blowup_factor)
    commitment_scheme.commit(proof.commitments[0], air.column_log_sizes(), channel)
    random_coeff, random_coeff_hint = channel.draw_felt_and_hints()

    commitment_scheme.commit(
        proof.commitments[1],
        [air.composition_log_degree_bound()] * air.composition_split,
        channel,
    )
    oods_point, oods_hint = get_random_point_with_hint(channel)
    logger.debug("Drew OODS point after %d commitments", N_COMMITMENTS)

    # --- Sample points ---
    trace_sample_points = air.mask_points(oods_point)
    # Tree 0: trace columns. Tree 1: composition sub-columns, all at the OODS point.
    sampled_points = [
        flatten_cols(trace_sample_points),
        [[oods_point] for _ in range(air.composition_split)],
    ]
    # Reorganization only: the trace tree must reproduce the AIR's mask layout.
    assert [len(column) for column in sampled_points[0]] == [len(offsets) for offsets in air.mask_offsets]
    assert sampled_points[0][0][0] == oods_point
    assert all(column == [oods_point] for column in sampled_points[1])

    # --- OODS check ---
    trace_oods_values, composition_oods_value = air.sampled_values_to_mask(csp.sampled_values)

    if composition_oods_value != air.eval_composition_polynomial_at_point(oods_point, trace_oods_values, random_coeff):
        logger.info("Rejecting proof: composition value does not match the trace mask")
        raise OodsNotMatching()

    composition_hint = air.composition_hint(oods_point, trace_oods_values)

    sample_values = [[list(column) for column in tree] for tree in csp.sampled_values]
    channel.mix_felts([v for column in flatten_cols(sample_values) for v in column])
    random_coeff, random_coeff_hint2 = channel.draw_felt_and_hints()

    # --- FRI degree bounds ---
    column_bounds = [
        [CirclePolyDegreeBound(log_size - fri_config.log_blowup_factor)] * len(points)
        for log_size, points in flatten_cols(zip_cols(commitment_scheme.column_log_sizes(), sampled_points))
    ]
    bounds = sorted({bound for column in column_bounds for bound in column}, reverse=True)
    max_column_bound = bounds[0]

    # Circle polynomials can all be folded with the same alpha.
    circle_poly_alpha, circle_poly_alpha_hint = channel.draw_felt_and_hints()

    # --- FRI inner layers ---
    layer_bound = max_column_bound.fold_to_line()
    layer_domain = LineDomain(Coset.half_odds(layer_bound.log_degree_bound + fri_config.log_blowup_factor))

    fri_commitment_and_folding_hints = []
    folding_alphas = []
    for layer_index, layer in enumerate(csp.fri_proof.inner_layers):
        channel.mix_digest(layer.commitment)

        folding_alpha, folding_alpha_hint = channel.draw_felt_and_hints()
        folding_alphas.append(folding_alpha)
        fri_commitment_and_folding_hints.append((layer.commitment, folding_alpha_hint))

        next_bound = layer_bound.fold(FOLD_STEP)
        if next_bound is None:
            logger.info("Rejecting proof: FRI layer %d cannot fold bound %d",
                        layer_index, layer_bound.log_degree_bound)
            raise InvalidNumFriLayers()
        layer_bound = next_bound
        layer_domain = layer_domain.double()

    if layer_bound.log_degree_bound != fri_config.log_last_layer_degree_bound:
        logger.info("Rejecting proof: %d FRI layers end at bound %d, expected %d",
                    len(csp.fri_proof.inner_layers), layer_bound.log_degree_bound,
                    fri_config.log_last_layer_degree_bound)
        raise InvalidNumFriLayers()

    last_layer_domain = layer_domain
    last_layer_poly = csp.fri_proof.last_layer_poly

    if len(last_layer_poly) > fri_config.last_layer_max_coeffs():
        logger.info("Rejecting proof: last layer has %d coefficients, bound is %d",
                    len(last_layer_poly), fri_config.last_layer_max_coeffs())
        raise LastLayerDegreeInvalid()
    if len(last_layer_poly) == 0:
        raise InvalidStructure("empty last layer polynomial")

    channel.mix_felts(last_layer_poly.coeffs)

    # --- Proof of work ---
    pow_hint = PoWHint.from_digest(channel.digest, csp.proof_of_work.nonce, config.pow_bits)
    ProofOfWork(config.pow_bits).verify(channel, csp.proof_of_work)

    # --- Queries ---
    column_log_sizes = [bound.log_degree_bound + fri_config.log_blowup_factor for bound in bounds]
    queries, queries_hints = Queries.generate_with_hints(channel, column_log_sizes[0], fri_config.n_queries)
    logger.debug("Sampled %d queries in domain of log size %d", len(queries), column_log_sizes[0])

    fiat_shamir_hints = FiatShamirHints(
        commitments=[proof.commitments[0], proof.commitments[1]],
        random_coeff_hint=random_coeff_hint,
        oods_hint=oods_hint,
        trace_oods_values=[v for column in sample_values[0] for v in column],
        composition_oods_values=[column[0] for column in sample_values[1]],
        composition_hint=composition_hint,
        random_coeff_hint2=random_coeff_hint2,
        circle_poly_alpha_hint=circle_poly_alpha_hint,
        fri_commitment_and_folding_hints=fri_commitment_and_folding_hints,
        last_layer=list(last_layer_poly.coeffs),
        pow_hint=pow_hint,
        queries_hints=queries_hints,
    )

    fri_input = FriInput(
        fri_log_blowup_factor=fri_config.log_blowup_factor,
        max_column_log_degree_bound=max_column_bound.log_degree_bound,
        column_log_sizes=column_log_sizes,
        commitment_scheme_column_log_sizes=commitment_scheme.column_log_sizes(),
        sampled_points=sampled_points,
        sample_values=sample_values,
        random_coeff=random_coeff,
        circle_poly_alpha=circle_poly_alpha,
        folding_alphas=folding_alphas,
        last_layer_domain=last_layer_domain,
        queries=queries,
    )

    return FSOutput(fiat_shamir_hints=fiat_shamir_hints, fri_input=fri_input)
