"""FRI commitment-phase parameters and degree-bound folding."""

from dataclasses import dataclass
from typing import Optional

from circle_protocol.errors import InvalidNumFriLayers

# --- Constants ---

FOLD_STEP = 1
"""log2 of the folding factor applied by each inner FRI layer."""

CIRCLE_TO_LINE_FOLD_STEP = 1
"""log2 of the folding factor of the circle-to-line fold."""

LOG_LAST_LAYER_DEGREE_BOUND_RANGE = range(0, 11)
LOG_BLOWUP_FACTOR_RANGE = range(1, 17)


# --- Configuration ---

@dataclass(frozen=True)
class FriConfig:
    """FRI protocol parameters."""
    log_last_layer_degree_bound: int
    log_blowup_factor: int
    n_queries: int

    def __post_init__(self) -> None:
        if self.log_last_layer_degree_bound not in LOG_LAST_LAYER_DEGREE_BOUND_RANGE:
            raise ValueError(f"log_last_layer_degree_bound out of range: {self.log_last_layer_degree_bound}")
        if self.log_blowup_factor not in LOG_BLOWUP_FACTOR_RANGE:
            raise ValueError(f"log_blowup_factor out of range: {self.log_blowup_factor}")
        if self.n_queries <= 0:
            raise ValueError(f"n_queries must be positive, got {self.n_queries}")

    def last_layer_max_coeffs(self) -> int:
        return 1 << self.log_last_layer_degree_bound


# --- Degree Bounds ---

@dataclass(frozen=True, order=True)
class LinePolyDegreeBound:
    """log2 degree bound of a line polynomial."""
    log_degree_bound: int

    def fold(self, n_folds: int) -> Optional["LinePolyDegreeBound"]:
        """Bound after folding n_folds times, or None if it cannot fold that far."""
        if self.log_degree_bound < n_folds:
            return None
        return LinePolyDegreeBound(self.log_degree_bound - n_folds)


@dataclass(frozen=True, order=True)
class CirclePolyDegreeBound:
    """log2 degree bound of a circle polynomial (a committed column)."""
    log_degree_bound: int

    def fold_to_line(self) -> LinePolyDegreeBound:
        """Bound of the line polynomial obtained by the circle-to-line fold."""
        if self.log_degree_bound < CIRCLE_TO_LINE_FOLD_STEP:
            raise InvalidNumFriLayers()
        return LinePolyDegreeBound(self.log_degree_bound - CIRCLE_TO_LINE_FOLD_STEP)


def num_inner_layers(max_column_bound: CirclePolyDegreeBound, config: FriConfig) -> int:
    """Number of inner FRI layers that fold the largest column down to the last layer."""
    line_bound = max_column_bound.fold_to_line().log_degree_bound
    return (line_bound - config.log_last_layer_degree_bound) // FOLD_STEP
