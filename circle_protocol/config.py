"""Protocol parameters for proof verification."""

import json
from dataclasses import dataclass, fields
from typing import Any, Dict

from circle_protocol.fri import FriConfig

# --- Defaults ---

LOG_BLOWUP_FACTOR = 1
LOG_LAST_LAYER_DEGREE_BOUND = 0
N_QUERIES = 3
PROOF_OF_WORK_BITS = 12

_CAMEL_CASE_KEYS = {
    "logBlowupFactor": "log_blowup_factor",
    "logLastLayerDegreeBound": "log_last_layer_degree_bound",
    "nQueries": "n_queries",
    "powBits": "pow_bits",
}


@dataclass(frozen=True)
class StarkConfig:
    """Fixed protocol constants shared by prover and verifier."""
    log_blowup_factor: int = LOG_BLOWUP_FACTOR
    log_last_layer_degree_bound: int = LOG_LAST_LAYER_DEGREE_BOUND
    n_queries: int = N_QUERIES
    pow_bits: int = PROOF_OF_WORK_BITS

    def __post_init__(self) -> None:
        if self.pow_bits < 0 or self.pow_bits > 256:
            raise ValueError(f"pow_bits must be in [0, 256], got {self.pow_bits}")
        # FriConfig validates the remaining fields.
        self.fri_config()

    def fri_config(self) -> FriConfig:
        return FriConfig(
            log_last_layer_degree_bound=self.log_last_layer_degree_bound,
            log_blowup_factor=self.log_blowup_factor,
            n_queries=self.n_queries,
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StarkConfig":
        """Build from a dict with snake_case or camelCase keys; missing keys keep defaults."""
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in d.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise KeyError(f"Unknown config key '{key}'")
            kwargs[name] = int(value)
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str) -> "StarkConfig":
        """Load StarkConfig from a JSON file."""
        with open(path) as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> Dict[str, int]:
        return {
            "logBlowupFactor": self.log_blowup_factor,
            "logLastLayerDegreeBound": self.log_last_layer_degree_bound,
            "nQueries": self.n_queries,
            "powBits": self.pow_bits,
        }
