"""Commitment scheme verifier: per-tree commitments and column layouts.

Tree vectors are nested lists indexed [tree][column][...]. Tree 0 holds the
trace columns, tree 1 the composition polynomial's sub-columns.
"""

from typing import Any, List, Sequence, Tuple

from circle_primitives.channel import DIGEST_SIZE, Sha256Channel

# --- Type Aliases ---

Commitment = bytes  # 32-byte Merkle root
TreeVec = List      # [tree][column]...


# --- Tree Vector Helpers ---

def flatten_cols(tree_vec: Sequence[Sequence[Any]]) -> List[Any]:
    """Concatenate the columns of all trees, tree by tree."""
    return [col for tree in tree_vec for col in tree]


def zip_cols(lhs: Sequence[Sequence[Any]], rhs: Sequence[Sequence[Any]]) -> TreeVec:
    """Pair up two tree vectors column by column. Shapes must match."""
    if len(lhs) != len(rhs):
        raise ValueError(f"tree count mismatch: {len(lhs)} vs {len(rhs)}")
    result = []
    for tree_index, (l_tree, r_tree) in enumerate(zip(lhs, rhs)):
        if len(l_tree) != len(r_tree):
            raise ValueError(f"column count mismatch in tree {tree_index}: {len(l_tree)} vs {len(r_tree)}")
        result.append(list(zip(l_tree, r_tree)))
    return result


# --- Verifier ---

class CommitmentSchemeVerifier:
    """Tracks commitments and the extended column log-sizes of each tree."""

    def __init__(self, log_blowup_factor: int):
        self.log_blowup_factor = log_blowup_factor
        self.trees: List[Tuple[Commitment, List[int]]] = []

    def commit(self, commitment: Commitment, log_sizes: Sequence[int], channel: Sha256Channel) -> None:
        """Absorb a tree commitment whose columns have the given trace log-sizes."""
        if len(commitment) != DIGEST_SIZE:
            raise ValueError(f"commitment must be {DIGEST_SIZE} bytes, got {len(commitment)}")
        channel.mix_digest(commitment)
        extended_log_sizes = [log_size + self.log_blowup_factor for log_size in log_sizes]
        self.trees.append((commitment, extended_log_sizes))

    def commitments(self) -> List[Commitment]:
        return [commitment for commitment, _ in self.trees]

    def column_log_sizes(self) -> TreeVec:
        """Evaluation-domain log-size of every committed column, per tree."""
        return [list(log_sizes) for _, log_sizes in self.trees]
