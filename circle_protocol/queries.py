"""Query sampling for the FRI opening phase."""

import struct
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from circle_primitives.channel import WORD_SIZE, WORDS_PER_BLOCK, DrawHints, Sha256Channel


@dataclass(frozen=True)
class Queries:
    """Sorted, unique positions in an evaluation domain of size 2^log_domain_size."""
    positions: Tuple[int, ...]
    log_domain_size: int

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[int]:
        return iter(self.positions)

    def __getitem__(self, i: int) -> int:
        return self.positions[i]

    @classmethod
    def generate_with_hints(
        cls,
        channel: Sha256Channel,
        log_domain_size: int,
        n_queries: int,
    ) -> Tuple["Queries", DrawHints]:
        """Draw n_queries unique positions, one per 32-bit word, from channel blocks."""
        if n_queries > (1 << log_domain_size):
            raise ValueError(f"cannot draw {n_queries} unique queries from a domain of size 2^{log_domain_size}")
        mask = (1 << log_domain_size) - 1
        positions = set()
        words: List[int] = []
        residue = b""
        while len(positions) < n_queries:
            block = channel.draw_random_bytes()
            block_words = struct.unpack(f"<{WORDS_PER_BLOCK}I", block)
            n_used = 0
            for word in block_words:
                if len(positions) == n_queries:
                    break
                words.append(word)
                positions.add(word & mask)
                n_used += 1
            residue = block[n_used * WORD_SIZE:]
        queries = cls(positions=tuple(sorted(positions)), log_domain_size=log_domain_size)
        return queries, DrawHints(words=tuple(words), residue=residue)

    @classmethod
    def from_hint(cls, hint: DrawHints, log_domain_size: int, n_queries: int) -> "Queries":
        """Recompute the positions a query draw produced from its hint.

        The draw stops at the word completing n_queries unique positions, so a
        hint holding words past that point is rejected.
        """
        mask = (1 << log_domain_size) - 1
        positions = set()
        for index, word in enumerate(hint.words):
            if len(positions) == n_queries:
                raise ValueError(f"hint has {len(hint.words) - index} words past the last query")
            positions.add(word & mask)
        if len(positions) != n_queries:
            raise ValueError(f"hint yields {len(positions)} unique queries, expected {n_queries}")
        return cls(positions=tuple(sorted(positions)), log_domain_size=log_domain_size)

    def fold(self, n_folds: int) -> "Queries":
        """Positions in the domain folded n_folds times."""
        if n_folds > self.log_domain_size:
            raise ValueError(f"cannot fold {n_folds} times a domain of log size {self.log_domain_size}")
        folded = sorted({p >> n_folds for p in self.positions})
        return Queries(positions=tuple(folded), log_domain_size=self.log_domain_size - n_folds)
