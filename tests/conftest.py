"""
Pytest configuration and shared fixtures.

Proofs used across the suite are built once per session: building one draws the
whole transcript and grinds a nonce.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path so absolute imports work
# (tests/ is inside the root, so parent is the root)
root_dir = Path(__file__).parent.parent
if str(root_dir) not in sys.path:
    sys.path.insert(0, str(root_dir))

from circle_primitives.channel import Sha256Channel  # noqa: E402
from circle_protocol.air import FibonacciAir  # noqa: E402
from circle_protocol.config import StarkConfig  # noqa: E402
from tests.honest_proof import build_honest_proof  # noqa: E402

# Squared-Fibonacci instance: 32 rows, a_31 = CLAIM.
FIB_LOG_SIZE = 5
FIB_CLAIM = 443693538

CHANNEL_SEED = b"circle-stark-fiat-shamir-tests"


def fresh_channel() -> Sha256Channel:
    """Channel in the pre-seeded state every test proof is built against."""
    return Sha256Channel.from_seed(CHANNEL_SEED)


@pytest.fixture(scope="session")
def air() -> FibonacciAir:
    return FibonacciAir(FIB_LOG_SIZE, FIB_CLAIM)


@pytest.fixture(scope="session")
def config() -> StarkConfig:
    return StarkConfig(pow_bits=10)


@pytest.fixture(scope="session")
def honest_proof(air, config):
    return build_honest_proof(air, config, fresh_channel(), seed=1)
