"""Shared test fixtures for spatialcells test suite.

Fixture Naming Convention
=========================

**Environment fixtures** follow the pattern:
    {size}_{dims}d_{boundary}_env

Where:
    - size: coarse (dx=0.1) or fine (dx=0.02)
    - dims: 1d, 2d
    - boundary: solid (default, omitted) or periodic

**Agent fixtures** are named after the environment they live in
(e.g., ``agent_2d`` sits still in the centre of ``coarse_2d_env``).
``make_agent`` builds an agent from an arbitrary position list;
``walking_agent`` and ``simulated_agent`` move through ``fine_2d_env``.
"""

import os

import numpy as np
import pytest
from hypothesis import Phase, Verbosity, settings

from spatialcells.environment import Environment
from spatialcells.simulation import Agent

# =============================================================================
# Hypothesis Configuration for Performance
# =============================================================================
# Register Hypothesis profiles for different testing scenarios:
# - "ci": Fast profile for CI pipelines (fewer examples, no deadline)
# - "dev": Standard development profile (moderate examples)
# - "thorough": Full property testing (many examples, for pre-release)

settings.register_profile(
    "ci",
    max_examples=10,
    deadline=None,
    suppress_health_check=[],
    phases=[Phase.explicit, Phase.reuse, Phase.generate],
    verbosity=Verbosity.quiet,
)

settings.register_profile(
    "dev",
    max_examples=25,
    deadline=5000,
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "thorough",
    max_examples=100,
    deadline=None,
    verbosity=Verbosity.verbose,
)

# Set HYPOTHESIS_PROFILE=ci in CI environments for faster tests
_profile = os.environ.get("HYPOTHESIS_PROFILE", "dev")
settings.load_profile(_profile)

# =============================================================================
# Test Configuration Constants
# =============================================================================

COARSE_DX = 0.1
FINE_DX = 0.02

DEFAULT_SEED = 42
ALT_SEED = 43

TIGHT_TOLERANCE = 1e-10
LOOSE_TOLERANCE = 1e-6


# =============================================================================
# --- Fixtures ---
# =============================================================================
@pytest.fixture(scope="session")
def coarse_2d_env() -> Environment:
    """Unit square with 11 x 11 grid points.

    Session-scoped: environments are read-only in tests.
    """
    return Environment(extent=(0, 1, 0, 1), dx=COARSE_DX)


@pytest.fixture(scope="session")
def fine_2d_env() -> Environment:
    """Unit square with 51 x 51 grid points."""
    return Environment(extent=(0, 1, 0, 1), dx=FINE_DX)


@pytest.fixture(scope="session")
def coarse_1d_env() -> Environment:
    """Unit track with 11 grid points."""
    return Environment(extent=(0, 1), dimensionality="1D", dx=COARSE_DX)


@pytest.fixture(scope="session")
def coarse_2d_periodic_env() -> Environment:
    """Unit torus with 11 x 11 grid points."""
    return Environment(
        extent=(0, 1, 0, 1), boundary_conditions="periodic", dx=COARSE_DX
    )


@pytest.fixture
def make_agent():
    """Factory for agents replaying a list of positions at dt = 0.1 s."""

    def _make_agent(env: Environment, positions, dt: float = 0.1) -> Agent:
        positions = np.asarray(positions, dtype=np.float64).reshape(-1, env.n_dims)
        times = np.arange(len(positions)) * dt
        return Agent(env, times=times, positions=positions)

    return _make_agent


@pytest.fixture
def agent_2d(coarse_2d_env, make_agent) -> Agent:
    """Agent standing still in the centre of the unit square for 10 steps."""
    return make_agent(coarse_2d_env, [[0.5, 0.5]] * 10)


@pytest.fixture
def agent_1d(coarse_1d_env, make_agent) -> Agent:
    """Agent walking along the unit track."""
    return make_agent(coarse_1d_env, np.linspace(0.0, 1.0, 11))


@pytest.fixture
def rng() -> np.random.Generator:
    """Deterministic random number generator for reproducible tests."""
    return np.random.default_rng(DEFAULT_SEED)


@pytest.fixture
def walking_agent(fine_2d_env) -> Agent:
    """Agent crossing the unit square diagonally in 2 s at 100 Hz.

    Returns
    -------
    Agent
        200 samples from (0.1, 0.1) to (0.9, 0.9).
    """
    times = np.arange(200) * 0.01
    positions = np.column_stack([np.linspace(0.1, 0.9, 200)] * 2)
    return Agent(fine_2d_env, times=times, positions=positions)


@pytest.fixture
def simulated_agent(fine_2d_env) -> Agent:
    """Agent on a 3 s simulated OU trajectory."""
    return Agent.simulate(fine_2d_env, duration=3.0, seed=0)
