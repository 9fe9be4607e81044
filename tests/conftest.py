"""Shared fixtures for pyCoreChron tests."""

import numpy as np
import pytest

from pyCoreChron import PosteriorEnsemble, FitResult, build_hierarchy


@pytest.fixture
def small_hierarchy():
    """K = [2, 2] over [0, 4]: two coarse and four fine sections."""
    return build_hierarchy(0.0, 4.0, K=[2, 2])


@pytest.fixture
def scenario_fit(small_hierarchy):
    """
    One draw with finest rates [10, 10, 20, 20] (time per depth), anchored at age 100.

    Level-0 multipliers [1, 2] on an overall mean of 10, level-1 multipliers all 1.
    """
    ensemble = PosteriorEnsemble(
        overall_mean_rate=[10.0],
        multipliers=[[1.0, 2.0, 1.0, 1.0, 1.0, 1.0]],
        memory=[0.5],
    )
    return FitResult(hierarchy=small_hierarchy, ensemble=ensemble, anchor_age=100.0)


@pytest.fixture
def synthetic_fit():
    """Three chains of 200 independent draws over a [0, 50] core with K = [5, 2]."""
    rng = np.random.default_rng(42)
    hierarchy = build_hierarchy(0.0, 50.0, K=[5, 2])
    n_chains, n_per_chain = 3, 200
    n_draws = n_chains * n_per_chain

    ensemble = PosteriorEnsemble(
        overall_mean_rate=rng.gamma(20.0, 1.0, n_draws),
        multipliers=rng.gamma(10.0, 0.1, (n_draws, hierarchy.n_nodes)),
        memory=rng.beta(5.0, 5.0, n_draws),
        chain=np.repeat(np.arange(n_chains), n_per_chain),
        start_age=rng.normal(50.0, 5.0, n_draws),
    )
    depth = np.array([0.0, 12.0, 25.0, 37.0, 50.0])
    obs_age = np.array([50.0, 300.0, 560.0, 800.0, 1050.0])
    obs_err = np.full(5, 30.0)
    return FitResult(hierarchy=hierarchy, ensemble=ensemble, depth=depth,
                     obs_age=obs_age, obs_err=obs_err)
