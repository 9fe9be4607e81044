"""Tests for the CSV loaders."""

import numpy as np
import pandas as pd
import pytest

from pyCoreChron import (
    PosteriorEnsemble,
    create_fit_result,
    load_observations_from_csv,
    load_posterior_samples_from_csv,
)
from pyCoreChron.utils.helpers import vector_parameter_columns


@pytest.fixture
def observation_csv(tmp_path):
    path = tmp_path / "dates.csv"
    pd.DataFrame({
        'depth_cm': [20.0, 5.0, 12.0, np.nan],
        'age': [900.0, 210.0, 480.0, 700.0],
        'error': [40.0, 25.0, np.nan, 30.0],
    }).to_csv(path, index=False)
    return path


def write_chain(path, rng, n_draws, n_nodes, header_comment=True):
    df = pd.DataFrame({'overall_mean_rate': rng.gamma(20.0, 1.0, n_draws),
                       'R': rng.uniform(0.1, 0.9, n_draws),
                       'age0': rng.normal(100.0, 5.0, n_draws)})
    for i in range(n_nodes, 0, -1):
        df[f'alpha.{i}'] = rng.gamma(10.0, 0.1, n_draws)
    with open(path, 'w') as f:
        if header_comment:
            f.write("# sampler output\n")
        df.to_csv(f, index=False)
    return df


class TestLoadObservations:

    def test_sorted_and_cleaned(self, observation_csv):
        obs = load_observations_from_csv(str(observation_csv), {'depth': 'depth_cm'}, mute_mode=True)

        np.testing.assert_array_equal(obs['depth'], [5.0, 12.0, 20.0])
        np.testing.assert_array_equal(obs['age'], [210.0, 480.0, 900.0])
        np.testing.assert_array_equal(obs['error'], [25.0, 0.0, 40.0])

    def test_file_order_kept(self, observation_csv):
        obs = load_observations_from_csv(str(observation_csv), {'depth': 'depth_cm'},
                                         sort_by_depth=False, mute_mode=True)
        np.testing.assert_array_equal(obs['depth'], [20.0, 5.0, 12.0])

    def test_prints_unless_muted(self, observation_csv, capsys):
        load_observations_from_csv(str(observation_csv), {'depth': 'depth_cm'})
        assert "Loaded 3 observations" in capsys.readouterr().out

        load_observations_from_csv(str(observation_csv), {'depth': 'depth_cm'}, mute_mode=True)
        assert capsys.readouterr().out == ""

    def test_missing_column(self, observation_csv):
        with pytest.raises(ValueError):
            load_observations_from_csv(str(observation_csv), mute_mode=True)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_observations_from_csv(str(tmp_path / "absent.csv"))


class TestLoadPosteriorSamples:

    def test_one_file_per_chain(self, tmp_path):
        rng = np.random.default_rng(4)
        first = write_chain(tmp_path / "chain1.csv", rng, 30, 12)
        second = write_chain(tmp_path / "chain2.csv", rng, 25, 12, header_comment=False)

        samples = load_posterior_samples_from_csv([tmp_path / "chain1.csv", tmp_path / "chain2.csv"],
                                                  mute_mode=True)

        assert samples['multipliers'].shape == (55, 12)
        np.testing.assert_array_equal(samples['chain'], [0] * 30 + [1] * 25)
        # numbered columns are gathered in element order, not file order
        np.testing.assert_allclose(samples['multipliers'][:30, 0], first['alpha.1'])
        np.testing.assert_allclose(samples['multipliers'][30:, 11], second['alpha.12'])
        np.testing.assert_allclose(samples['start_age'][30:], second['age0'])

    def test_samples_build_a_fit(self, tmp_path):
        rng = np.random.default_rng(8)
        write_chain(tmp_path / "chain.csv", rng, 40, 6)
        samples = load_posterior_samples_from_csv(str(tmp_path / "chain.csv"), mute_mode=True)

        fit = create_fit_result([0.0, 1.5, 4.0], [100.0, 130.0, 190.0], [10.0, 10.0, 10.0],
                                samples, K=[2, 2])

        assert isinstance(fit.ensemble, PosteriorEnsemble)
        assert fit.n_draws == 40
        assert fit.finest_rates.shape == (40, 4)

    def test_missing_memory_column(self, tmp_path):
        rng = np.random.default_rng(2)
        write_chain(tmp_path / "chain.csv", rng, 10, 6)
        with pytest.raises(ValueError):
            load_posterior_samples_from_csv(str(tmp_path / "chain.csv"), columns={'memory': 'memory'},
                                            mute_mode=True)

    def test_no_multiplier_columns(self, tmp_path):
        rng = np.random.default_rng(2)
        write_chain(tmp_path / "chain.csv", rng, 10, 6)
        with pytest.raises(ValueError):
            load_posterior_samples_from_csv(str(tmp_path / "chain.csv"), columns={'multipliers': 'beta'},
                                            mute_mode=True)

    def test_no_files(self):
        with pytest.raises(ValueError):
            load_posterior_samples_from_csv([])


@pytest.mark.parametrize("columns, expected", [
    (['alpha.10', 'alpha.2', 'alpha.1', 'R'], ['alpha.1', 'alpha.2', 'alpha.10']),
    (['alpha[3]', 'alpha[1]', 'alpha[2]'], ['alpha[1]', 'alpha[2]', 'alpha[3]']),
    (['alpha_2', 'alpha_1', 'alphabet'], ['alpha_1', 'alpha_2']),
])
def test_vector_parameter_columns(columns, expected):
    assert vector_parameter_columns(columns, 'alpha') == expected
