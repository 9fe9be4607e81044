"""Tests for joining sampler parameters onto the section hierarchy."""

import numpy as np
import pytest

from pyCoreChron import (
    build_hierarchy,
    finest_accumulation_rates,
    level_accumulation_rates,
    map_parameters,
    memory_between_sections,
    split_parameter_vector,
)


class TestMapParameters:

    def test_layout(self, small_hierarchy):
        table = map_parameters(small_hierarchy)

        assert list(table['param_position']) == [0, 1, 2, 3, 4, 5, 6]
        assert list(table['level']) == [-1, 0, 0, 1, 1, 1, 1]
        assert list(table['index']) == [0, 0, 1, 0, 1, 2, 3]
        assert list(table['parent_index']) == [-1, -1, -1, 0, 0, 1, 1]
        assert list(table['parent_param_position']) == [-1, 0, 0, 1, 1, 2, 2]
        assert list(table['depth_top']) == [0, 0, 2, 0, 1, 2, 3]
        assert list(table['depth_bottom']) == [4, 2, 4, 1, 2, 3, 4]

    def test_length_check(self, small_hierarchy):
        assert len(map_parameters(small_hierarchy, n_params=7)) == 7
        with pytest.raises(IndexError):
            map_parameters(small_hierarchy, n_params=6)
        with pytest.raises(IndexError):
            map_parameters(small_hierarchy, n_params=8)

    def test_split_parameter_vector(self, small_hierarchy):
        vector = np.arange(14, dtype=float).reshape(2, 7)
        overall_mean, multipliers = split_parameter_vector(small_hierarchy, vector)

        np.testing.assert_array_equal(overall_mean, [0.0, 7.0])
        assert multipliers.shape == (2, 6)

        with pytest.raises(IndexError):
            split_parameter_vector(small_hierarchy, np.ones(5))


class TestAccumulationRates:

    def test_finest_rates_follow_ancestor_chain(self, small_hierarchy):
        multipliers = [1.0, 2.0, 1.0, 1.0, 1.0, 1.0]
        rates = finest_accumulation_rates(small_hierarchy, 10.0, multipliers)
        np.testing.assert_allclose(rates, [10.0, 10.0, 20.0, 20.0])

    def test_product_of_multipliers_three_levels(self):
        h = build_hierarchy(0.0, 8.0, K=[2, 2, 2])
        rng = np.random.default_rng(1)
        overall_mean = rng.uniform(5, 15, 4)
        multipliers = rng.uniform(0.5, 1.5, (4, h.n_nodes))

        rates = finest_accumulation_rates(h, overall_mean, multipliers)

        assert rates.shape == (4, 8)
        for leaf_position, leaf_id in enumerate(h.finest_node_ids):
            path = [n.node_id for n in h.ancestors(leaf_id)]
            expected = overall_mean * np.prod(multipliers[:, path], axis=1)
            np.testing.assert_allclose(rates[:, leaf_position], expected)

    def test_level_rates(self, small_hierarchy):
        multipliers = np.array([[0.5, 2.0, 2.0, 1.0, 0.5, 1.5]])
        rates = level_accumulation_rates(small_hierarchy, [10.0], multipliers)

        np.testing.assert_allclose(rates, [[5.0, 20.0, 10.0, 5.0, 10.0, 30.0]])

    def test_multiplier_count_mismatch(self, small_hierarchy):
        with pytest.raises(IndexError):
            finest_accumulation_rates(small_hierarchy, 10.0, np.ones(5))
        with pytest.raises(IndexError):
            finest_accumulation_rates(small_hierarchy, [10.0, 12.0, 9.0], np.ones((2, 6)))


class TestMemory:

    def test_memory_between_sections(self):
        w = memory_between_sections([0.5, 0.25], [1.0, 2.0])
        np.testing.assert_allclose(w, [[0.5, 0.25], [0.25, 0.0625]])

    def test_memory_out_of_range(self):
        with pytest.raises(ValueError):
            memory_between_sections(1.5, 1.0)
