"""Tests for the hierarchical section index."""

import numpy as np
import pytest

from pyCoreChron import (
    ConfigurationError,
    build_hierarchy,
    default_K,
    hierarchy_depths,
    hierarchy_from_observations,
)


class TestBuildHierarchy:
    """Construction from an explicit K."""

    def test_two_by_two_levels(self, small_hierarchy):
        """K = [2, 2] over [0, 4] gives [0,2],[2,4] then four unit sections."""
        np.testing.assert_array_equal(small_hierarchy.level_boundaries(0), [0, 2, 4])
        np.testing.assert_array_equal(small_hierarchy.level_boundaries(1), [0, 1, 2, 3, 4])

        level0 = [(n.depth_top, n.depth_bottom) for n in small_hierarchy.nodes if n.level == 0]
        level1 = [(n.depth_top, n.depth_bottom) for n in small_hierarchy.nodes if n.level == 1]
        assert level0 == [(0, 2), (2, 4)]
        assert level1 == [(0, 1), (1, 2), (2, 3), (3, 4)]

    @pytest.mark.parametrize("K, depth_min, depth_max", [
        ([2, 2], 0.0, 4.0),
        ([3, 5, 2], 10.0, 97.3),
        ([7], -3.5, 1.25),
        ([1, 4, 1], 0.0, 0.8),
        ([4, 4, 4, 4], 100.0, 356.0),
    ])
    def test_section_counts_and_thicknesses(self, K, depth_min, depth_max):
        h = build_hierarchy(depth_min, depth_max, K=K)

        assert h.n_sections == int(np.prod(K))
        assert h.level_sizes == tuple(int(n) for n in np.cumprod(K))
        assert h.n_nodes == sum(h.level_sizes)
        for level in range(h.n_levels):
            assert len(h.level_thicknesses(level)) == h.level_sizes[level]
            assert np.sum(h.level_thicknesses(level)) == pytest.approx(depth_max - depth_min)

        assert h.finest_boundaries[0] == depth_min
        assert h.finest_boundaries[-1] == depth_max
        assert np.all(np.diff(h.finest_boundaries) > 0)

    @pytest.mark.parametrize("K", [[2, 2], [3, 5, 2], [4, 1, 3]])
    def test_children_tile_parent(self, K):
        """Every parent's children are K[l+1] contiguous sections spanning the parent."""
        h = build_hierarchy(0.0, 120.0, K=K)
        for node in h.nodes:
            children = h.children(node)
            if node.level == h.n_levels - 1:
                assert children == []
                continue
            assert len(children) == K[node.level + 1]
            assert children[0].depth_top == node.depth_top
            assert children[-1].depth_bottom == node.depth_bottom
            for upper, lower in zip(children[:-1], children[1:]):
                assert upper.depth_bottom == lower.depth_top
            assert all(h.parent(c) is node for c in children)

    def test_ancestors_and_finest_mapping(self):
        h = build_hierarchy(0.0, 8.0, K=[2, 2, 2])
        leaf = h.node(2, 5)
        path = h.ancestors(leaf)

        assert [(n.level, n.index) for n in path] == [(2, 5), (1, 2), (0, 1)]
        assert h.parent(h.node(0, 1)) is None
        assert (leaf.finest_start, leaf.finest_stop) == (5, 6)
        assert (h.node(0, 1).finest_start, h.node(0, 1).finest_stop) == (4, 8)
        np.testing.assert_array_equal(h.finest_node_ids, [6, 7, 8, 9, 10, 11, 12, 13])

    def test_node_table(self, small_hierarchy):
        table = small_hierarchy.to_frame()

        assert len(table) == 6
        assert list(table['parent_id']) == [-1, -1, 0, 0, 1, 1]
        assert list(table['n_children']) == [2, 2, 0, 0, 0, 0]

    def test_boundaries_are_read_only(self, small_hierarchy):
        with pytest.raises(ValueError):
            small_hierarchy.finest_boundaries[0] = 1.0

    def test_node_lookup_out_of_range(self, small_hierarchy):
        with pytest.raises(IndexError):
            small_hierarchy.node(1, 4)
        with pytest.raises(IndexError):
            small_hierarchy.level_boundaries(2)


class TestInvalidConfiguration:

    @pytest.mark.parametrize("K", [[0, 2], [2, -1], [], [2.5], ["a"], [True, 2]])
    def test_invalid_K(self, K):
        with pytest.raises(ConfigurationError):
            build_hierarchy(0.0, 10.0, K=K)

    @pytest.mark.parametrize("depth_min, depth_max", [(5.0, 5.0), (10.0, 2.0), (0.0, np.inf), (np.nan, 1.0)])
    def test_invalid_span(self, depth_min, depth_max):
        with pytest.raises(ConfigurationError):
            build_hierarchy(depth_min, depth_max, K=[2])

    def test_span_too_small_for_sections(self):
        with pytest.raises(ConfigurationError):
            build_hierarchy(1.0, 1.0 + 1e-15, K=[10, 10])

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            build_hierarchy(0.0, 1.0, K=[0])


class TestAutomaticK:

    def test_balanced_levels_and_branching(self):
        assert default_K(256) == [4, 4, 4, 4]
        assert default_K(27) == [3, 3, 3]

    def test_cap_on_finest_sections(self):
        K = default_K(900)
        assert int(np.prod(K)) <= 900
        assert len(set(K)) == 1

    @pytest.mark.parametrize("K_fine", [300, 500, 700, 900])
    def test_resolution_close_to_target(self, K_fine):
        n_sections = int(np.prod(default_K(K_fine)))
        assert n_sections > 256
        assert abs(n_sections - K_fine) <= 0.3 * K_fine

    def test_closest_count_then_balanced_shape(self):
        assert default_K(900) == [3, 3, 3, 3, 3, 3]
        assert default_K(625) == [5, 5, 5, 5]
        assert default_K(64) == [4, 4, 4]

    def test_restricted_bases(self):
        assert default_K(16, bases=[2]) == [2, 2, 2, 2]
        assert default_K(100, bases=[10]) == [10, 10]

    def test_tiny_span(self):
        assert default_K(1) == [1]

    def test_auto_K_from_span(self):
        h = build_hierarchy(0.0, 256.0)
        assert h.K == (4, 4, 4, 4)
        assert np.allclose(h.finest_thickness, 1.0)

    def test_auto_K_capped_for_long_cores(self):
        h = build_hierarchy(0.0, 5000.0)
        assert 700 <= h.n_sections <= 900
        assert h.finest_thickness[0] > 1.0


class TestFromObservations:

    def test_span_follows_observations(self):
        h = hierarchy_from_observations([12.0, 3.0, 40.0, 25.0], K=[3, 3])
        assert (h.depth_min, h.depth_max) == (3.0, 40.0)

    def test_span_override(self):
        h = hierarchy_from_observations([12.0, 40.0], K=[2], top_depth=0.0, bottom_depth=50.0)
        np.testing.assert_array_equal(h.finest_boundaries, [0.0, 25.0, 50.0])

    def test_non_finite_depths(self):
        with pytest.raises(ValueError):
            hierarchy_from_observations([1.0, np.nan, 3.0], K=[2])


def test_hierarchy_depths(small_hierarchy):
    depths = hierarchy_depths(small_hierarchy)

    assert len(depths) == 2
    np.testing.assert_array_equal(depths[0], [0, 2, 4])
    np.testing.assert_array_equal(depths[1], [0, 1, 2, 3, 4])
