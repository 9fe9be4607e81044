"""
Mapping of sampler parameter vectors onto the section hierarchy.

Included Functions:
- expected_parameter_count: Length of the flat accumulation-rate parameter vector
- map_parameters: Table joining parameter positions to hierarchy nodes
- split_parameter_vector: Split flat sampler output into overall mean and multipliers
- level_accumulation_rates: Absolute accumulation rate of every hierarchy node
- finest_accumulation_rates: Absolute accumulation rate of every finest section
- memory_between_sections: Correlation between adjacent finest sections

The sampler's accumulation-rate vector holds one overall mean rate at position 0
followed by one multiplier per hierarchy node, level-major then index within
level. A node's absolute rate is the overall mean times the product of the
multipliers on its path from level 0 down to the node.
"""

import numpy as np
import pandas as pd


def expected_parameter_count(hierarchy):
    """Overall mean plus one multiplier per hierarchy node."""
    return 1 + hierarchy.n_nodes


def map_parameters(hierarchy, n_params=None):
    """
    Join flat parameter positions to hierarchy nodes.

    Parameters
    ----------
    hierarchy : SectionHierarchy
        The section hierarchy the sampler was run with
    n_params : int, optional
        Length of the sampler's parameter vector. If given, it is checked against
        the hierarchy.

    Returns
    -------
    pandas.DataFrame
        One row per parameter position with columns param_position, node_id,
        level, index, parent_index, parent_param_position, depth_top and
        depth_bottom. Position 0 is the overall mean (level -1).

    Raises
    ------
    IndexError
        If `n_params` does not equal the number of hierarchy nodes plus one.
    """
    expected = expected_parameter_count(hierarchy)
    if n_params is not None and int(n_params) != expected:
        raise IndexError(f"Parameter vector has {n_params} entries but the hierarchy "
                         f"with K = {list(hierarchy.K)} expects {expected} "
                         f"(1 overall mean + {hierarchy.n_nodes} node multipliers)")

    rows = [{
        'param_position': 0,
        'node_id': -1,
        'level': -1,
        'index': 0,
        'parent_index': -1,
        'parent_param_position': -1,
        'depth_top': hierarchy.depth_min,
        'depth_bottom': hierarchy.depth_max,
    }]
    for node in hierarchy.nodes:
        if node.parent is None:
            parent_index = -1
            parent_position = 0
        else:
            parent_index = hierarchy.nodes[node.parent].index
            parent_position = node.parent + 1
        rows.append({
            'param_position': node.node_id + 1,
            'node_id': node.node_id,
            'level': node.level,
            'index': node.index,
            'parent_index': parent_index,
            'parent_param_position': parent_position,
            'depth_top': node.depth_top,
            'depth_bottom': node.depth_bottom,
        })

    return pd.DataFrame(rows)


def split_parameter_vector(hierarchy, vector):
    """
    Split flat sampler output into the overall mean rate and the node multipliers.

    Parameters
    ----------
    hierarchy : SectionHierarchy
    vector : array-like
        Shape (1 + n_nodes,) for one draw or (n_draws, 1 + n_nodes)

    Returns
    -------
    tuple
        (overall_mean, multipliers) with shapes () / (n_draws,) and
        (n_nodes,) / (n_draws, n_nodes)
    """
    vector = np.asarray(vector, dtype=float)
    if vector.ndim not in (1, 2):
        raise ValueError(f"Parameter vector must be 1D or 2D, got shape {vector.shape}")
    map_parameters(hierarchy, n_params=vector.shape[-1])
    return vector[..., 0], vector[..., 1:]


def _as_draw_arrays(hierarchy, overall_mean, multipliers):
    multipliers = np.asarray(multipliers, dtype=float)
    single_draw = multipliers.ndim == 1
    multipliers = np.atleast_2d(multipliers)
    if multipliers.ndim != 2:
        raise ValueError(f"Multipliers must be 1D or 2D, got shape {multipliers.shape}")
    if multipliers.shape[1] != hierarchy.n_nodes:
        raise IndexError(f"Got {multipliers.shape[1]} multipliers per draw but the hierarchy "
                         f"with K = {list(hierarchy.K)} has {hierarchy.n_nodes} nodes")

    overall_mean = np.asarray(overall_mean, dtype=float).reshape(-1)
    if overall_mean.size == 1:
        overall_mean = np.full(multipliers.shape[0], overall_mean[0])
    if overall_mean.shape[0] != multipliers.shape[0]:
        raise IndexError(f"Got {overall_mean.shape[0]} overall mean rates for "
                         f"{multipliers.shape[0]} draws of multipliers")
    return overall_mean, multipliers, single_draw


def level_accumulation_rates(hierarchy, overall_mean, multipliers):
    """
    Absolute accumulation rate of every hierarchy node.

    Parameters
    ----------
    hierarchy : SectionHierarchy
    overall_mean : float or array-like
        Overall mean accumulation rate, scalar or shape (n_draws,)
    multipliers : array-like
        Node multipliers, shape (n_nodes,) or (n_draws, n_nodes)

    Returns
    -------
    numpy.ndarray
        Rates with the same shape as `multipliers`, in node (arena) order
    """
    overall_mean, multipliers, single_draw = _as_draw_arrays(hierarchy, overall_mean, multipliers)
    parent_ids = hierarchy.parent_ids

    rates = np.empty_like(multipliers)
    for level in range(hierarchy.n_levels):
        ids = np.asarray(hierarchy.level_node_ids(level))
        if level == 0:
            rates[:, ids] = overall_mean[:, None] * multipliers[:, ids]
        else:
            rates[:, ids] = rates[:, parent_ids[ids]] * multipliers[:, ids]

    return rates[0] if single_draw else rates


def finest_accumulation_rates(hierarchy, overall_mean, multipliers):
    """
    Absolute accumulation rate of every finest-level section.

    Returns
    -------
    numpy.ndarray
        Shape (N,) for one draw or (n_draws, N)

    Example
    -------
    >>> h = build_hierarchy(0, 4, K=[2, 2])
    >>> finest_accumulation_rates(h, 10.0, [1, 1.5, 1, 1, 1, 1])
    array([10., 10., 15., 15.])
    """
    rates = level_accumulation_rates(hierarchy, overall_mean, multipliers)
    return rates[..., hierarchy.finest_node_ids]


def memory_between_sections(memory, thickness):
    """
    Correlation between adjacent finest sections, w = R ** thickness.

    Parameters
    ----------
    memory : float or array-like
        Memory parameter R (correlation per unit depth), scalar or (n_draws,)
    thickness : float or array-like
        Finest section thickness(es)

    Returns
    -------
    numpy.ndarray
        Shape broadcast from (n_draws, 1) and thickness
    """
    memory = np.asarray(memory, dtype=float)
    thickness = np.asarray(thickness, dtype=float)
    if np.any((memory < 0) | (memory > 1)):
        raise ValueError("Memory parameter must lie in [0, 1]")
    if memory.ndim == 0:
        return np.power(memory, thickness)
    return np.power(memory[:, None], thickness)
