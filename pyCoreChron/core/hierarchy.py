"""
Hierarchical section index for age-depth modelling.

Included Functions:
- default_K: Choose branching factors automatically from a target finest section count
- build_hierarchy: Build the nested section index for a depth span
- hierarchy_from_observations: Build the section index spanning a set of observation depths
- hierarchy_depths: Per-level section boundary depths (for tick marks and overlays)

Included Classes:
- HierarchyNode: One section at one level of the hierarchy
- SectionHierarchy: Immutable arena of nodes with per-level boundaries

The depth span is divided into levels 0..L-1 (0 = coarsest). Level l holds
product(K[0..l]) sections and every section at level l splits into K[l+1]
equal-width sections at level l+1. The finest level tiles the span with
N = product(K) sections of equal thickness.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd

from ..config import AUTO_K_BASES, MAX_FINEST_SECTIONS, TARGET_SECTION_THICKNESS
from ..exceptions import ConfigurationError
from ..utils.helpers import as_finite_array


@dataclass(frozen=True)
class HierarchyNode:
    """
    One section of the hierarchy.

    `parent` and `children` are arena indices into `SectionHierarchy.nodes`.
    Level-0 nodes have no parent. `finest_start`/`finest_stop` give the slice of
    finest-level sections this node covers.
    """
    node_id: int
    level: int
    index: int
    depth_top: float
    depth_bottom: float
    parent: Optional[int]
    children: Tuple[int, ...]
    finest_start: int
    finest_stop: int

    @property
    def thickness(self):
        return self.depth_bottom - self.depth_top


@dataclass(frozen=True, eq=False)
class SectionHierarchy:
    """
    Nested section index over [depth_min, depth_max].

    Nodes are stored level-major (all level-0 nodes, then all level-1 nodes, ...)
    so a node's arena index is `level_offsets[level] + index`. This is also the
    order of the per-node multipliers in the sampler's parameter vector.
    """
    K: Tuple[int, ...]
    depth_min: float
    depth_max: float
    finest_boundaries: np.ndarray
    nodes: Tuple[HierarchyNode, ...]
    level_offsets: Tuple[int, ...]

    @property
    def n_levels(self):
        return len(self.K)

    @property
    def n_sections(self):
        """Number of finest-level sections, N = product(K)."""
        return len(self.finest_boundaries) - 1

    @property
    def n_nodes(self):
        return len(self.nodes)

    @property
    def level_sizes(self):
        return tuple(int(n) for n in np.cumprod(self.K))

    @property
    def finest_thickness(self):
        return np.diff(self.finest_boundaries)

    @property
    def finest_node_ids(self):
        return np.arange(self.level_offsets[-1], self.n_nodes)

    @property
    def parent_ids(self):
        """Parent arena index for every node, -1 for level-0 nodes."""
        return np.array([-1 if n.parent is None else n.parent for n in self.nodes], dtype=int)

    def level_node_ids(self, level):
        self._check_level(level)
        return range(self.level_offsets[level], self.level_offsets[level] + self.level_sizes[level])

    def node(self, level, index):
        self._check_level(level)
        if not 0 <= index < self.level_sizes[level]:
            raise IndexError(f"Index {index} out of bounds for level {level} "
                             f"(max: {self.level_sizes[level] - 1})")
        return self.nodes[self.level_offsets[level] + index]

    def parent(self, node):
        node = self._as_node(node)
        return None if node.parent is None else self.nodes[node.parent]

    def children(self, node):
        node = self._as_node(node)
        return [self.nodes[c] for c in node.children]

    def ancestors(self, node):
        """Return the node followed by its parent, grandparent, ... up to level 0."""
        node = self._as_node(node)
        path = [node]
        while node.parent is not None:
            node = self.nodes[node.parent]
            path.append(node)
        return path

    def level_boundaries(self, level):
        """Section boundary depths at `level` (length level_sizes[level] + 1)."""
        self._check_level(level)
        step = self.n_sections // self.level_sizes[level]
        return self.finest_boundaries[::step]

    def level_thicknesses(self, level):
        return np.diff(self.level_boundaries(level))

    def to_frame(self):
        """Tabulate the node arena as a DataFrame, one row per node."""
        return pd.DataFrame({
            'node_id': [n.node_id for n in self.nodes],
            'level': [n.level for n in self.nodes],
            'index': [n.index for n in self.nodes],
            'parent_id': self.parent_ids,
            'n_children': [len(n.children) for n in self.nodes],
            'depth_top': [n.depth_top for n in self.nodes],
            'depth_bottom': [n.depth_bottom for n in self.nodes],
            'finest_start': [n.finest_start for n in self.nodes],
            'finest_stop': [n.finest_stop for n in self.nodes],
        })

    def _as_node(self, node):
        if isinstance(node, HierarchyNode):
            return node
        return self.nodes[int(node)]

    def _check_level(self, level):
        if not 0 <= level < self.n_levels:
            raise IndexError(f"Level {level} out of bounds (hierarchy has {self.n_levels} levels)")


def default_K(K_fine, bases=AUTO_K_BASES, max_sections=MAX_FINEST_SECTIONS):
    """
    Choose a common branching factor and level count for about `K_fine` finest sections.

    Every pair (b, L) of base and level count with b**L <= `max_sections` is a
    candidate. The pair whose b**L is closest to `K_fine` wins; ties go to the
    pair whose branching factor and level count are closest to each other
    (256 sections -> [4, 4, 4, 4] rather than [2] * 8), then to the smaller base.

    Parameters
    ----------
    K_fine : int
        Desired number of finest-level sections
    bases : iterable of int, default=AUTO_K_BASES
        Candidate branching factors
    max_sections : int, default=MAX_FINEST_SECTIONS
        Upper limit on product(K)

    Returns
    -------
    list of int
        Branching factor per level

    Example
    -------
    >>> default_K(256)
    [4, 4, 4, 4]
    >>> default_K(900)
    [3, 3, 3, 3, 3, 3]
    """
    K_fine = int(K_fine)
    if K_fine < 2:
        return [1]

    candidates = []
    for b in bases:
        b = int(b)
        if b < 2:
            continue
        n_levels = 1
        while b ** n_levels <= max_sections:
            candidates.append((abs(b ** n_levels - K_fine), abs(b - n_levels), b, n_levels))
            n_levels += 1

    if not candidates:
        return [1]

    _, _, base, n_levels = min(candidates)
    return [base] * n_levels


def _validate_K(K):
    if isinstance(K, (int, np.integer)):
        K = [K]
    K = list(K)
    if len(K) == 0:
        raise ConfigurationError("K must contain at least one branching factor")

    validated = []
    for i, k in enumerate(K):
        if isinstance(k, (bool, np.bool_)):
            raise ConfigurationError(f"K[{i}] must be an integer, got {k!r}")
        try:
            k_int = int(k)
        except (TypeError, ValueError):
            raise ConfigurationError(f"K[{i}] must be an integer, got {k!r}") from None
        if k_int != k:
            raise ConfigurationError(f"K[{i}] must be an integer, got {k!r}")
        if k_int < 1:
            raise ConfigurationError(f"K[{i}] must be >= 1, got {k_int}")
        validated.append(k_int)
    return tuple(validated)


def build_hierarchy(depth_min, depth_max, K=None, max_sections=MAX_FINEST_SECTIONS,
                    section_thickness=TARGET_SECTION_THICKNESS, verbose=False):
    """
    Build the hierarchical section index for a depth span.

    Parameters
    ----------
    depth_min : float
        Top of the modelled depth span
    depth_max : float
        Bottom of the modelled depth span, must be greater than depth_min
    K : sequence of int, optional
        Branching factor per level. If None, chosen with `default_K` so that the
        finest sections are about `section_thickness` thick, with at most
        `max_sections` of them.
    max_sections : int, default=MAX_FINEST_SECTIONS
        Cap on the automatically chosen number of finest sections
    section_thickness : float, default=TARGET_SECTION_THICKNESS
        Target finest section thickness for the automatic K selection
    verbose : bool, default=False
        If True, print a summary of the hierarchy

    Returns
    -------
    SectionHierarchy

    Raises
    ------
    ConfigurationError
        If K contains non-positive or non-integer entries, the span is not
        positive and finite, or the span is too small to resolve the finest
        sections.

    Example
    -------
    >>> h = build_hierarchy(0, 4, K=[2, 2])
    >>> h.level_boundaries(0)
    array([0., 2., 4.])
    """
    try:
        depth_min = float(depth_min)
        depth_max = float(depth_max)
    except (TypeError, ValueError):
        raise ConfigurationError("depth_min and depth_max must be numbers") from None

    if not (np.isfinite(depth_min) and np.isfinite(depth_max)):
        raise ConfigurationError(f"Depth span must be finite, got [{depth_min}, {depth_max}]")
    if depth_max <= depth_min:
        raise ConfigurationError(f"depth_max ({depth_max}) must be greater than depth_min ({depth_min})")

    if K is None:
        K_fine = min(int(math.ceil((depth_max - depth_min) / section_thickness)), max_sections)
        K = default_K(K_fine, max_sections=max_sections)
    K = _validate_K(K)

    n_finest = int(np.prod(K))
    boundaries = depth_min + np.arange(n_finest + 1) * ((depth_max - depth_min) / n_finest)
    boundaries[-1] = depth_max
    if not np.all(np.diff(boundaries) > 0):
        raise ConfigurationError(f"Depth span [{depth_min}, {depth_max}] is too small "
                                 f"for {n_finest} finest sections")
    boundaries.setflags(write=False)

    level_sizes = np.cumprod(K)
    level_offsets = tuple(int(o) for o in np.concatenate(([0], np.cumsum(level_sizes)[:-1])))

    nodes = []
    for level, n_level in enumerate(level_sizes):
        n_level = int(n_level)
        span = n_finest // n_level
        for index in range(n_level):
            if level == 0:
                parent = None
            else:
                parent = level_offsets[level - 1] + index // K[level]
            if level + 1 < len(K):
                first_child = level_offsets[level + 1] + index * K[level + 1]
                children = tuple(range(first_child, first_child + K[level + 1]))
            else:
                children = ()
            nodes.append(HierarchyNode(
                node_id=level_offsets[level] + index,
                level=level,
                index=index,
                depth_top=float(boundaries[index * span]),
                depth_bottom=float(boundaries[(index + 1) * span]),
                parent=parent,
                children=children,
                finest_start=index * span,
                finest_stop=(index + 1) * span,
            ))

    hierarchy = SectionHierarchy(
        K=K,
        depth_min=depth_min,
        depth_max=depth_max,
        finest_boundaries=boundaries,
        nodes=tuple(nodes),
        level_offsets=level_offsets,
    )

    if verbose:
        print(f"Built section hierarchy over [{depth_min:g}, {depth_max:g}] with K = {list(K)}")
        print(f"  Sections per level: {[int(n) for n in level_sizes]}")
        print(f"  Finest section thickness: {(depth_max - depth_min) / n_finest:g}")
        print(f"  Total nodes: {len(nodes)}")

    return hierarchy


def hierarchy_from_observations(depth, K=None, top_depth=None, bottom_depth=None,
                                max_sections=MAX_FINEST_SECTIONS, verbose=False):
    """
    Build the section hierarchy spanning a set of observation depths.

    Parameters
    ----------
    depth : array-like
        Observation depths; need not be sorted but must be finite
    K : sequence of int, optional
        Branching factor per level (automatic if None)
    top_depth, bottom_depth : float, optional
        Override the modelled span; default to the shallowest/deepest observation
    max_sections : int, default=MAX_FINEST_SECTIONS
        Cap on the automatically chosen number of finest sections
    verbose : bool, default=False
        If True, print a summary of the hierarchy

    Returns
    -------
    SectionHierarchy
    """
    depth = as_finite_array(depth, "Observation depths")
    if depth.size == 0:
        raise ValueError("No observation depths provided. Cannot build section hierarchy.")

    depth_min = np.min(depth) if top_depth is None else top_depth
    depth_max = np.max(depth) if bottom_depth is None else bottom_depth

    return build_hierarchy(depth_min, depth_max, K=K, max_sections=max_sections, verbose=verbose)


def hierarchy_depths(hierarchy):
    """
    Section boundary depths at each level of the hierarchy.

    Returns
    -------
    list of numpy.ndarray
        One array per level, coarsest first
    """
    return [np.array(hierarchy.level_boundaries(level)) for level in range(hierarchy.n_levels)]
