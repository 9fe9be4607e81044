"""
Immutable containers for posterior samples and fitted age-depth models.

Included Classes:
- AccRateUnit: Units of an accumulation rate
- SummaryKind: The kinds of summary table that can be produced from a fit
- PosteriorDraw: One posterior draw joined to the section hierarchy
- PosteriorEnsemble: All posterior draws, stored column-wise
- FitResult: Section hierarchy + posterior ensemble + observations

Included Functions:
- create_fit_result: Build a FitResult from observations and sampler output
"""

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Optional

import numpy as np

from ..config import DEFAULT_SAMPLE_COLUMNS
from .hierarchy import SectionHierarchy, hierarchy_from_observations
from .parameter_mapping import (
    finest_accumulation_rates,
    level_accumulation_rates,
    map_parameters,
)


class AccRateUnit(Enum):
    TIME_PER_DEPTH = 'time_per_depth'
    DEPTH_PER_TIME = 'depth_per_time'


class SummaryKind(Enum):
    """Summary tables available from `summarise_fit`."""
    AGE_MODELS = 'age_models'
    ACC_RATES = 'acc_rates'
    HIER_ACC_RATES = 'hier_acc_rates'
    ACC_MEAN = 'acc_mean'
    MEMORY = 'memory'


def _read_only(array):
    array = np.array(array)
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class PosteriorDraw:
    draw_id: int
    chain: int
    overall_mean_rate: float
    multipliers: np.ndarray
    memory: float
    finest_rates: np.ndarray
    start_age: Optional[float] = None


@dataclass(frozen=True, eq=False)
class PosteriorEnsemble:
    """
    Posterior samples of the accumulation-rate model, one row per draw.

    Draws keep the order in which they were supplied; `chain` records which
    sampler chain produced each draw and is only used for convergence
    diagnostics. `rate_unit` is the unit of `overall_mean_rate` (multipliers are
    unitless).
    """
    overall_mean_rate: np.ndarray
    multipliers: np.ndarray
    memory: np.ndarray
    chain: Optional[np.ndarray] = None
    start_age: Optional[np.ndarray] = None
    rate_unit: AccRateUnit = AccRateUnit.TIME_PER_DEPTH

    def __post_init__(self):
        overall_mean = np.asarray(self.overall_mean_rate, dtype=float).reshape(-1)
        multipliers = np.asarray(self.multipliers, dtype=float)
        if multipliers.ndim == 1:
            multipliers = multipliers[:, None]
        if multipliers.ndim != 2:
            raise ValueError(f"multipliers must have shape (n_draws, n_nodes), got {multipliers.shape}")

        n_draws = multipliers.shape[0]
        if overall_mean.shape[0] != n_draws:
            raise ValueError(f"overall_mean_rate has {overall_mean.shape[0]} draws, "
                             f"multipliers has {n_draws}")

        memory = np.asarray(self.memory, dtype=float).reshape(-1)
        if memory.shape[0] != n_draws:
            raise ValueError(f"memory has {memory.shape[0]} draws, expected {n_draws}")

        if self.chain is None:
            chain = np.zeros(n_draws, dtype=int)
        else:
            chain = np.asarray(self.chain).reshape(-1).astype(int)
            if chain.shape[0] != n_draws:
                raise ValueError(f"chain has {chain.shape[0]} entries, expected {n_draws}")

        start_age = None
        if self.start_age is not None:
            start_age = np.asarray(self.start_age, dtype=float).reshape(-1)
            if start_age.shape[0] != n_draws:
                raise ValueError(f"start_age has {start_age.shape[0]} draws, expected {n_draws}")
            start_age = _read_only(start_age)

        object.__setattr__(self, 'overall_mean_rate', _read_only(overall_mean))
        object.__setattr__(self, 'multipliers', _read_only(multipliers))
        object.__setattr__(self, 'memory', _read_only(memory))
        object.__setattr__(self, 'chain', _read_only(chain))
        object.__setattr__(self, 'start_age', start_age)
        object.__setattr__(self, 'rate_unit', AccRateUnit(self.rate_unit))

    @property
    def n_draws(self):
        return self.multipliers.shape[0]

    @property
    def n_chains(self):
        return len(np.unique(self.chain))

    @classmethod
    def from_samples(cls, samples, columns=None, rate_unit=AccRateUnit.TIME_PER_DEPTH):
        """
        Build an ensemble from a mapping of parameter name to sample array.

        Parameters
        ----------
        samples : mapping
            Parameter name -> array of shape (n_draws,) or (n_draws, n_nodes).
            Must contain the overall mean rate, the node multipliers and the
            memory parameter; start age and chain id are optional.
        columns : dict, optional
            Maps the standard keys 'overall_mean_rate', 'multipliers', 'memory',
            'start_age' and 'chain' to the names used in `samples`. Defaults to
            DEFAULT_SAMPLE_COLUMNS; the standard key itself is also accepted.
        rate_unit : AccRateUnit, default=AccRateUnit.TIME_PER_DEPTH
            Unit of the overall mean rate

        Returns
        -------
        PosteriorEnsemble
        """
        names = dict(DEFAULT_SAMPLE_COLUMNS)
        if columns is not None:
            names.update(columns)

        def lookup(key, required=True):
            for name in (names.get(key), key):
                if name is not None and name in samples:
                    return samples[name]
            if required:
                raise ValueError(f"Posterior samples are missing '{key}' "
                                 f"(looked for '{names.get(key)}' and '{key}')")
            return None

        return cls(
            overall_mean_rate=lookup('overall_mean_rate'),
            multipliers=lookup('multipliers'),
            memory=lookup('memory'),
            chain=lookup('chain', required=False),
            start_age=lookup('start_age', required=False),
            rate_unit=rate_unit,
        )


@dataclass(frozen=True, eq=False)
class FitResult:
    """
    A fitted hierarchical age-depth model.

    Combines the section hierarchy, the posterior ensemble and the observations
    the model was fitted to. `anchor_depth` is the depth whose age is known or
    estimated (default: top of the modelled span); `anchor_age` may be left None
    to use the ensemble's per-draw start ages or an estimate from the
    observations.
    """
    hierarchy: SectionHierarchy
    ensemble: PosteriorEnsemble
    depth: Optional[np.ndarray] = None
    obs_age: Optional[np.ndarray] = None
    obs_err: Optional[np.ndarray] = None
    anchor_depth: Optional[float] = None
    anchor_age: Optional[float] = None

    def __post_init__(self):
        map_parameters(self.hierarchy, n_params=1 + self.ensemble.multipliers.shape[1])

        observations = [self.depth, self.obs_age, self.obs_err]
        if any(o is not None for o in observations):
            if self.depth is None or self.obs_age is None:
                raise ValueError("depth and obs_age must be provided together")
            depth = np.asarray(self.depth, dtype=float).reshape(-1)
            obs_age = np.asarray(self.obs_age, dtype=float).reshape(-1)
            if self.obs_err is None:
                obs_err = np.zeros_like(obs_age)
            else:
                obs_err = np.asarray(self.obs_err, dtype=float).reshape(-1)
            if not (len(depth) == len(obs_age) == len(obs_err)):
                raise ValueError(f"depth, obs_age and obs_err must have the same length, got "
                                 f"{len(depth)}, {len(obs_age)} and {len(obs_err)}")
            if not np.all(np.isfinite(depth)):
                raise ValueError("Observation depths must be finite")
            object.__setattr__(self, 'depth', _read_only(depth))
            object.__setattr__(self, 'obs_age', _read_only(obs_age))
            object.__setattr__(self, 'obs_err', _read_only(obs_err))

        anchor_depth = self.hierarchy.depth_min if self.anchor_depth is None else float(self.anchor_depth)
        if not self.hierarchy.depth_min <= anchor_depth <= self.hierarchy.depth_max:
            raise ValueError(f"anchor_depth {anchor_depth} lies outside the modelled span "
                             f"[{self.hierarchy.depth_min}, {self.hierarchy.depth_max}]")
        object.__setattr__(self, 'anchor_depth', anchor_depth)

    @property
    def n_draws(self):
        return self.ensemble.n_draws

    @property
    def modelled_depths(self):
        return self.hierarchy.finest_boundaries

    @cached_property
    def node_rates(self):
        """Absolute rate of every node for every draw, in the ensemble's rate unit."""
        rates = level_accumulation_rates(self.hierarchy, self.ensemble.overall_mean_rate,
                                         self.ensemble.multipliers)
        rates.setflags(write=False)
        return rates

    @cached_property
    def finest_rates(self):
        """Finest-section accumulation rates as time per depth, shape (n_draws, N)."""
        rates = finest_accumulation_rates(self.hierarchy, self.ensemble.overall_mean_rate,
                                          self.ensemble.multipliers)
        if self.ensemble.rate_unit is AccRateUnit.DEPTH_PER_TIME:
            rates = 1.0 / rates
        rates.setflags(write=False)
        return rates

    def draw(self, draw_id):
        """Return one posterior draw joined to the hierarchy."""
        ens = self.ensemble
        return PosteriorDraw(
            draw_id=int(draw_id),
            chain=int(ens.chain[draw_id]),
            overall_mean_rate=float(ens.overall_mean_rate[draw_id]),
            multipliers=ens.multipliers[draw_id],
            memory=float(ens.memory[draw_id]),
            finest_rates=self.finest_rates[draw_id],
            start_age=None if ens.start_age is None else float(ens.start_age[draw_id]),
        )


def create_fit_result(depth, obs_age, obs_err, samples, K=None, columns=None,
                      rate_unit=AccRateUnit.TIME_PER_DEPTH, top_depth=None, bottom_depth=None,
                      anchor_depth=None, anchor_age=None, verbose=False):
    """
    Build a FitResult from observations and posterior samples.

    The section hierarchy spans the observation depths (or `top_depth` to
    `bottom_depth`) with branching factors `K`, which must be the same K the
    sampler was run with.

    Parameters
    ----------
    depth, obs_age, obs_err : array-like
        Observation depths, calendar ages and 1-sigma age errors
    samples : mapping or PosteriorEnsemble
        Posterior samples, see `PosteriorEnsemble.from_samples`
    K : sequence of int, optional
        Branching factors (automatic if None)
    columns : dict, optional
        Sample name mapping passed to `PosteriorEnsemble.from_samples`
    rate_unit : AccRateUnit
        Unit of the overall mean rate in `samples`
    top_depth, bottom_depth : float, optional
        Override the modelled span
    anchor_depth, anchor_age : float, optional
        Depth and age the age models are anchored at
    verbose : bool, default=False
        If True, print a summary

    Returns
    -------
    FitResult
    """
    hierarchy = hierarchy_from_observations(depth, K=K, top_depth=top_depth,
                                            bottom_depth=bottom_depth, verbose=verbose)
    if isinstance(samples, PosteriorEnsemble):
        ensemble = samples
    else:
        ensemble = PosteriorEnsemble.from_samples(samples, columns=columns, rate_unit=rate_unit)

    fit = FitResult(hierarchy=hierarchy, ensemble=ensemble, depth=depth, obs_age=obs_age,
                    obs_err=obs_err, anchor_depth=anchor_depth, anchor_age=anchor_age)

    if verbose:
        print(f"Posterior ensemble: {ensemble.n_draws} draws from {ensemble.n_chains} chain(s)")
        print(f"Observations: {len(fit.depth)}")

    return fit
