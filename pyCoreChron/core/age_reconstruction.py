"""
Reconstruction of age-depth realizations from accumulation rates.

Included Functions:
- estimate_anchor_age: Estimate the age at a depth from the observed ages
- resolve_anchor: Anchor depth and per-draw anchor ages for a fitted model
- reconstruct_ages: Cumulative ages at the finest section boundaries
- reconstruct_ensemble: Age realizations for every posterior draw of a fit
- check_monotonic: Whether each realization's ages are non-decreasing with depth

Each realization starts from the anchor age and accumulates rate * thickness
section by section, downward from the anchor to the bottom of the span and
upward from the anchor to the top when the anchor is not the shallowest
modelled depth.
"""

import numpy as np
from joblib import Parallel, delayed
from scipy import stats
from tqdm import tqdm

from .fit_result import AccRateUnit


def estimate_anchor_age(depth, obs_age, anchor_depth):
    """
    Estimate the age at `anchor_depth` from the observed ages.

    Uses a least-squares line of age on depth through all observations. With a
    single observation (or all observations at one depth) the mean observed age
    is returned.

    Parameters
    ----------
    depth : array-like
        Observation depths
    obs_age : array-like
        Observed calendar ages
    anchor_depth : float
        Depth to estimate the age at

    Returns
    -------
    float
    """
    depth = np.asarray(depth, dtype=float)
    obs_age = np.asarray(obs_age, dtype=float)
    if depth.size == 0:
        raise ValueError("No observations provided. Cannot estimate anchor age.")

    if depth.size == 1 or np.ptp(depth) == 0:
        return float(np.mean(obs_age))

    fit = stats.linregress(depth, obs_age)
    return float(fit.intercept + fit.slope * anchor_depth)


def resolve_anchor(fit):
    """
    Anchor depth and one anchor age per draw for a fitted model.

    Precedence: an explicit `fit.anchor_age`; the ensemble's per-draw start
    ages (which refer to the top of the modelled span); an estimate from the
    observations at `fit.anchor_depth`.

    Returns
    -------
    tuple
        (anchor_depth, anchor_ages) with anchor_ages of shape (n_draws,)
    """
    n_draws = fit.n_draws
    if fit.anchor_age is not None:
        return fit.anchor_depth, np.full(n_draws, float(fit.anchor_age))

    if fit.ensemble.start_age is not None:
        return fit.hierarchy.depth_min, np.array(fit.ensemble.start_age)

    if fit.depth is not None:
        age = estimate_anchor_age(fit.depth, fit.obs_age, fit.anchor_depth)
        return fit.anchor_depth, np.full(n_draws, age)

    raise ValueError("No anchor age available: provide anchor_age, per-draw start ages "
                     "or observations")


def reconstruct_ages(rates, boundaries, anchor_depth, anchor_age,
                     rate_unit=AccRateUnit.TIME_PER_DEPTH):
    """
    Cumulative age at every finest section boundary.

    Parameters
    ----------
    rates : array-like
        Finest-section accumulation rates, shape (N,) for one draw or (n_draws, N)
    boundaries : array-like
        Finest section boundary depths, shape (N + 1,), strictly increasing
    anchor_depth : float
        Depth with known age; must lie within [boundaries[0], boundaries[-1]]
    anchor_age : float or array-like
        Age at the anchor depth, scalar or shape (n_draws,)
    rate_unit : AccRateUnit, default=AccRateUnit.TIME_PER_DEPTH
        Unit of `rates`; depth-per-time rates are inverted

    Returns
    -------
    numpy.ndarray
        Ages, shape (N + 1,) or (n_draws, N + 1)

    Example
    -------
    >>> reconstruct_ages([10, 10, 20, 20], [0, 1, 2, 3, 4], 0.0, 100.0)
    array([100., 110., 120., 140., 160.])
    """
    rates = np.asarray(rates, dtype=float)
    boundaries = np.asarray(boundaries, dtype=float)
    single_draw = rates.ndim == 1
    rates = np.atleast_2d(rates)

    if rates.ndim != 2:
        raise ValueError(f"rates must be 1D or 2D, got shape {rates.shape}")
    if boundaries.ndim != 1 or rates.shape[1] != len(boundaries) - 1:
        raise ValueError(f"Got {rates.shape[1]} section rates for {len(boundaries)} boundaries")

    thickness = np.diff(boundaries)
    if not np.all(thickness > 0):
        raise ValueError("Section boundaries must be strictly increasing")
    if not boundaries[0] <= anchor_depth <= boundaries[-1]:
        raise ValueError(f"anchor_depth {anchor_depth} lies outside the modelled span "
                         f"[{boundaries[0]}, {boundaries[-1]}]")

    if AccRateUnit(rate_unit) is AccRateUnit.DEPTH_PER_TIME:
        rates = 1.0 / rates

    n_draws, n_sections = rates.shape
    anchor_age = np.broadcast_to(np.asarray(anchor_age, dtype=float), (n_draws,))
    increments = rates * thickness

    # Section containing the anchor; an anchor on the bottom boundary belongs to the last section
    k = int(np.clip(np.searchsorted(boundaries, anchor_depth, side='right') - 1, 0, n_sections - 1))
    frac = (anchor_depth - boundaries[k]) / thickness[k]

    ages = np.empty((n_draws, n_sections + 1))
    ages[:, k] = anchor_age - frac * increments[:, k]
    ages[:, k + 1] = anchor_age + (1.0 - frac) * increments[:, k]

    # Downward from the bottom of the anchor section
    if k + 1 < n_sections:
        ages[:, k + 2:] = ages[:, [k + 1]] + np.cumsum(increments[:, k + 1:], axis=1)

    # Upward from the top of the anchor section
    if k > 0:
        upward = np.cumsum(increments[:, :k][:, ::-1], axis=1)[:, ::-1]
        ages[:, :k] = ages[:, [k]] - upward

    return ages[0] if single_draw else ages


def reconstruct_ensemble(fit, n_jobs=1, n_blocks=None, verbose=False):
    """
    Age realizations for every posterior draw of a fitted model.

    Parameters
    ----------
    fit : FitResult
        Fitted model
    n_jobs : int or None, default=1
        Number of joblib workers (None runs sequentially, as in joblib). Draws
        are independent, so the result is the same for any n_jobs.
    n_blocks : int, optional
        Number of blocks of draws to hand to the workers (default: 4 per worker)
    verbose : bool, default=False
        If True, print progress

    Returns
    -------
    numpy.ndarray
        Ages at `fit.modelled_depths`, shape (n_draws, N + 1), rows in draw order
    """
    rates = fit.finest_rates
    boundaries = fit.hierarchy.finest_boundaries
    anchor_depth, anchor_ages = resolve_anchor(fit)

    if verbose:
        print(f"Reconstructing {fit.n_draws} age realizations at {len(boundaries)} depths "
              f"(anchor: {anchor_depth:g})")

    if n_jobs is None or n_jobs == 1:
        return reconstruct_ages(rates, boundaries, anchor_depth, anchor_ages)

    if n_blocks is None:
        n_workers = n_jobs if n_jobs > 0 else 8
        n_blocks = max(1, min(fit.n_draws, 4 * n_workers))
    blocks = np.array_split(np.arange(fit.n_draws), n_blocks)

    results = Parallel(n_jobs=n_jobs)(
        delayed(reconstruct_ages)(rates[idx], boundaries, anchor_depth, anchor_ages[idx])
        for idx in tqdm(blocks, desc="Reconstructing age models", disable=not verbose)
    )
    return np.vstack(results)


def check_monotonic(ages):
    """
    Whether ages are non-decreasing with depth.

    Parameters
    ----------
    ages : array-like
        Shape (N + 1,) or (n_draws, N + 1)

    Returns
    -------
    bool or numpy.ndarray of bool
        One flag per realization
    """
    ages = np.asarray(ages, dtype=float)
    return np.all(np.diff(ages, axis=-1) >= 0, axis=-1)
