"""
Summaries and interpolation of posterior age-depth realizations.

Included Functions:
- quantile_label: Column name for a quantile ("2.5%", "50%", ...)
- interpolate_realizations: Linearly interpolate realizations to query depths
- interpolate_age: Interpolate a single realization at a single depth
- summarise_realizations: Pointwise summary statistics of realizations
- predict: Long table of (draw_id, chain, depth_id, depth, age) for a fitted model
- summarise: Summary table from a `predict` table
- summarise_acc_rates: Finest-section accumulation rates in both units
- summarise_hierarchical_acc_rates: Accumulation rate of every hierarchy node
- summarise_parameter: Summary of a scalar posterior parameter
- summarise_fit: Summary tables of a fitted model, selected by SummaryKind

Summaries at modelled depths carry the bulk effective sample size (`ess`), the
split R-hat (`r_hat`) and a `low_ess` flag for every depth. Summaries at
interpolated depths do not: those are properties of the draws, not of a
derived interpolated value. Depths outside the modelled span give NaN for
every statistic.
"""

import warnings

import numpy as np
import pandas as pd

from ..config import DEFAULT_QUANTILES, ESS_WARNING_THRESHOLD
from ..exceptions import OutOfRangeWarning
from .age_reconstruction import reconstruct_ensemble
from .diagnostics import check_sample_quality, convergence_statistic, effective_sample_size
from .fit_result import AccRateUnit, SummaryKind
from .parameter_mapping import map_parameters, memory_between_sections


def quantile_label(q):
    """Column name for quantile `q` given as a fraction, e.g. 0.025 -> '2.5%'."""
    return f"{q * 100:g}%"


def _quantile_set(quantiles=None):
    extra = [] if quantiles is None else list(quantiles)
    qs = sorted(set(float(q) for q in list(DEFAULT_QUANTILES) + extra))
    if any(not 0 <= q <= 1 for q in qs):
        raise ValueError(f"Quantiles must be fractions in [0, 1], got {qs}")
    return qs


def interpolate_realizations(depths, ages, at_depths, warn=True):
    """
    Linearly interpolate age realizations to query depths.

    A query depth equal to a modelled depth returns that depth's age exactly.
    Query depths outside [depths[0], depths[-1]] give NaN.

    Parameters
    ----------
    depths : array-like
        Modelled depths, shape (M,), strictly increasing
    ages : array-like
        Realizations, shape (M,) or (n_draws, M)
    at_depths : float or array-like
        Query depths
    warn : bool, default=True
        Issue an OutOfRangeWarning when any query depth is outside the span

    Returns
    -------
    numpy.ndarray
        Shape (n_query,) or (n_draws, n_query)
    """
    depths = np.asarray(depths, dtype=float)
    ages = np.asarray(ages, dtype=float)
    at_depths = np.atleast_1d(np.asarray(at_depths, dtype=float))
    single = ages.ndim == 1
    ages = np.atleast_2d(ages)

    if depths.ndim != 1 or len(depths) < 2:
        raise ValueError("At least two modelled depths are needed to interpolate")
    if ages.shape[1] != len(depths):
        raise ValueError(f"Realizations have {ages.shape[1]} ages for {len(depths)} depths")

    inside = (at_depths >= depths[0]) & (at_depths <= depths[-1])
    if warn and not np.all(inside):
        outside = at_depths[~inside]
        warnings.warn(f"{len(outside)} query depth(s) outside the modelled range "
                      f"[{depths[0]:g}, {depths[-1]:g}] (e.g. {outside[0]:g}); "
                      f"returning NaN for those depths", OutOfRangeWarning, stacklevel=2)

    q = np.where(inside, at_depths, depths[0])
    lo = np.clip(np.searchsorted(depths, q, side='right') - 1, 0, len(depths) - 2)
    frac = (q - depths[lo]) / (depths[lo + 1] - depths[lo])

    result = ages[:, lo] + frac * (ages[:, lo + 1] - ages[:, lo])
    # the deepest modelled depth falls in the last interval with frac == 1
    result = np.where(frac == 1.0, ages[:, lo + 1], result)
    result[:, ~inside] = np.nan

    return result[0] if single else result


def interpolate_age(depths, ages, depth):
    """Age of a single realization at a single depth (NaN outside the modelled range)."""
    return float(interpolate_realizations(depths, ages, [depth])[0])


def _summary_columns(values, quantiles):
    # sorting makes the statistics independent of the order of the draws
    values = np.sort(values, axis=0)
    n_draws = values.shape[0]
    columns = {
        'mean': np.mean(values, axis=0),
        'sd': np.std(values, axis=0, ddof=1) if n_draws > 1 else np.full(values.shape[1], np.nan),
    }
    qvals = np.quantile(values, quantiles, axis=0)
    for q, qv in zip(quantiles, qvals):
        columns[quantile_label(q)] = qv
    columns['n'] = np.sum(np.isfinite(values), axis=0)
    return columns


def _diagnostic_columns(values, chain, ess_threshold, label):
    ess = np.array([effective_sample_size(values[:, j], chain) for j in range(values.shape[1])])
    r_hat = np.array([convergence_statistic(values[:, j], chain) for j in range(values.shape[1])])
    low_ess = check_sample_quality(ess, threshold=ess_threshold, label=label)
    return {'ess': ess, 'r_hat': r_hat, 'low_ess': low_ess}


def _summarise_values(depths, values, chain=None, quantiles=None, diagnostics=True,
                      ess_threshold=ESS_WARNING_THRESHOLD):
    values = np.atleast_2d(np.asarray(values, dtype=float))
    columns = {'depth': np.asarray(depths, dtype=float)}
    columns.update(_summary_columns(values, _quantile_set(quantiles)))
    if diagnostics:
        columns.update(_diagnostic_columns(values, chain, ess_threshold, 'depths'))
    return pd.DataFrame(columns)


def summarise_realizations(depths, ages, at_depths=None, chain=None, quantiles=None,
                           ess_threshold=ESS_WARNING_THRESHOLD):
    """
    Pointwise summary statistics of age realizations.

    Parameters
    ----------
    depths : array-like
        Modelled depths shared by all realizations, shape (M,)
    ages : array-like
        Realizations, shape (n_draws, M)
    at_depths : array-like, optional
        Query depths. If None, the summary is computed at the modelled depths and
        includes the ess, r_hat and low_ess columns; otherwise realizations are
        interpolated and those columns are omitted.
    chain : array-like, optional
        Chain id of each realization, used for the convergence statistic
    quantiles : sequence of float, optional
        Quantiles reported in addition to 2.5%, 25%, 50%, 75% and 97.5%
    ess_threshold : float, default=ESS_WARNING_THRESHOLD
        Effective sample size below which a depth is flagged

    Returns
    -------
    pandas.DataFrame
        One row per depth with columns depth, mean, sd, one column per quantile,
        n (number of contributing realizations) and, at modelled depths, ess,
        r_hat and low_ess
    """
    ages = np.atleast_2d(np.asarray(ages, dtype=float))
    if at_depths is None:
        return _summarise_values(depths, ages, chain=chain, quantiles=quantiles,
                                 diagnostics=True, ess_threshold=ess_threshold)

    at_depths = np.atleast_1d(np.asarray(at_depths, dtype=float))
    values = interpolate_realizations(depths, ages, at_depths)
    return _summarise_values(at_depths, values, quantiles=quantiles, diagnostics=False)


def predict(fit, depth=None, n_jobs=1, verbose=False):
    """
    Age of every posterior draw at the modelled depths or at given depths.

    Parameters
    ----------
    fit : FitResult
        Fitted model
    depth : array-like, optional
        Query depths; defaults to the modelled (finest boundary) depths
    n_jobs : int, default=1
        joblib workers used to reconstruct the realizations
    verbose : bool, default=False
        If True, print progress

    Returns
    -------
    pandas.DataFrame
        Long table with columns draw_id, chain, depth_id, depth and age, one row
        per draw per requested depth. depth_id is the position of the depth in
        the request, so repeated query depths stay distinct.
        `attrs['interpolated']` records whether the depths were supplied by
        the caller.

    Example
    -------
    >>> pred = predict(fit, depth=[2.5, 10.0])
    >>> pred.groupby('depth')['age'].median()
    """
    ages = reconstruct_ensemble(fit, n_jobs=n_jobs, verbose=verbose)
    modelled = np.asarray(fit.modelled_depths)

    if depth is None:
        depths = modelled
        values = ages
    else:
        depths = np.atleast_1d(np.asarray(depth, dtype=float))
        values = interpolate_realizations(modelled, ages, depths)

    n_draws, n_depths = values.shape
    predictions = pd.DataFrame({
        'draw_id': np.repeat(np.arange(n_draws), n_depths),
        'chain': np.repeat(np.asarray(fit.ensemble.chain), n_depths),
        'depth_id': np.tile(np.arange(n_depths), n_draws),
        'depth': np.tile(depths, n_draws),
        'age': values.reshape(-1),
    })
    predictions.attrs['interpolated'] = depth is not None
    return predictions


def summarise(predictions, quantiles=None, ess_threshold=ESS_WARNING_THRESHOLD):
    """
    Summarise a `predict` table by depth.

    Rows follow depth_id (request order, one row per requested depth) when the
    table has that column, otherwise distinct depths in increasing order.
    Diagnostic columns (ess, r_hat, low_ess) are included only when the table
    holds the modelled depths (`attrs['interpolated']` is False).

    Parameters
    ----------
    predictions : pandas.DataFrame
        Table with columns draw_id, depth, age and optionally chain and depth_id
    quantiles : sequence of float, optional
        Additional quantiles
    ess_threshold : float, default=ESS_WARNING_THRESHOLD
        Effective sample size below which a depth is flagged

    Returns
    -------
    pandas.DataFrame
    """
    missing = [c for c in ('draw_id', 'depth', 'age') if c not in predictions.columns]
    if missing:
        raise ValueError(f"predictions is missing column(s) {missing}")

    key = 'depth_id' if 'depth_id' in predictions.columns else 'depth'
    unique = predictions.drop_duplicates(['draw_id', key])
    wide = unique.pivot(index='draw_id', columns=key, values='age').sort_index()
    if key == 'depth_id':
        depths = unique.groupby('depth_id')['depth'].first().reindex(wide.columns)
    else:
        depths = wide.columns

    chain = None
    if 'chain' in predictions.columns:
        chain = predictions.groupby('draw_id')['chain'].first().reindex(wide.index).to_numpy()

    diagnostics = not predictions.attrs.get('interpolated', True)
    return _summarise_values(np.asarray(depths, dtype=float), wide.to_numpy(dtype=float),
                             chain=chain, quantiles=quantiles, diagnostics=diagnostics,
                             ess_threshold=ess_threshold)


def _parse_units(units):
    if units is None:
        return [AccRateUnit.TIME_PER_DEPTH, AccRateUnit.DEPTH_PER_TIME]
    if isinstance(units, (str, AccRateUnit)):
        units = [units]
    return [AccRateUnit(u) for u in units]


def summarise_acc_rates(fit, units=None, quantiles=None, ess_threshold=ESS_WARNING_THRESHOLD):
    """
    Summary of the finest-section accumulation rates.

    Parameters
    ----------
    fit : FitResult
    units : AccRateUnit, str or sequence, optional
        'time_per_depth', 'depth_per_time' or both (default)
    quantiles : sequence of float, optional
        Additional quantiles
    ess_threshold : float, default=ESS_WARNING_THRESHOLD

    Returns
    -------
    pandas.DataFrame
        One row per unit per finest section, with acc_rate_unit, section,
        depth_top, depth_bottom and the summary and diagnostic columns
    """
    time_per_depth = np.asarray(fit.finest_rates)
    boundaries = np.asarray(fit.hierarchy.finest_boundaries)
    chain = fit.ensemble.chain

    tables = []
    for unit in _parse_units(units):
        rates = time_per_depth if unit is AccRateUnit.TIME_PER_DEPTH else 1.0 / time_per_depth
        columns = {
            'acc_rate_unit': unit.value,
            'section': np.arange(rates.shape[1]),
            'depth_top': boundaries[:-1],
            'depth_bottom': boundaries[1:],
        }
        columns.update(_summary_columns(rates, _quantile_set(quantiles)))
        columns.update(_diagnostic_columns(rates, chain, ess_threshold, f"{unit.value} rates"))
        tables.append(pd.DataFrame(columns))

    return pd.concat(tables, ignore_index=True)


def summarise_hierarchical_acc_rates(fit, quantiles=None):
    """
    Posterior accumulation rate (time per depth) of every node at every level.

    The first row (level -1) is the overall mean rate over the whole span.

    Returns
    -------
    pandas.DataFrame
        The `map_parameters` table joined to the rate summary of each position
    """
    mean_rate = np.asarray(fit.ensemble.overall_mean_rate)[:, None]
    rates = np.hstack([mean_rate, np.asarray(fit.node_rates)])
    if fit.ensemble.rate_unit is AccRateUnit.DEPTH_PER_TIME:
        rates = 1.0 / rates

    table = map_parameters(fit.hierarchy, n_params=rates.shape[1])
    stats_table = pd.DataFrame(_summary_columns(rates, _quantile_set(quantiles)))
    return pd.concat([table, stats_table], axis=1)


def summarise_parameter(values, name, chain=None, quantiles=None,
                        ess_threshold=ESS_WARNING_THRESHOLD):
    """
    One-row summary of a scalar posterior parameter, with diagnostics.

    Parameters
    ----------
    values : array-like
        Draws of the parameter, shape (n_draws,)
    name : str
        Value of the `parameter` column
    chain : array-like, optional
        Chain id of each draw

    Returns
    -------
    pandas.DataFrame
    """
    values = np.asarray(values, dtype=float).reshape(-1, 1)
    columns = {'parameter': [name]}
    columns.update(_summary_columns(values, _quantile_set(quantiles)))
    columns.update(_diagnostic_columns(values, chain, ess_threshold, name))
    return pd.DataFrame(columns)


def summarise_fit(fit, kind=SummaryKind.AGE_MODELS, at_depths=None, units=None,
                  quantiles=None, n_jobs=1, verbose=False):
    """
    Summary table of a fitted model.

    Parameters
    ----------
    fit : FitResult
        Fitted model
    kind : SummaryKind or str, default=SummaryKind.AGE_MODELS
        - AGE_MODELS: age summary at the modelled depths or at `at_depths`
        - ACC_RATES: finest-section accumulation rates in `units`
        - HIER_ACC_RATES: accumulation rate of every hierarchy node
        - ACC_MEAN: overall mean accumulation rate
        - MEMORY: memory parameter R and the between-section memory w
    at_depths : array-like, optional
        Query depths for AGE_MODELS
    units : optional
        Rate units for ACC_RATES
    quantiles : sequence of float, optional
        Additional quantiles
    n_jobs : int, default=1
        joblib workers used to reconstruct age realizations
    verbose : bool, default=False
        If True, print progress

    Returns
    -------
    pandas.DataFrame
    """
    kind = SummaryKind(kind)
    chain = fit.ensemble.chain

    if kind is SummaryKind.AGE_MODELS:
        ages = reconstruct_ensemble(fit, n_jobs=n_jobs, verbose=verbose)
        return summarise_realizations(fit.modelled_depths, ages, at_depths=at_depths,
                                      chain=chain, quantiles=quantiles)
    elif kind is SummaryKind.ACC_RATES:
        return summarise_acc_rates(fit, units=units, quantiles=quantiles)
    elif kind is SummaryKind.HIER_ACC_RATES:
        return summarise_hierarchical_acc_rates(fit, quantiles=quantiles)
    elif kind is SummaryKind.ACC_MEAN:
        return summarise_parameter(fit.ensemble.overall_mean_rate, 'overall_mean_rate',
                                   chain=chain, quantiles=quantiles)
    elif kind is SummaryKind.MEMORY:
        w = memory_between_sections(fit.ensemble.memory, fit.hierarchy.finest_thickness)
        return pd.concat([
            summarise_parameter(fit.ensemble.memory, 'R', chain=chain, quantiles=quantiles),
            summarise_parameter(np.median(w, axis=1), 'w', chain=chain, quantiles=quantiles),
        ], ignore_index=True)

    raise ValueError(f"Unhandled summary kind: {kind!r}")
