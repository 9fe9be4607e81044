"""
Convergence and sample-quality diagnostics for posterior quantities.

Included Functions:
- group_by_chain: Arrange draws of a scalar quantity as (chain, draw)
- effective_sample_size: Bulk effective sample size of a scalar quantity
- convergence_statistic: Rank-normalized split R-hat of a scalar quantity
- check_sample_quality: Flag quantities with too few effective samples

Diagnostics are computed with ArviZ on the draws of one scalar quantity (for
example the age at one depth) grouped by the chain that produced them.
"""

import warnings

import arviz as az
import numpy as np

from ..config import ESS_WARNING_THRESHOLD
from ..exceptions import DegenerateSampleWarning


def group_by_chain(values, chain=None):
    """
    Arrange draws as a (n_chains, n_draws_per_chain) array.

    Draws keep their original order within each chain. Chains of unequal
    length are truncated to the shortest chain.

    Parameters
    ----------
    values : array-like
        Draws of one scalar quantity, shape (n_draws,)
    chain : array-like, optional
        Chain id of each draw; all draws belong to one chain if None

    Returns
    -------
    numpy.ndarray
    """
    values = np.asarray(values, dtype=float).reshape(-1)
    if chain is None:
        return values[None, :]

    chain = np.asarray(chain).reshape(-1)
    if chain.shape[0] != values.shape[0]:
        raise ValueError(f"Got {chain.shape[0]} chain ids for {values.shape[0]} draws")

    groups = [values[chain == c] for c in np.unique(chain)]
    n_keep = min(len(g) for g in groups)
    return np.stack([g[:n_keep] for g in groups])


def _estimable(grouped):
    # constant draws (e.g. the age at a fixed anchor) have no defined ESS or R-hat
    return grouped.shape[1] >= 4 and np.ptp(grouped) > 0


def effective_sample_size(values, chain=None):
    """
    Bulk effective sample size of the draws of one scalar quantity.

    Returns
    -------
    float
        NaN when the draws are too few or all equal
    """
    grouped = group_by_chain(values, chain)
    if not _estimable(grouped):
        return np.nan
    with np.errstate(invalid='ignore', divide='ignore'):
        return float(az.ess(grouped, method='bulk'))


def convergence_statistic(values, chain=None):
    """
    Rank-normalized split R-hat of the draws of one scalar quantity.

    Values close to 1 indicate that the chains have mixed.

    Returns
    -------
    float
        NaN when the draws are too few or all equal
    """
    grouped = group_by_chain(values, chain)
    if not _estimable(grouped):
        return np.nan
    with np.errstate(invalid='ignore', divide='ignore'):
        return float(az.rhat(grouped, method='rank'))


def check_sample_quality(ess, threshold=ESS_WARNING_THRESHOLD, label='quantities'):
    """
    Flag quantities whose effective sample size is below `threshold`.

    Issues one DegenerateSampleWarning when any quantity is flagged; the
    computation that produced `ess` is not affected.

    Parameters
    ----------
    ess : array-like
        Effective sample sizes (NaN entries are not flagged)
    threshold : float, default=ESS_WARNING_THRESHOLD
        Minimum usable effective sample size
    label : str
        Name of the quantities used in the warning message

    Returns
    -------
    numpy.ndarray of bool
        True where the effective sample size is below the threshold
    """
    ess = np.asarray(ess, dtype=float)
    with np.errstate(invalid='ignore'):
        low = ess < threshold
    n_low = int(np.sum(low))
    if n_low:
        warnings.warn(f"{n_low} of {ess.size} {label} have an effective sample size below "
                      f"{threshold} (minimum {np.nanmin(ess):.1f})",
                      DegenerateSampleWarning, stacklevel=2)
    return low
