"""
Data loading functions for pyCoreChron.

Included Functions:
- load_observations_from_csv: Load dated depths (depth, age, error) from a CSV file
- load_posterior_samples_from_csv: Load sampler output (one CSV file per chain)

This module reads the tables produced outside the core (calibrated ages and
posterior samples) into the arrays and mappings the core consumes. Column names
are configurable; vector parameters are gathered from numbered columns such as
"alpha.1", "alpha.2", ... in element order.
"""

import os

import numpy as np
import pandas as pd

from ..config import DEFAULT_OBSERVATION_COLUMNS, DEFAULT_SAMPLE_COLUMNS
from .helpers import as_finite_array, vector_parameter_columns


def load_observations_from_csv(csv_file_path, data_columns=None, sort_by_depth=True, mute_mode=False):
    """
    Load dated depths from a single CSV file.

    Parameters
    ----------
    csv_file_path : str
        Path to the CSV file
    data_columns : dict, optional
        Maps the standard names 'depth', 'age' and 'error' to the CSV column
        names. Defaults to DEFAULT_OBSERVATION_COLUMNS.
    sort_by_depth : bool, default=True
        Return the observations in order of increasing depth
    mute_mode : bool, default=False
        If True, suppress all print output

    Returns
    -------
    dict
        Dictionary with 'depth', 'age' and 'error' numpy arrays of equal length

    Example
    -------
    >>> obs = load_observations_from_csv('MSB2K.csv',
    ...                                  {'depth': 'depth_cm', 'age': 'age', 'error': 'error'})
    >>> fit = create_fit_result(obs['depth'], obs['age'], obs['error'], samples, K=[10, 10])
    """
    columns = dict(DEFAULT_OBSERVATION_COLUMNS)
    if data_columns is not None:
        columns.update(data_columns)

    if not os.path.exists(csv_file_path):
        raise FileNotFoundError(f"Observation file not found: {csv_file_path}")

    df = pd.read_csv(csv_file_path)

    missing = [columns[key] for key in ('depth', 'age', 'error') if columns[key] not in df.columns]
    if missing:
        raise ValueError(f"Column(s) {missing} not found in {csv_file_path}. "
                         f"Available columns: {list(df.columns)}")

    n_rows = len(df)
    df = df.dropna(subset=[columns['depth'], columns['age']])
    if len(df) < n_rows and not mute_mode:
        print(f"Warning: Dropped {n_rows - len(df)} row(s) with missing depth or age from {csv_file_path}")

    if len(df) == 0:
        raise ValueError(f"No observations with depth and age found in {csv_file_path}")

    if sort_by_depth:
        df = df.sort_values(columns['depth'], kind='stable')

    result = {
        'depth': as_finite_array(df[columns['depth']], 'Observation depths'),
        'age': as_finite_array(df[columns['age']], 'Observed ages'),
        'error': df[columns['error']].fillna(0.0).to_numpy(dtype=float),
    }

    if not mute_mode:
        print(f"Loaded {len(result['depth'])} observations from {os.path.basename(csv_file_path)} "
              f"(depth {result['depth'].min():g} to {result['depth'].max():g})")

    return result


def load_posterior_samples_from_csv(csv_file_paths, columns=None, mute_mode=False):
    """
    Load posterior samples written by the sampler.

    Each file holds the draws of one chain, one row per draw. Lines starting
    with '#' are ignored. Scalar parameters are single columns; the node
    multipliers are numbered columns sharing the multiplier prefix.

    Parameters
    ----------
    csv_file_paths : str or list of str
        One CSV file per chain. Draws are numbered in file order.
    columns : dict, optional
        Maps the standard keys 'overall_mean_rate', 'multipliers', 'memory',
        'start_age' and 'chain' to column names / prefixes. Defaults to
        DEFAULT_SAMPLE_COLUMNS.
    mute_mode : bool, default=False
        If True, suppress all print output

    Returns
    -------
    dict
        Mapping of standard key to array, ready for `PosteriorEnsemble.from_samples`:
        'overall_mean_rate' (n_draws,), 'multipliers' (n_draws, n_nodes),
        'memory' (n_draws,), 'chain' (n_draws,) and, when present,
        'start_age' (n_draws,)
    """
    names = dict(DEFAULT_SAMPLE_COLUMNS)
    if columns is not None:
        names.update(columns)

    if isinstance(csv_file_paths, (str, os.PathLike)):
        csv_file_paths = [csv_file_paths]
    if len(csv_file_paths) == 0:
        raise ValueError("No sample files provided")

    frames = []
    for chain_id, path in enumerate(csv_file_paths):
        if not os.path.exists(path):
            raise FileNotFoundError(f"Sample file not found: {path}")
        df = pd.read_csv(path, comment='#')
        if names['chain'] not in df.columns:
            df[names['chain']] = chain_id
        frames.append(df)
        if not mute_mode:
            print(f"Loaded {len(df)} draws from {os.path.basename(str(path))}")

    samples_df = pd.concat(frames, ignore_index=True)

    multiplier_columns = vector_parameter_columns(samples_df.columns, names['multipliers'])
    if not multiplier_columns:
        raise ValueError(f"No multiplier columns with prefix '{names['multipliers']}' found. "
                         f"Available columns: {list(samples_df.columns)}")

    for key in ('overall_mean_rate', 'memory'):
        if names[key] not in samples_df.columns:
            raise ValueError(f"Column '{names[key]}' ({key}) not found in sample files")

    samples = {
        'overall_mean_rate': samples_df[names['overall_mean_rate']].to_numpy(dtype=float),
        'multipliers': samples_df[multiplier_columns].to_numpy(dtype=float),
        'memory': samples_df[names['memory']].to_numpy(dtype=float),
        'chain': samples_df[names['chain']].to_numpy(dtype=int),
    }
    if names['start_age'] in samples_df.columns:
        samples['start_age'] = samples_df[names['start_age']].to_numpy(dtype=float)

    if not mute_mode:
        print(f"Posterior samples: {len(samples_df)} draws, {len(multiplier_columns)} node multipliers, "
              f"{len(np.unique(samples['chain']))} chain(s)")

    return samples
