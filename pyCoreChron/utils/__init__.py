"""
Utility functions for pyCoreChron

This module contains data loading functions and general helper utilities.
"""

from .data_loader import (
    load_observations_from_csv,
    load_posterior_samples_from_csv
)

from .helpers import (
    vector_parameter_columns,
    as_finite_array
)

__all__ = [
    'load_observations_from_csv',
    'load_posterior_samples_from_csv',
    'vector_parameter_columns',
    'as_finite_array'
]
