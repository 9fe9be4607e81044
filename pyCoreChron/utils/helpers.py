"""
General utility and helper functions
"""

import re

import numpy as np


# Vector parameters in sampler output are named e.g. "alpha.3", "alpha[3]" or "alpha_3"
def vector_parameter_columns(columns, prefix):
    """
    Find the columns holding the elements of a vector parameter, in element order.

    Args:
        columns: Column names of a sampler output table
        prefix: Name of the vector parameter

    Returns:
        List of column names sorted by their numeric suffix
    """
    pattern = re.compile(rf"^{re.escape(prefix)}(?:\.|\[|_)(\d+)\]?$")
    matches = []
    for column in columns:
        m = pattern.match(str(column))
        if m:
            matches.append((int(m.group(1)), column))
    return [column for _, column in sorted(matches)]


def as_finite_array(values, name):
    """Convert to a 1D float array, raising ValueError if any value is not finite."""
    values = np.asarray(values, dtype=float).reshape(-1)
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{name} must be finite")
    return values
