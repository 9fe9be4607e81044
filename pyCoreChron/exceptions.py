"""
Error and warning classes for pyCoreChron.

Included Classes:
- ConfigurationError: Invalid hierarchy configuration (branching factors or depth span)
- OutOfRangeWarning: Interpolation requested outside the modelled depth range
- DegenerateSampleWarning: Effective sample size below the usability threshold
"""


class ConfigurationError(ValueError):
    """Raised when a section hierarchy cannot be built from the given K and depth span."""


class OutOfRangeWarning(UserWarning):
    """Issued when query depths fall outside the modelled depth range."""


class DegenerateSampleWarning(UserWarning):
    """Issued when the effective sample size of a summarised quantity is too small."""
