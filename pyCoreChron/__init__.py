"""
pyCoreChron: Python package for hierarchical age-depth modelling of sediment cores.

This package builds the nested multi-resolution section index of a core, joins
posterior accumulation-rate samples from an external sampler onto it, and
reconstructs, interpolates and summarises the resulting age-depth models.
"""

__version__ = "0.1.0"

# Errors and warnings
from .exceptions import (
    ConfigurationError,
    OutOfRangeWarning,
    DegenerateSampleWarning
)

from .config import print_config_summary

# Data loading
from .utils.data_loader import (
    load_observations_from_csv,
    load_posterior_samples_from_csv
)

# Section hierarchy
from .core.hierarchy import (
    HierarchyNode,
    SectionHierarchy,
    default_K,
    build_hierarchy,
    hierarchy_from_observations,
    hierarchy_depths
)

# Parameter mapping
from .core.parameter_mapping import (
    map_parameters,
    split_parameter_vector,
    level_accumulation_rates,
    finest_accumulation_rates,
    memory_between_sections
)

# Fitted model containers
from .core.fit_result import (
    AccRateUnit,
    SummaryKind,
    PosteriorDraw,
    PosteriorEnsemble,
    FitResult,
    create_fit_result
)

# Age realizations
from .core.age_reconstruction import (
    reconstruct_ages,
    reconstruct_ensemble,
    check_monotonic
)

# Summaries, interpolation and diagnostics
from .core.diagnostics import effective_sample_size, convergence_statistic
from .core.summary import (
    interpolate_realizations,
    interpolate_age,
    summarise_realizations,
    predict,
    summarise,
    summarise_fit
)

__all__ = [
    # Version
    '__version__',

    # Errors and warnings
    'ConfigurationError',
    'OutOfRangeWarning',
    'DegenerateSampleWarning',

    # Configuration
    'print_config_summary',

    # Data loading functions
    'load_observations_from_csv',
    'load_posterior_samples_from_csv',

    # Section hierarchy
    'HierarchyNode',
    'SectionHierarchy',
    'default_K',
    'build_hierarchy',
    'hierarchy_from_observations',
    'hierarchy_depths',

    # Parameter mapping
    'map_parameters',
    'split_parameter_vector',
    'level_accumulation_rates',
    'finest_accumulation_rates',
    'memory_between_sections',

    # Fitted model containers
    'AccRateUnit',
    'SummaryKind',
    'PosteriorDraw',
    'PosteriorEnsemble',
    'FitResult',
    'create_fit_result',

    # Age realizations
    'reconstruct_ages',
    'reconstruct_ensemble',
    'check_monotonic',

    # Summaries, interpolation and diagnostics
    'effective_sample_size',
    'convergence_statistic',
    'interpolate_realizations',
    'interpolate_age',
    'summarise_realizations',
    'predict',
    'summarise',
    'summarise_fit'
]
