"""
Core modules for pyCoreChron.

This package contains the hierarchical section index, the mapping of sampler
parameters onto it, the reconstruction of age-depth realizations and their
summaries and diagnostics.
"""

# Section hierarchy
from .hierarchy import (
    HierarchyNode,
    SectionHierarchy,
    default_K,
    build_hierarchy,
    hierarchy_from_observations,
    hierarchy_depths
)

# Parameter mapping
from .parameter_mapping import (
    expected_parameter_count,
    map_parameters,
    split_parameter_vector,
    level_accumulation_rates,
    finest_accumulation_rates,
    memory_between_sections
)

# Fitted model containers
from .fit_result import (
    AccRateUnit,
    SummaryKind,
    PosteriorDraw,
    PosteriorEnsemble,
    FitResult,
    create_fit_result
)

# Age realizations
from .age_reconstruction import (
    estimate_anchor_age,
    resolve_anchor,
    reconstruct_ages,
    reconstruct_ensemble,
    check_monotonic
)

# Diagnostics
from .diagnostics import (
    group_by_chain,
    effective_sample_size,
    convergence_statistic,
    check_sample_quality
)

# Summaries and interpolation
from .summary import (
    quantile_label,
    interpolate_realizations,
    interpolate_age,
    summarise_realizations,
    predict,
    summarise,
    summarise_acc_rates,
    summarise_hierarchical_acc_rates,
    summarise_parameter,
    summarise_fit
)

__all__ = [
    # Section hierarchy
    'HierarchyNode',
    'SectionHierarchy',
    'default_K',
    'build_hierarchy',
    'hierarchy_from_observations',
    'hierarchy_depths',

    # Parameter mapping
    'expected_parameter_count',
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
    'estimate_anchor_age',
    'resolve_anchor',
    'reconstruct_ages',
    'reconstruct_ensemble',
    'check_monotonic',

    # Diagnostics
    'group_by_chain',
    'effective_sample_size',
    'convergence_statistic',
    'check_sample_quality',

    # Summaries and interpolation
    'quantile_label',
    'interpolate_realizations',
    'interpolate_age',
    'summarise_realizations',
    'predict',
    'summarise',
    'summarise_acc_rates',
    'summarise_hierarchical_acc_rates',
    'summarise_parameter',
    'summarise_fit'
]
