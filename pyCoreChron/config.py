"""
Configuration settings for pyCoreChron
======================================

Defaults used by the hierarchy builder, the summarizer and the data loaders.
Every public function accepts keyword overrides; these values are only the
defaults.
"""

# ============================================================================
# SECTION HIERARCHY
# ============================================================================

# Upper limit on the number of finest-level sections chosen automatically
MAX_FINEST_SECTIONS = 900

# Depth units per finest section aimed for by the automatic K selection
TARGET_SECTION_THICKNESS = 1.0

# Candidate common branching factors for the automatic K selection
AUTO_K_BASES = range(2, 11)

# ============================================================================
# SUMMARIES
# ============================================================================

# Quantiles always reported by the summarizer (fractions, not percent)
DEFAULT_QUANTILES = (0.025, 0.25, 0.5, 0.75, 0.975)

# Bulk effective sample size below which a quantity is flagged as degenerate
ESS_WARNING_THRESHOLD = 100

# ============================================================================
# COLUMN NAME MAPPING
# ============================================================================

# Names of the posterior quantities as returned by the sampling layer
DEFAULT_SAMPLE_COLUMNS = {
    'overall_mean_rate': 'overall_mean_rate',
    'multipliers': 'alpha',
    'memory': 'R',
    'start_age': 'age0',
    'chain': 'chain',
}

# Observation table columns (depth, calendar age, 1-sigma age error)
DEFAULT_OBSERVATION_COLUMNS = {
    'depth': 'depth',
    'age': 'age',
    'error': 'error',
}


def print_config_summary():
    """Print a summary of the current configuration."""
    print("=" * 60)
    print("pyCoreChron CONFIGURATION SUMMARY")
    print("=" * 60)
    print(f"\nMax finest sections: {MAX_FINEST_SECTIONS}")
    print(f"Target section thickness: {TARGET_SECTION_THICKNESS}")
    print(f"Auto-K candidate bases: {list(AUTO_K_BASES)}")
    print(f"\nDefault quantiles: {[f'{q * 100:g}%' for q in DEFAULT_QUANTILES]}")
    print(f"ESS warning threshold: {ESS_WARNING_THRESHOLD}")
    print(f"\nSample columns: {DEFAULT_SAMPLE_COLUMNS}")
    print(f"Observation columns: {DEFAULT_OBSERVATION_COLUMNS}")
    print("=" * 60)
