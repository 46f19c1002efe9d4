# =============================================================================
# Junkfilter: A Trainable Statistical Junk Filter for Email
# =============================================================================
#
# Junkfilter learns what your ham and your spam look like and scores new
# messages with a spam probability.
#
# Features:
#   - Word and n-gram features (1-, 2- and 3-grams)
#   - Smoothed per-word probabilities with a tunable neutral band
#   - Counting Bloom filter to skip words seen too rarely to trust
#   - Crash-safe persistence with checksums and schema versioning
#   - Evaluation tools: test, train/test split analysis, chronological replay
#   - XDG Base Directory compliant
#
# =============================================================================

__version__ = "0.1.0"
__app_name__ = "junkfilter"

# Main entry point - this is what gets called by the 'junkfilter' command
from junkfilter.cli import main

__all__ = ["main", "__version__", "__app_name__"]
