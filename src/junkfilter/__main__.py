# =============================================================================
# Junkfilter Entry Point for `python -m junkfilter`
# =============================================================================
# This module allows Junkfilter to be run as a Python module:
#
#   python -m junkfilter check message.eml
#
# This is equivalent to running the 'junkfilter' command after installation.
# =============================================================================

import sys

from junkfilter.cli import main

if __name__ == "__main__":
    sys.exit(main())
