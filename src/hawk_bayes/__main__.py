# =============================================================================
# Hawk-Bayes Entry Point for `python -m hawk_bayes`
# =============================================================================
# This module allows Hawk-Bayes to be run as a Python module:
#
#   python -m hawk_bayes classify mail/*.txt
#
# This is equivalent to running the 'hawk-bayes' command after installation.
# =============================================================================

import sys

from hawk_bayes.cli import main

if __name__ == "__main__":
    sys.exit(main())
