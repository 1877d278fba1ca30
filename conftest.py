"""Pytest configuration and shared fixtures."""
import logging
import sys
import warnings
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

# Apply filters early so they're in effect when tests import (e.g. scipy at import time)
warnings.filterwarnings("ignore", message=".*Mean of empty slice.*", category=RuntimeWarning)


def pytest_configure(config):
    """Keep library debug logging out of test output unless asked for."""
    logging.getLogger("qb_rankings").setLevel(logging.INFO)
