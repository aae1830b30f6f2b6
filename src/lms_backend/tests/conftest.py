"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys

# Ensure lms_backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from lms_backend.tests.fixtures import *  # noqa: F401,F403
