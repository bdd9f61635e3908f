"""
Brief: Global pytest configuration for navguard tests.

Inputs:
  - None

Outputs:
  - None
"""

import logging
import os
import sys

import pytest

# Ensure 'src' is on sys.path so 'navguard' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """
    Brief: Restore root logger handlers and level after each test.

    Inputs:
      - None

    Outputs:
      - None: init_logging() in one test does not leak handlers into others
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for h in list(root.handlers):
        if h not in handlers:
            root.removeHandler(h)
            try:
                h.close()
            except Exception:
                pass
    for h in handlers:
        if h not in root.handlers:
            root.addHandler(h)
    root.setLevel(level)
    logging.captureWarnings(False)
