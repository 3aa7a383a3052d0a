"""Import-order tests.

Entry points (alembic, the seed script, the test suite) import
``lawdesk.config`` before anything else. Each import runs in a fresh
interpreter so modules already loaded by the test session cannot hide a cycle.
"""

import os
import subprocess
import sys
from pathlib import Path

import pytest


SRC = Path(__file__).resolve().parents[2] / "src"


@pytest.mark.parametrize(
    "module",
    [
        "lawdesk.config",
        "lawdesk.core.constants",
        "lawdesk.core.database",
        "lawdesk.core.errors",
        "lawdesk.core.tenancy.router",
        "lawdesk.main",
    ],
)
def test_module_imports_first(module: str):
    """Each module should import cleanly as the first lawdesk import."""
    env = {**os.environ, "PYTHONPATH": os.pathsep.join([str(SRC), os.environ.get("PYTHONPATH", "")])}

    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
        env=env,
        timeout=60,
    )

    assert result.returncode == 0, result.stderr
