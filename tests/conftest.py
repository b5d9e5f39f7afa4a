"""Test-wide fixtures: isolate from the developer's EJPUB_* environment and clean up stray artifacts"""

import os
import shutil
from pathlib import Path

import pytest


ROOT = Path(__file__).parent.parent
ARTIFACTS = ("ejpub.db", "test.db", "dist", "files")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Drop EJPUB_* variables so only what a test sets is seen by load_config."""
    for key in [k for k in os.environ if k.startswith("EJPUB_")]:
        monkeypatch.delenv(key)


@pytest.fixture(scope="session", autouse=True)
def cleanup_artifacts():
    """Remove databases and output directories a test run left in the project root."""
    yield
    for name in ARTIFACTS:
        path = ROOT / name
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
