"""
Pytest bootstrap for src/ layout.

- Puts ./src first on sys.path so the local `attenuation` package wins over
  any installed copy, even when pytest runs without an editable install.
- Restores the global numerics CONFIG after every test so set_config() calls
  cannot leak between tests.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

repo_root = Path(__file__).resolve().parents[1]
src = repo_root / "src"
if src.is_dir():
    src_str = str(src)
    if src_str not in sys.path:
        sys.path.insert(0, src_str)

from attenuation import config as _config  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_config():
    original = _config.CONFIG
    yield
    _config.CONFIG = original
