"""Pytest configuration for the quillchat test suite.

Isolates every test from the developer's environment: ``QUILLCHAT_*`` and
``QC_TIMEOUT_*`` variables are removed, the ``.env`` loader is pointed at a
missing file, and module-level configuration caches are reset.
"""

from __future__ import annotations

import logging
import os
from typing import Iterator, List

import pytest

from quillchat import config as config_mod
from quillchat.base.logging import BASE_LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    """Strip quillchat variables and reset cached configuration."""
    for name in list(os.environ):
        if name.startswith(("QUILLCHAT_", "QC_TIMEOUT_")):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOTENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setattr(config_mod, "_FILE_CACHE", None)
    monkeypatch.setattr(config_mod, "_DOTENV_LOADED", False)
    yield


@pytest.fixture()
def log_records() -> Iterator[List[logging.LogRecord]]:
    """Capture records reaching the shared ``quillchat`` logger.

    The base logger does not propagate to the root logger, so the capturing
    handler is attached to it directly.
    """
    records: List[logging.LogRecord] = []
    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = lambda record: records.append(record)  # type: ignore[method-assign]
    base = logging.getLogger(BASE_LOGGER_NAME)
    base.addHandler(handler)
    try:
        yield records
    finally:
        base.removeHandler(handler)
