from __future__ import annotations

from pathlib import Path

import pytest

from photoforge.config import ForgeConfig

from tests.mocks.http import HTTPRecorder, install_httpx


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PHOTOFORGE_REPLICATE_API_TOKEN", "PHOTOFORGE_KIE_API_KEY", "PHOTOFORGE_TOTAL_TIMEOUT_SECONDS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def forge_config(tmp_path: Path) -> ForgeConfig:
    return ForgeConfig(
        replicate_api_token="r8-test-token",
        kie_api_key="kie-test-key",
        media_root=tmp_path / "media",
        poll_interval_seconds=0,
        download_timeout_seconds=5,
    )


@pytest.fixture
def http(monkeypatch) -> HTTPRecorder:
    """Empty recorder installed in place of ``httpx.AsyncClient``; tests fill its queues."""
    return install_httpx(monkeypatch, HTTPRecorder())
