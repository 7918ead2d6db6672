"""Shared test fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from swarmhook.config import Credentials, DeployConfig, ServiceTarget
from tests.helpers import TOKEN, FakeNotifier, FakeRunner


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(token=TOKEN, username="deployer", password="s3cret", registry="")


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def targets() -> dict[str, ServiceTarget]:
    return {
        "registry.example.com/myapp": ServiceTarget(service="myapp-svc"),
        "registry.example.com/worker": ServiceTarget(service="worker-svc"),
    }


@pytest.fixture
def deploy_config(credentials: Credentials, targets: dict[str, ServiceTarget]) -> DeployConfig:
    return DeployConfig(
        environment="production",
        targets=targets,
        credentials=credentials,
        port=0,
    )


@pytest.fixture
def write_targets(tmp_path: Path) -> Callable[[Any], Path]:
    """Write a targets JSON file and return its path."""

    def _write(data: Any) -> Path:
        path = tmp_path / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
