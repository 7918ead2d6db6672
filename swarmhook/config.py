"""Application configuration: environment, secrets and deployment targets.

Everything is loaded once at startup into frozen pydantic models and passed
explicitly to the server and deployer.  Nothing here is mutated afterwards.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from swarmhook.errors import ConfigError
from swarmhook.webhook.payloads import PayloadFormat

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "production"
DEFAULT_CONFIG_FILE = "config.json"
DEFAULT_DOCKER = "/usr/bin/docker"


class ServiceTarget(BaseModel):
    """A Swarm service that is restarted when its image is pushed."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    service: str = Field(min_length=1)


class Credentials(BaseModel):
    """Inbound webhook token and registry login."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(repr=False)
    username: str
    password: str = Field(repr=False)
    registry: str = ""  # empty = docker's default registry


class DeployConfig(BaseModel):
    """Immutable process-wide configuration."""

    model_config = ConfigDict(frozen=True)

    environment: str = DEFAULT_ENVIRONMENT
    payload_format: PayloadFormat = PayloadFormat.REGISTRY
    targets: dict[str, ServiceTarget] = Field(default_factory=dict)
    credentials: Credentials
    slack_webhook_url: str = ""
    docker_command: str = DEFAULT_DOCKER
    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=3000, ge=0, le=65535)
    max_body_bytes: int = Field(default=1048576, gt=0)
    command_timeout: float | None = Field(default=None, gt=0)
    log_level: str = "INFO"
    log_dir: Path | None = None


_TARGETS_ADAPTER: TypeAdapter[dict[str, ServiceTarget]] = TypeAdapter(dict[str, ServiceTarget])


def read_secret(env: Mapping[str, str], name: str) -> str:
    """Resolve a secret from ``<name>_FILE`` (checked first) or ``<name>``.

    File contents are stripped of surrounding whitespace.  Returns ``""``
    when neither variable is set.
    """
    file_path = env.get(f"{name}_FILE", "")
    if file_path:
        try:
            return Path(file_path).read_text(encoding="utf-8").strip()
        except OSError as exc:
            msg = f"Cannot read {name}_FILE at {file_path}: {exc}"
            raise ConfigError(msg) from exc
    return env.get(name, "")


def load_credentials(env: Mapping[str, str]) -> Credentials:
    """Build credentials from the environment. Raises ConfigError if incomplete."""
    token = read_secret(env, "TOKEN")
    username = read_secret(env, "USERNAME")
    password = read_secret(env, "PASSWORD")
    if not token or not username or not password:
        msg = "You must set a token, username and password."
        raise ConfigError(msg)
    return Credentials(
        token=token,
        username=username,
        password=password,
        registry=env.get("REGISTRY", ""),
    )


def load_targets(config_path: Path, environment: str) -> dict[str, ServiceTarget]:
    """Return the image-key -> target mapping for *environment*.

    The file is a JSON object keyed by environment name; each section maps
    image keys to ``{"service": "<swarm service>"}``.
    """
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        msg = f"Cannot read config file {config_path}: {exc}"
        raise ConfigError(msg) from exc
    except json.JSONDecodeError as exc:
        msg = f"Config file {config_path} is not valid JSON: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict) or environment not in data:
        msg = f"No section for environment '{environment}' in {config_path}"
        raise ConfigError(msg)

    try:
        targets = _TARGETS_ADAPTER.validate_python(data[environment])
    except ValidationError as exc:
        msg = f"Invalid targets for environment '{environment}' in {config_path}: {exc}"
        raise ConfigError(msg) from exc

    logger.info(
        "Loaded %d deployment target(s) for environment=%s", len(targets), environment
    )
    return targets


def load_config(environ: Mapping[str, str] | None = None) -> DeployConfig:
    """Assemble the full configuration from environment variables.

    Raises ConfigError for anything that must stop the server from starting.
    """
    env = os.environ if environ is None else environ
    environment = env.get("ENVIRONMENT") or DEFAULT_ENVIRONMENT

    raw_format = env.get("PAYLOAD_FORMAT") or PayloadFormat.REGISTRY.value
    try:
        payload_format = PayloadFormat(raw_format.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(f.value for f in PayloadFormat)
        msg = f"Unknown PAYLOAD_FORMAT '{raw_format}' (expected one of: {allowed})"
        raise ConfigError(msg) from exc

    credentials = load_credentials(env)
    targets = load_targets(Path(env.get("CONFIG_FILE") or DEFAULT_CONFIG_FILE), environment)

    values: dict[str, object] = {
        "environment": environment,
        "payload_format": payload_format,
        "targets": targets,
        "credentials": credentials,
        "slack_webhook_url": env.get("SLACK_WEBHOOK_URL", ""),
        "docker_command": env.get("DOCKER") or DEFAULT_DOCKER,
        "log_level": env.get("LOG_LEVEL") or "INFO",
    }
    optional = {
        "host": "HOST",
        "port": "PORT",
        "max_body_bytes": "MAX_BODY_BYTES",
        "command_timeout": "COMMAND_TIMEOUT",
        "log_dir": "LOG_DIR",
    }
    for field_name, var in optional.items():
        if env.get(var):
            values[field_name] = env[var]

    try:
        return DeployConfig.model_validate(values)
    except ValidationError as exc:
        msg = f"Invalid configuration: {exc}"
        raise ConfigError(msg) from exc
