"""Entry point: python -m swarmhook."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import NoReturn

from rich.console import Console

from swarmhook.config import DeployConfig, load_config
from swarmhook.deploy.orchestrator import Deployer
from swarmhook.deploy.policy import DeploymentPolicy
from swarmhook.deploy.runner import SubprocessRunner
from swarmhook.errors import ConfigError
from swarmhook.logging_config import resolve_level, setup_logging
from swarmhook.notify.slack import build_notifier
from swarmhook.webhook.payloads import get_parser
from swarmhook.webhook.pipeline import DeployPipeline
from swarmhook.webhook.server import WebhookServer

logger = logging.getLogger(__name__)

_console = Console(stderr=True)

_USAGE = """\
Usage: swarmhook [--verbose]

Receives registry push webhooks and updates Docker Swarm services.
Configured through environment variables:

  ENVIRONMENT         config section and tag prefix (default: production)
  CONFIG_FILE         deployment targets JSON (default: config.json)
  PAYLOAD_FORMAT      registry | dockerhub (default: registry)
  TOKEN[_FILE]        bearer token expected from the webhook sender
  USERNAME[_FILE]     registry username
  PASSWORD[_FILE]     registry password
  REGISTRY            registry host for docker login (default: Docker Hub)
  SLACK_WEBHOOK_URL   Slack incoming webhook for deployment results
  DOCKER              docker binary (default: /usr/bin/docker)
  HOST, PORT          listen address (default: 0.0.0.0:3000)
  COMMAND_TIMEOUT     seconds before a docker command is killed (default: none)
  LOG_LEVEL, LOG_DIR  logging level and optional log file directory
"""


def _fail(message: str) -> NoReturn:
    _console.print(f"[bold red]Error:[/bold red] {message}")
    sys.exit(1)


def build_server(config: DeployConfig) -> tuple[WebhookServer, Deployer]:
    """Wire parser, policy, deployer and pipeline into a server."""
    parser = get_parser(config.payload_format)
    policy = DeploymentPolicy(config.targets, config.environment, parser)
    deployer = Deployer(
        config.credentials,
        SubprocessRunner(deadline_seconds=config.command_timeout),
        build_notifier(config.slack_webhook_url),
        docker_command=config.docker_command,
    )
    pipeline = DeployPipeline(parser, policy, deployer)
    return WebhookServer(config, pipeline), deployer


async def serve(config: DeployConfig) -> None:
    """Run the webhook server until SIGINT/SIGTERM."""
    server, deployer = build_server(config)
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    logger.info(
        "Starting swarmhook environment=%s format=%s targets=%d",
        config.environment,
        config.payload_format.value,
        len(config.targets),
    )
    await server.start()
    try:
        await stop.wait()
        logger.info("Shutting down...")
    finally:
        await server.stop()
        await deployer.drain()
        await deployer.close()


def main() -> None:
    """CLI entry point."""
    args = sys.argv[1:]
    if "--help" in args or "-h" in args:
        print(_USAGE, end="")  # noqa: T201
        return
    verbose = "--verbose" in args or "-v" in args

    setup_logging(verbose=verbose)
    try:
        config = load_config()
    except ConfigError as exc:
        _fail(str(exc))

    level = resolve_level(config.log_level)
    if level != logging.INFO or config.log_dir is not None:
        setup_logging(level=level, verbose=verbose, log_dir=config.log_dir)

    try:
        asyncio.run(serve(config))
    except OSError as exc:
        _fail(f"Cannot listen on {config.host}:{config.port}: {exc}")


if __name__ == "__main__":
    main()
