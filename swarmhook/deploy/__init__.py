"""Deployment: policy filtering, command execution and the login/update sequence."""

from swarmhook.deploy.orchestrator import Deployer, DeploymentOutcome
from swarmhook.deploy.policy import Deployment, DeploymentPolicy
from swarmhook.deploy.runner import CommandResult, CommandRunner, SubprocessRunner

__all__ = [
    "CommandResult",
    "CommandRunner",
    "Deployer",
    "Deployment",
    "DeploymentOutcome",
    "DeploymentPolicy",
    "SubprocessRunner",
]
