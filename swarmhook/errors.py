"""Project-level exception hierarchy."""


class SwarmhookError(Exception):
    """Base for all swarmhook exceptions."""


class ConfigError(SwarmhookError):
    """Startup configuration is missing or invalid. The server must not start."""


class PayloadError(SwarmhookError):
    """Webhook body could not be decoded or does not match the active format."""


class CommandError(SwarmhookError):
    """External command could not be spawned."""
