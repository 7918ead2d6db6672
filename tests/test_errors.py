"""Tests for the exception hierarchy."""

from swarmhook.errors import CommandError, ConfigError, PayloadError, SwarmhookError


def test_base_error_is_exception() -> None:
    assert issubclass(SwarmhookError, Exception)


def test_config_error_inherits_base() -> None:
    err = ConfigError("no token")
    assert isinstance(err, SwarmhookError)
    assert str(err) == "no token"


def test_catch_all_with_base() -> None:
    """All subclasses catchable via SwarmhookError."""
    for cls in (ConfigError, PayloadError, CommandError):
        try:
            raise cls("test")
        except SwarmhookError:
            pass
