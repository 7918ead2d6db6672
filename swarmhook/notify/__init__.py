"""Operator notifications for deployment outcomes."""

from swarmhook.notify.slack import Notifier, NullNotifier, SlackNotifier, build_notifier

__all__ = ["Notifier", "NullNotifier", "SlackNotifier", "build_notifier"]
