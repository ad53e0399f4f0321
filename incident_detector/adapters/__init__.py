"""Platform adapters for chat integrations."""

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.adapters.slack import SlackAdapter

__all__ = ["BasePlatformAdapter", "SlackAdapter"]
