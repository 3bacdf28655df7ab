"""Build event logging utilities."""

from .events import BuildEvent, BuildLog, JsonlEventLog, utc_timestamp

__all__ = ["BuildEvent", "BuildLog", "JsonlEventLog", "utc_timestamp"]
