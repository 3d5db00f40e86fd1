"""Synthetic record source for the loader."""

from .generator import DrillEventSource, TimelineConfig
from .models import DrillEvent, UserProperties

__all__ = ["DrillEventSource", "TimelineConfig", "DrillEvent", "UserProperties"]
