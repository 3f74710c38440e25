"""Recording of analysis results for later review."""

from updown_trading.storage.recorder import CompositeSink, JsonlRecorder, LoggingSink, event_to_dict

__all__ = ["CompositeSink", "JsonlRecorder", "LoggingSink", "event_to_dict"]
