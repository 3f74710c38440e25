"""Observability sinks for signals, position lifecycle events and analysis records."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from updown_trading.core.types import AnalysisRecord, PositionEvent, Signal
from updown_trading.exchange.base import ObservabilitySink, ObservableEvent

logger = logging.getLogger(__name__)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def event_to_dict(event: ObservableEvent) -> dict[str, Any]:
    """Convert an event into a JSON-ready dict tagged with its type."""
    data = asdict(event)
    if isinstance(event, Signal):
        data["reason"] = event.reason
    data["type"] = type(event).__name__
    return data


class LoggingSink:
    """Writes events to the application log."""

    def record(self, event: ObservableEvent) -> None:
        if isinstance(event, Signal):
            logger.info(
                "Signal %s %s: prob=%.1f%% conf=%.1f%% strength=%.1f%% size=$%.2f | %s",
                event.instrument_id,
                event.direction,
                event.probability * 100,
                event.confidence * 100,
                event.strength * 100,
                event.recommended_size_usd,
                event.reason,
            )
        elif isinstance(event, PositionEvent):
            position = event.position
            logger.info(
                "Position %s %s %s: size=$%.2f entry=%.4f mark=%.4f pnl=$%.2f (%.2f%%) order=%s %s",
                event.kind,
                position.instrument_id,
                position.direction,
                position.size_usd,
                position.entry_price,
                position.mark_price,
                position.pnl_usd,
                position.pnl_percent,
                event.order_id,
                event.reason,
            )
        else:
            logger.debug(
                "Analyzed %s (%s): up=%.3f down=%.3f signal=%s",
                event.slug,
                event.symbol,
                event.up_probability,
                event.down_probability,
                event.signal.direction if event.signal else None,
            )


class JsonlRecorder:
    """Appends events to JSONL files under a data directory.

    Files:
        analysis-records.jsonl: every AnalysisRecord
        signals.jsonl: every Signal
        positions.jsonl: every PositionEvent
        best-opportunities.json: highest-confidence signal per instrument
    """

    def __init__(self, data_dir: str | Path = "data", best_limit: int = 50) -> None:
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.records_file = self.data_dir / "analysis-records.jsonl"
        self.signals_file = self.data_dir / "signals.jsonl"
        self.positions_file = self.data_dir / "positions.jsonl"
        self.summary_file = self.data_dir / "best-opportunities.json"
        self.best_limit = best_limit
        self.best_opportunities: dict[str, Signal] = {}

    def _append(self, path: Path, event: ObservableEvent) -> None:
        line = json.dumps(event_to_dict(event), default=_json_default, ensure_ascii=False)
        with path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def record(self, event: ObservableEvent) -> None:
        if isinstance(event, AnalysisRecord):
            self._append(self.records_file, event)
        elif isinstance(event, Signal):
            self._append(self.signals_file, event)
            existing = self.best_opportunities.get(event.instrument_id)
            if existing is None or event.confidence > existing.confidence:
                self.best_opportunities[event.instrument_id] = event
        elif isinstance(event, PositionEvent):
            self._append(self.positions_file, event)

    def save_best_opportunities(self) -> int:
        """Write the top signals by confidence; returns how many were saved."""
        ranked = sorted(
            self.best_opportunities.values(),
            key=lambda signal: signal.confidence,
            reverse=True,
        )[: self.best_limit]

        with self.summary_file.open("w", encoding="utf-8") as f:
            json.dump(
                [event_to_dict(signal) for signal in ranked],
                f,
                indent=2,
                default=_json_default,
                ensure_ascii=False,
            )

        logger.info("Saved %d best opportunities to %s", len(ranked), self.summary_file)
        return len(ranked)


class CompositeSink:
    """Fans events out to several sinks; one failing sink does not stop the others."""

    def __init__(self, sinks: Sequence[ObservabilitySink]) -> None:
        self.sinks = list(sinks)

    def record(self, event: ObservableEvent) -> None:
        for sink in self.sinks:
            try:
                sink.record(event)
            except OSError as exc:
                logger.error("Sink %s failed to record %s: %s", type(sink).__name__, type(event).__name__, exc)


__all__ = ["LoggingSink", "JsonlRecorder", "CompositeSink", "event_to_dict"]
