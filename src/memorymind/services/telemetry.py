from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from memorymind.engine.events import Event
from memorymind.engine.serialize import event_to_dict


@dataclass
class TelemetryService:
    path: Path
    session_id: str = ""

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "session": self.session_id,
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")


@dataclass
class TelemetrySink:
    """EventSink that appends every match event to the telemetry log."""

    telemetry: TelemetryService

    def emit(self, event: Event) -> None:
        payload = event_to_dict(event)
        event_type = str(payload.pop("type"))
        self.telemetry.log(event_type, payload)
