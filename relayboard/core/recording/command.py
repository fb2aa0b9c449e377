# relayboard/core/recording/command.py
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from relayboard.interfaces.command_sink import CommandEvent, CommandSink


@dataclass
class CommandTraceLogger(CommandSink):
    """
    Records every dispatched command to a logger and, optionally, a JSONL file.

    One JSON object per line: {"name", "kind", "payload", "ts_utc"}.
    """
    logger: logging.Logger
    file_path: Optional[Path] = None

    def __post_init__(self) -> None:
        self._lock = threading.Lock()
        self._fh = None
        if self.file_path is not None:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.file_path, "a", encoding="utf-8")

    def close(self) -> None:
        with self._lock:
            if self._fh is not None:
                try:
                    self._fh.close()
                finally:
                    self._fh = None

    def on_command(self, event: CommandEvent) -> None:
        ts_utc = event.ts_utc or datetime.now(timezone.utc).isoformat()

        out = {
            "name": event.name,
            "kind": event.kind,
            "payload": dict(event.payload) if event.payload is not None else None,
            "ts_utc": ts_utc,
        }
        out = {k: v for k, v in out.items() if v is not None}

        self.logger.info("CMD name=%s kind=%s payload=%s", event.name, event.kind, out.get("payload"))

        with self._lock:
            if self._fh is None:
                return
            self._fh.write(json.dumps(out, ensure_ascii=False) + "\n")
            self._fh.flush()
