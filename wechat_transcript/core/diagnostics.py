"""Diagnostics sink shared by the resolution and rendering components.

Components receive a ``Diagnostics`` instance instead of writing to a global
logger or the console. The default sink forwards to a stdlib logger; tests can
pass a ``RecordingDiagnostics`` to assert on emitted events.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple


logger = logging.getLogger("wechat_transcript")


def _format(event: str, fields: Dict[str, Any]) -> str:
    if not fields:
        return event
    parts = " ".join(f"{k}={v!r}" for k, v in fields.items())
    return f"{event} {parts}"


class Diagnostics:
    """Forward structured events to a ``logging.Logger``."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def warn(self, event: str, **fields: Any) -> None:
        self.log.warning(_format(event, fields))

    def info(self, event: str, **fields: Any) -> None:
        self.log.info(_format(event, fields))

    def debug(self, event: str, **fields: Any) -> None:
        self.log.debug(_format(event, fields))


class RecordingDiagnostics(Diagnostics):
    """Keep every event in memory as ``(level, event, fields)``."""

    def __init__(self):
        super().__init__()
        self.events: List[Tuple[str, str, Dict[str, Any]]] = []

    def warn(self, event: str, **fields: Any) -> None:
        self.events.append(("warning", event, fields))

    def info(self, event: str, **fields: Any) -> None:
        self.events.append(("info", event, fields))

    def debug(self, event: str, **fields: Any) -> None:
        self.events.append(("debug", event, fields))

    def names(self, level: Optional[str] = None) -> List[str]:
        return [e for lvl, e, _ in self.events if level is None or lvl == level]
