"""Structured event log.

One JSON object per line in ``compadre.jsonl``: HTTP requests, CLI session
events, safety gate rejections and server errors. Conversation content lives
in the per-user transcripts instead (see conversation_logger).
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .config import DEFAULT_HOME

SAFETY_EXCERPT_CHARS = 100


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class LogEntry:
    timestamp: str
    event: str
    user_id: str | None = None
    path: str | None = None
    status_code: int | None = None
    duration_ms: float | None = None
    reason: str | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Only the fields that carry a value; an empty ``extra`` is dropped."""
        return {key: value for key, value in asdict(self).items() if value not in (None, {})}


class JSONLLogger:
    """Appends LogEntry lines to a file that rolls over at ``max_size_mb``."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "compadre.jsonl",
        max_size_mb: float = 10.0,
    ) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else DEFAULT_HOME / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.filename

    def _roll_over(self) -> None:
        path = self.log_path
        if path.exists() and path.stat().st_size >= self.max_size_bytes:
            # Microseconds keep back-to-back rollovers from colliding
            suffix = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_%f")
            path.rename(path.with_name(f"{path.stem}_{suffix}{path.suffix}"))

    def write(self, entry: LogEntry) -> None:
        self._roll_over()
        line = json.dumps(entry.to_dict(), ensure_ascii=False)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def log(self, event: str, **fields: Any) -> None:
        """Record ``event``.

        Keyword arguments matching a LogEntry field land at the top level of
        the line; anything else is grouped under ``extra``.
        """
        known = {key: fields.pop(key) for key in _ENTRY_FIELDS if key in fields}
        self.write(LogEntry(timestamp=_now_iso(), event=event, extra=fields, **known))

    def log_request(
        self,
        path: str,
        status_code: int,
        duration_ms: float,
        *,
        user_id: str | None = None,
        **extra: Any,
    ) -> None:
        self.log(
            "http_request",
            user_id=user_id,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
            **extra,
        )

    def log_safety_violation(self, user_id: str, text: str, reason: str, category: str) -> None:
        """Record a gate rejection with a short excerpt of the offending input."""
        excerpt = text if len(text) <= SAFETY_EXCERPT_CHARS else text[:SAFETY_EXCERPT_CHARS] + "..."
        self.log("safety_violation", user_id=user_id, reason=reason, category=category, input=excerpt)


_ENTRY_FIELDS = ("user_id", "path", "status_code", "duration_ms", "reason", "error")

_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Replace the process-wide logger, e.g. to point it at a configured log dir."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
