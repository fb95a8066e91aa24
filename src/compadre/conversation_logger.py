"""Per-user conversation transcripts.

Every turn the orchestrator runs is written out as a series of JSON lines,
one file per user per day, so a single conversation can be replayed later:
what the user said, what the model was asked and answered, which kitchen
functions ran and whether nutrition analysis fired.
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")

MAX_TOOL_OUTPUT_CHARS = 2000


class ConversationLogger:
    def __init__(self, log_dir: Path | str | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self, user_id: str) -> Path:
        # User ids come straight from request bodies; keep them inside log_dir.
        safe_id = _UNSAFE_FILENAME_CHARS.sub("_", user_id) or "anonymous"
        return self.log_dir / f"{datetime.now():%Y-%m-%d}_{safe_id}.jsonl"

    def _write(self, user_id: str, event: str, **fields: Any) -> None:
        """Append one event. Fields left as None are omitted from the line."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "user_id": user_id,
        }
        entry.update((key, value) for key, value in fields.items() if value is not None)
        with open(self._get_log_file(user_id), "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def log_user_message(self, user_id: str, content: str) -> None:
        self._write(user_id, "user_message", role="user", content=content)

    def log_assistant_message(self, user_id: str, content: str) -> None:
        self._write(user_id, "assistant_message", role="assistant", content=content)

    def log_llm_request(
        self,
        user_id: str,
        model: str,
        prompt_chars: int,
        tools_count: int,
        purpose: str = "chat",
    ) -> None:
        """Record a model call before it is sent.

        ``purpose`` separates the conversational call from side calls such as
        nutrition analysis or recipe extraction.
        """
        self._write(
            user_id,
            "llm_request",
            model=model,
            purpose=purpose,
            prompt_chars=prompt_chars,
            tools_count=tools_count,
        )

    def log_llm_response(
        self,
        user_id: str,
        has_text: bool,
        tool_calls_count: int,
        finish_reason: str | None = None,
        block_reason: str | None = None,
        usage: dict[str, int] | None = None,
    ) -> None:
        self._write(
            user_id,
            "llm_response",
            has_text=has_text,
            tool_calls_count=tool_calls_count,
            finish_reason=finish_reason,
            block_reason=block_reason or None,
            usage=usage or None,
        )

    def log_tool_call(
        self,
        user_id: str,
        tool_name: str,
        tool_args: dict[str, Any],
        source: str | None = None,
    ) -> None:
        """Record a function call, either from the model or a local fallback."""
        self._write(user_id, "tool_call", tool_name=tool_name, tool_args=tool_args, source=source)

    def log_tool_result(
        self,
        user_id: str,
        tool_name: str,
        success: bool,
        output: str,
        error: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self._write(
            user_id,
            "tool_result",
            tool_name=tool_name,
            success=success,
            output=(output or "")[:MAX_TOOL_OUTPUT_CHARS],
            error=error or None,
            duration_ms=duration_ms,
        )

    def log_nutrition(self, user_id: str, trigger: str, success: bool) -> None:
        self._write(user_id, "nutrition_analysis", trigger=trigger, success=success)

    def log_error(self, user_id: str, error: str, context: str | None = None) -> None:
        self._write(user_id, "error", error=error, context=context or None)

    def log_turn_end(
        self,
        user_id: str,
        outcome: str,
        actions_count: int,
        has_nutrition: bool,
    ) -> None:
        self._write(
            user_id,
            "turn_end",
            outcome=outcome,
            actions_count=actions_count,
            has_nutrition=has_nutrition,
        )


_conversation_logger: ConversationLogger | None = None


def get_conversation_logger(log_dir: Path | str | None = None) -> ConversationLogger:
    """Return the process-wide logger, creating it in ``log_dir`` on first use."""
    global _conversation_logger
    if _conversation_logger is None:
        _conversation_logger = ConversationLogger(log_dir=log_dir)
    return _conversation_logger


def reset_conversation_logger() -> None:
    global _conversation_logger
    _conversation_logger = None
