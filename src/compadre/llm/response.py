"""Normalize model responses into text plus a flat list of tool calls.

Tool calls can show up in several places depending on the SDK and version:
a callable `function_calls` accessor, a plain `function_calls` field, function
call parts nested in the first candidate, or OpenAI-style `tool_calls` on the
first chat choice. Everything downstream only sees `ToolCall`.
"""

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import ContentBlockedError

logger = logging.getLogger(__name__)

TOKEN_WARNING_THRESHOLD = 30000

SOURCE_ACCESSOR = "accessor"
SOURCE_FIELD = "field"
SOURCE_PARTS = "candidate_parts"
SOURCE_CHOICES = "choices"
SOURCE_FALLBACK = "fallback"

NORMAL_FINISH_REASONS = frozenset({"STOP", "TOOL_CALLS", "FUNCTION_CALL"})
TRUNCATION_FINISH_REASONS = frozenset({"MAX_TOKENS", "LENGTH"})
SAFETY_FINISH_REASONS = frozenset({"SAFETY", "CONTENT_FILTER", "PROHIBITED_CONTENT", "BLOCKLIST"})


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the model."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    source: str = SOURCE_FIELD


@dataclass
class ModelReply:
    """Interpreted model response."""

    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None
    block_reason: str | None = None
    usage: dict[str, int] = field(default_factory=dict)


def _enum_name(value: Any) -> str | None:
    """Render an SDK enum or plain string as an upper-case name."""
    if value is None:
        return None
    name = getattr(value, "name", None)
    if not isinstance(name, str):
        name = str(value)
    return name.upper() or None


def _first(items: Any) -> Any:
    if not items:
        return None
    try:
        return items[0]
    except (TypeError, IndexError, KeyError):
        return None


def _coerce_arguments(raw: Any, name: str) -> dict[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Could not parse arguments for %s: %s", name, e)
            return {}
        return parsed if isinstance(parsed, dict) else {}
    if isinstance(raw, Mapping):
        return dict(raw)
    try:
        return dict(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-mapping arguments for %s", name)
        return {}


def _from_function_calls(calls: Any, source: str) -> list[ToolCall]:
    result = []
    for call in calls or []:
        name = getattr(call, "name", None)
        if not name:
            continue
        arguments = _coerce_arguments(getattr(call, "args", None), name)
        result.append(ToolCall(name=name, arguments=arguments, source=source))
    return result


def _from_candidate_parts(response: Any) -> list[ToolCall]:
    candidate = _first(getattr(response, "candidates", None))
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    calls = [getattr(part, "function_call", None) for part in parts]
    return _from_function_calls([c for c in calls if c is not None], SOURCE_PARTS)


def _from_choices(response: Any) -> list[ToolCall]:
    choice = _first(getattr(response, "choices", None))
    message = getattr(choice, "message", None)
    result = []
    for tool_call in getattr(message, "tool_calls", None) or []:
        function = getattr(tool_call, "function", None)
        name = getattr(function, "name", None)
        if not name:
            continue
        result.append(
            ToolCall(
                name=name,
                arguments=_coerce_arguments(getattr(function, "arguments", None), name),
                source=SOURCE_CHOICES,
            )
        )
    return result


def normalize_tool_calls(response: Any) -> list[ToolCall]:
    """Extract tool calls from whichever shape the response uses.

    Probes in order and returns the first non-empty result:
    1. `response.function_calls()` when it is callable
    2. `response.function_calls` as a plain list
    3. function call parts of the first candidate
    4. `response.choices[0].message.tool_calls`
    """
    accessor = getattr(response, "function_calls", None)
    if callable(accessor):
        try:
            calls = _from_function_calls(accessor(), SOURCE_ACCESSOR)
        except Exception as e:
            logger.warning("function_calls accessor failed: %s", e)
            calls = []
        if calls:
            return calls
    elif accessor:
        calls = _from_function_calls(accessor, SOURCE_FIELD)
        if calls:
            return calls

    calls = _from_candidate_parts(response)
    if calls:
        return calls

    return _from_choices(response)


def extract_text(response: Any) -> str:
    """Return the free text of a response, or an empty string."""
    choice = _first(getattr(response, "choices", None))
    if choice is not None:
        return getattr(getattr(choice, "message", None), "content", None) or ""

    candidate = _first(getattr(response, "candidates", None))
    parts = getattr(getattr(candidate, "content", None), "parts", None)
    if parts:
        texts = [part.text for part in parts if isinstance(getattr(part, "text", None), str)]
        return "".join(texts)

    text = getattr(response, "text", None)
    return text if isinstance(text, str) else ""


def _block_reason(response: Any) -> str | None:
    feedback = getattr(response, "prompt_feedback", None)
    return _enum_name(getattr(feedback, "block_reason", None))


def _finish_reason(response: Any) -> str | None:
    first = _first(getattr(response, "candidates", None)) or _first(getattr(response, "choices", None))
    return _enum_name(getattr(first, "finish_reason", None))


def _usage(response: Any) -> dict[str, int]:
    metadata = getattr(response, "usage_metadata", None)
    if metadata is not None:
        return {
            "prompt_tokens": getattr(metadata, "prompt_token_count", None) or 0,
            "completion_tokens": getattr(metadata, "candidates_token_count", None) or 0,
            "total_tokens": getattr(metadata, "total_token_count", None) or 0,
        }
    usage = getattr(response, "usage", None)
    if usage is not None:
        return {
            "prompt_tokens": getattr(usage, "prompt_tokens", None) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", None) or 0,
            "total_tokens": getattr(usage, "total_tokens", None) or 0,
        }
    return {}


def interpret_response(
    response: Any,
    token_warning_threshold: int = TOKEN_WARNING_THRESHOLD,
) -> ModelReply:
    """Turn a raw model response into a ModelReply.

    Raises:
        ContentBlockedError: If the provider blocked the prompt.
    """
    block_reason = _block_reason(response)
    if block_reason:
        logger.error("Prompt blocked by model provider: %s", block_reason)
        raise ContentBlockedError(block_reason)

    usage = _usage(response)
    if usage:
        logger.info(
            "Token usage: prompt=%d completion=%d total=%d",
            usage["prompt_tokens"],
            usage["completion_tokens"],
            usage["total_tokens"],
        )
        if usage["total_tokens"] > token_warning_threshold:
            logger.warning("High token usage: %d tokens", usage["total_tokens"])

    finish_reason = _finish_reason(response)
    if finish_reason and finish_reason not in NORMAL_FINISH_REASONS:
        if finish_reason in TRUNCATION_FINISH_REASONS:
            logger.warning("Response truncated: hit max output tokens")
        elif finish_reason in SAFETY_FINISH_REASONS:
            logger.warning("Response stopped by safety filters")
        else:
            logger.warning("Unexpected finish reason: %s", finish_reason)

    return ModelReply(
        text=extract_text(response),
        tool_calls=normalize_tool_calls(response),
        finish_reason=finish_reason,
        block_reason=block_reason,
        usage=usage,
    )


def parse_json_reply(content: str) -> Any:
    """Parse JSON the model may have wrapped in a markdown code block.

    Raises:
        json.JSONDecodeError: If the content is not valid JSON.
    """
    json_str = (content or "").strip()
    if json_str.startswith("```"):
        lines = [line for line in json_str.split("\n") if not line.strip().startswith("```")]
        json_str = "\n".join(lines)
    return json.loads(json_str)
