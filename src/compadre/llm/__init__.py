"""Model clients and response normalization."""

from .client import (
    GeminiModelClient,
    GroqModelClient,
    ModelClient,
    create_model_client,
)
from .response import (
    SOURCE_FALLBACK,
    ModelReply,
    ToolCall,
    extract_text,
    interpret_response,
    normalize_tool_calls,
    parse_json_reply,
)

__all__ = [
    "SOURCE_FALLBACK",
    "GeminiModelClient",
    "GroqModelClient",
    "ModelClient",
    "ModelReply",
    "ToolCall",
    "create_model_client",
    "extract_text",
    "interpret_response",
    "normalize_tool_calls",
    "parse_json_reply",
]
