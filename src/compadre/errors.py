"""Exceptions raised across the assistant."""


class CompadreError(Exception):
    """Base class for assistant errors."""


class ModelNotConfiguredError(CompadreError):
    """Raised when no API key is available for the selected model provider."""


class ContentBlockedError(CompadreError):
    """Raised when the model provider blocks a prompt outright."""

    def __init__(self, block_reason: str) -> None:
        super().__init__(f"Content blocked: {block_reason}")
        self.block_reason = block_reason
