"""errors.py: Exception types raised by the conversion pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional


class ReadableMarkdownError(Exception):
    """Base exception for every failure surfaced by readable_markdown."""

    code = "readable_markdown_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary format."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NavigationError(ReadableMarkdownError):
    """The page failed to load within the timeout, or the network failed."""

    code = "navigation_error"


class ExtractionError(ReadableMarkdownError):
    """No content region and no body could be found in the document."""

    code = "extraction_error"


class SerializationError(ReadableMarkdownError):
    """A serialization rule hit a DOM shape it could not handle."""

    code = "serialization_error"


class FileWriteError(ReadableMarkdownError):
    """The output path could not be written."""

    code = "file_write_error"


class ConversionError(ReadableMarkdownError):
    """Raised by the orchestrator, wrapping whichever stage failed."""

    code = "conversion_error"

    def __init__(
        self,
        message: str,
        stage: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.stage = stage
        details = dict(details or {})
        details.setdefault("stage", stage)
        super().__init__(message, details)
