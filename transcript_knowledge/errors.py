"""Error taxonomy for the transcript-to-knowledge pipeline."""

from __future__ import annotations


class TranscriptError(Exception):
    """Base error for the transcript pipeline."""


class TranscriptNotFoundError(TranscriptError, FileNotFoundError):
    """Raised when the source subtitle file cannot be located."""


class MalformedInputError(TranscriptError, ValueError):
    """Raised when a cue block or timestamp cannot be parsed.

    ``cue_id`` and ``line`` locate the defect in the source file when known.
    """

    def __init__(self, message: str, cue_id: int | None = None, line: int | None = None) -> None:
        location = []
        if cue_id is not None:
            location.append(f"cue {cue_id}")
        if line is not None:
            location.append(f"line {line}")
        if location:
            message = f"{message} ({', '.join(location)})"
        super().__init__(message)
        self.cue_id = cue_id
        self.line = line


class RecordValidationError(TranscriptError, ValueError):
    """Raised when an intermediate record or rule file is structurally invalid."""
