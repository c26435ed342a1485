"""Data models for the content cleaner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ParagraphRecord(BaseModel):
    """Validated paragraph-shaped input to the cleaner.

    Accepts both the camelCase interchange keys (``fullText``) and the
    snake_case attribute names (``full_text``).
    """

    model_config = ConfigDict(extra="ignore")

    paragraph_id: int | str | None = Field(
        default=None, validation_alias=AliasChoices("paragraph_id", "paragraphId")
    )
    full_text: str = Field(validation_alias=AliasChoices("full_text", "fullText", "text"))
    start_time: str | None = Field(
        default=None, validation_alias=AliasChoices("start_time", "startTime")
    )
    end_time: str | None = Field(default=None, validation_alias=AliasChoices("end_time", "endTime"))
    segment_ids: list[int] = Field(
        default_factory=list, validation_alias=AliasChoices("segment_ids", "segmentIds")
    )


@dataclass(frozen=True)
class CorrectionRecord:
    """One applied transcription fix; *position* is its offset in the text being corrected."""

    original: str
    corrected: str
    position: int


@dataclass
class CleanedParagraph:
    """A paragraph after cleaning, with its original text kept for audit."""

    paragraph_id: int | str | None
    original_text: str
    cleaned_text: str
    start_time: str | None
    end_time: str | None
    segment_ids: list[int] = field(default_factory=list)
    corrections: list[CorrectionRecord] = field(default_factory=list)
    cleaning_applied: dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "paragraphId": self.paragraph_id,
            "originalText": self.original_text,
            "cleanedText": self.cleaned_text,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "segmentIds": list(self.segment_ids),
            "corrections": [
                {"original": c.original, "corrected": c.corrected, "position": c.position}
                for c in self.corrections
            ],
            "cleaningApplied": dict(self.cleaning_applied),
        }


@dataclass
class CleaningStats:
    total_corrections: int = 0
    paragraphs_processed: int = 0
    paragraphs_skipped: int = 0
    paragraphs_corrected: int = 0
    unique_corrections: int = 0


@dataclass
class CleaningResult:
    paragraphs: list[CleanedParagraph]
    stats: CleaningStats
    corrections: list[CorrectionRecord] = field(default_factory=list)
