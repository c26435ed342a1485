"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

from transcript_knowledge.extraction.models import Entities, Importance, KnowledgeObject


@dataclass(frozen=True)
class Segment:
    """One parsed subtitle cue."""

    id: int
    text: str
    start_time: str
    end_time: str
    start_ms: int
    end_ms: int

    @property
    def duration(self) -> int:
        """Cue duration in milliseconds."""
        return self.end_ms - self.start_ms

    @property
    def text_length(self) -> int:
        return len(self.text)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "startMs": self.start_ms,
            "endMs": self.end_ms,
            "duration": self.duration,
        }


@dataclass(frozen=True)
class SegmentStatistics:
    """Aggregate view over a parsed transcript (durations in milliseconds)."""

    total_segments: int
    total_duration: int
    average_duration: float
    total_characters: int
    average_characters: float


@dataclass(frozen=True)
class Sentence:
    """One or more contiguous segments forming a single utterance."""

    text: str
    segment_ids: list[int]
    start_time: str
    end_time: str
    start_ms: int
    end_ms: int


@dataclass(frozen=True)
class Paragraph:
    """Consecutive sentences grouped as the cleaner's unit of work."""

    paragraph_id: int
    full_text: str
    start_time: str
    end_time: str
    segment_ids: list[int] = field(default_factory=list)
    sentences: list[str] = field(default_factory=list)


@dataclass
class ReconstructionResult:
    """Sentences and paragraphs rebuilt from fragmented cues."""

    sentences: list[Sentence]
    paragraphs: list[Paragraph]
    stats: dict[str, float] = field(default_factory=dict)


@dataclass
class Chunk:
    """A retrieval-sized bundle of knowledge objects ready for embedding."""

    chunk_id: str
    chunk_index: int
    knowledge: list[KnowledgeObject]
    text: str
    start_time: str | None = None
    end_time: str | None = None
    topic: str = "General"
    keywords: list[str] = field(default_factory=list)
    importance: Importance = Importance.LOW
    oversized: bool = False
    entities: Entities = field(default_factory=Entities)
    # Topics of the knowledge objects just outside the chunk, if any.
    context_before: str | None = None
    context_after: str | None = None

    @property
    def knowledge_ids(self) -> list[str]:
        return [k.knowledge_id for k in self.knowledge]

    @property
    def segment_ids(self) -> list[int]:
        return [sid for k in self.knowledge for sid in k.segment_ids]

    @property
    def metadata(self) -> dict[str, Any]:
        """Provenance consumed by the embedding / storage collaborator."""
        return {
            "timestampRange": {"start": self.start_time, "end": self.end_time},
            "topic": self.topic,
        }

    def to_payload(self) -> dict[str, Any]:
        """Return the ``{text, metadata}`` boundary artifact for this chunk."""
        return {"text": self.text, "metadata": self.metadata}

    def to_dict(self) -> dict[str, Any]:
        return {
            "chunkId": self.chunk_id,
            "chunkIndex": self.chunk_index,
            "text": self.text,
            "metadata": {
                **self.metadata,
                "knowledgeIds": self.knowledge_ids,
                "segmentIds": self.segment_ids,
                "keywords": self.keywords,
                "importance": self.importance.value,
                "oversized": self.oversized,
                "entities": asdict(self.entities),
                "concepts": list(self.entities.concepts),
                "contextBefore": self.context_before,
                "contextAfter": self.context_after,
            },
        }
