"""Pipeline configuration: stage options as immutable dataclasses."""

from __future__ import annotations

from dataclasses import dataclass, field

from transcript_knowledge.config import Settings, get_settings


@dataclass(frozen=True)
class ImportanceThresholds:
    """Cut-offs used to band a knowledge object into low / medium / high."""

    long_content_chars: int = 100
    min_quotes: int = 2
    min_concepts: int = 2


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable configuration for the five-stage transcript pipeline.

    Defaults mirror the project's current behaviour (2 s silence gap,
    one sentence per paragraph, 1000-character chunks).
    """

    silence_threshold_ms: int = 2000
    max_sentences_per_paragraph: int = 1

    fix_errors: bool = True
    normalize_chars: bool = True
    remove_non_verbal: bool = True
    remove_fillers: bool = False

    importance: ImportanceThresholds = field(default_factory=ImportanceThresholds)

    max_chunk_chars: int = 1000
    min_chunk_chars: int = 200
    chunk_separator: str = "\n"

    output_dir: str | None = None
    save_intermediate_results: bool = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PipelineConfig:
        """Build a config from application settings (env / .env)."""
        s = settings or get_settings()
        return cls(
            silence_threshold_ms=s.silence_threshold_ms,
            max_sentences_per_paragraph=s.max_sentences_per_paragraph,
            fix_errors=s.fix_errors,
            normalize_chars=s.normalize_chars,
            remove_non_verbal=s.remove_non_verbal,
            remove_fillers=s.remove_fillers,
            importance=ImportanceThresholds(
                long_content_chars=s.importance_long_content_chars,
                min_quotes=s.importance_min_quotes,
                min_concepts=s.importance_min_concepts,
            ),
            max_chunk_chars=s.max_chunk_chars,
            min_chunk_chars=s.min_chunk_chars,
            chunk_separator=s.chunk_separator,
            output_dir=s.output_dir or None,
            save_intermediate_results=s.save_intermediate_results,
        )
