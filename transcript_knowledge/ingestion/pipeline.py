"""End-to-end pipeline: parse -> reconstruct -> clean -> extract -> chunk."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from transcript_knowledge.cleaning.cleaner import clean_paragraphs
from transcript_knowledge.cleaning.models import CleaningResult
from transcript_knowledge.extraction.extractor import extract_knowledge
from transcript_knowledge.extraction.models import ExtractionResult
from transcript_knowledge.ingestion.chunking import (
    chunk_knowledge,
    chunk_statistics,
    validate_chunks,
)
from transcript_knowledge.ingestion.models import Chunk, ReconstructionResult, Segment
from transcript_knowledge.ingestion.parsers import get_statistics, load_srt, parse_srt
from transcript_knowledge.ingestion.reconstruction import reconstruct_text
from transcript_knowledge.pipeline_config import PipelineConfig
from transcript_knowledge.rules import RuleSet, resolve_ruleset

logger = logging.getLogger(__name__)

STAGES = (
    "Parse SRT",
    "Reconstruct Text",
    "Clean Content",
    "Extract Knowledge",
    "Create Chunks",
)

ProgressCallback = Callable[[int, str, dict[str, Any]], None]


@dataclass
class PipelineResult:
    """Every stage's output for one transcript."""

    segments: list[Segment]
    reconstruction: ReconstructionResult
    cleaning: CleaningResult
    extraction: ExtractionResult
    chunks: list[Chunk]
    stats: dict[str, Any] = field(default_factory=dict)

    def payloads(self) -> list[dict[str, Any]]:
        """Chunk payloads for the embedding / storage collaborator."""
        return [c.to_payload() for c in self.chunks]


def _save_json(data: Any, filename: str, output_dir: str) -> None:
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / filename
    path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
    logger.info("Saved %s", path)


def _report(
    on_progress: ProgressCallback | None,
    stage_index: int,
    summary: dict[str, Any],
) -> None:
    logger.info("Stage %d/%d %s: %s", stage_index + 1, len(STAGES), STAGES[stage_index], summary)
    if on_progress is not None:
        on_progress(stage_index, STAGES[stage_index], summary)


def run_pipeline(
    segments: list[Segment],
    config: PipelineConfig | None = None,
    rules: RuleSet | str | Path | None = None,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Run stages 2-5 on already-parsed segments.

    Args:
        segments: Output of the parser.
        config: Stage options; defaults to :class:`PipelineConfig` defaults.
        rules: Rule set, path to a rule file, or None for the packaged rules.
        on_progress: Optional ``(stage_index, stage_name, summary)`` callback.

    Returns:
        A :class:`PipelineResult` holding every stage's output.
    """
    cfg = config or PipelineConfig()
    ruleset = resolve_ruleset(rules)
    output_dir = cfg.output_dir if cfg.save_intermediate_results else None

    segment_stats = get_statistics(segments)
    _report(on_progress, 0, {"segments": segment_stats.total_segments})
    if output_dir:
        _save_json([s.to_dict() for s in segments], "01-segments.json", output_dir)

    reconstruction = reconstruct_text(
        segments,
        silence_threshold_ms=cfg.silence_threshold_ms,
        max_sentences_per_paragraph=cfg.max_sentences_per_paragraph,
    )
    _report(
        on_progress,
        1,
        {"sentences": len(reconstruction.sentences), "paragraphs": len(reconstruction.paragraphs)},
    )
    if output_dir:
        _save_json(
            {
                "sentences": [asdict(s) for s in reconstruction.sentences],
                "paragraphs": [asdict(p) for p in reconstruction.paragraphs],
                "stats": reconstruction.stats,
            },
            "02-reconstructed.json",
            output_dir,
        )

    cleaning = clean_paragraphs(
        reconstruction.paragraphs,
        fix_errors=cfg.fix_errors,
        normalize_chars=cfg.normalize_chars,
        remove_non_verbal=cfg.remove_non_verbal,
        remove_fillers=cfg.remove_fillers,
        rules=ruleset,
    )
    _report(
        on_progress,
        2,
        {
            "paragraphs": cleaning.stats.paragraphs_processed,
            "corrections": cleaning.stats.total_corrections,
        },
    )
    if output_dir:
        _save_json(
            {
                "cleanedParagraphs": [p.to_dict() for p in cleaning.paragraphs],
                "stats": asdict(cleaning.stats),
            },
            "03-cleaned.json",
            output_dir,
        )

    extraction = extract_knowledge(cleaning.paragraphs, ruleset, cfg.importance)
    _report(
        on_progress,
        3,
        {
            "knowledge": len(extraction.knowledge),
            "high_importance": extraction.stats["high_importance"],
        },
    )
    if output_dir:
        _save_json(
            {
                "knowledge": [k.to_dict() for k in extraction.knowledge],
                "stats": extraction.stats,
            },
            "04-knowledge.json",
            output_dir,
        )

    chunks = chunk_knowledge(
        extraction.knowledge,
        max_chars=cfg.max_chunk_chars,
        separator=cfg.chunk_separator,
        rules=ruleset,
    )
    chunk_stats = chunk_statistics(chunks)
    chunk_stats["issues"] = validate_chunks(chunks, cfg.min_chunk_chars, cfg.max_chunk_chars)
    for issue in chunk_stats["issues"]:
        logger.warning("Chunk check: %s", issue)
    _report(on_progress, 4, {"chunks": chunk_stats["total_chunks"]})
    if output_dir:
        _save_json(
            {"chunks": [c.to_dict() for c in chunks], "stats": chunk_stats},
            "05-chunks.json",
            output_dir,
        )

    return PipelineResult(
        segments=segments,
        reconstruction=reconstruction,
        cleaning=cleaning,
        extraction=extraction,
        chunks=chunks,
        stats={
            "segments": asdict(segment_stats),
            "reconstruction": reconstruction.stats,
            "cleaning": asdict(cleaning.stats),
            "extraction": extraction.stats,
            "chunks": chunk_stats,
            "rules_version": ruleset.version,
        },
    )


def process_srt_text(
    content: str,
    config: PipelineConfig | None = None,
    rules: RuleSet | str | Path | None = None,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Full pipeline over SRT text already in memory."""
    return run_pipeline(parse_srt(content), config, rules, on_progress)


def process_transcript(
    path: str | Path,
    config: PipelineConfig | None = None,
    rules: RuleSet | str | Path | None = None,
    on_progress: ProgressCallback | None = None,
) -> PipelineResult:
    """Full pipeline over an SRT file.

    Raises:
        TranscriptNotFoundError: If *path* does not exist.
        MalformedInputError: If a cue block cannot be parsed.
    """
    segments = load_srt(path)
    result = run_pipeline(segments, config, rules, on_progress)
    logger.info("Processed %s into %d chunks", path, len(result.chunks))
    return result
