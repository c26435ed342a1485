"""Sentence reconstruction: merge fragmented subtitle cues into utterances."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from transcript_knowledge.ingestion.models import (
    Paragraph,
    ReconstructionResult,
    Segment,
    Sentence,
)

logger = logging.getLogger(__name__)

SENTENCE_ENDINGS: tuple[str, ...] = ("。", "！", "？", "．", "!", "?", ".")
DEFAULT_SILENCE_THRESHOLD_MS = 2000


def has_sentence_ending(text: str) -> bool:
    """Return True if *text* (ignoring surrounding whitespace) ends a sentence."""
    return text.strip().endswith(SENTENCE_ENDINGS)


def has_silence_gap(
    previous: Segment,
    following: Segment,
    threshold_ms: int = DEFAULT_SILENCE_THRESHOLD_MS,
) -> bool:
    """Return True if the pause between two segments exceeds *threshold_ms*."""
    return following.start_ms - previous.end_ms > threshold_ms


def should_split(
    buffer_last: Segment,
    following: Segment,
    threshold_ms: int = DEFAULT_SILENCE_THRESHOLD_MS,
) -> bool:
    """Decide whether *following* starts a new sentence after *buffer_last*."""
    return has_sentence_ending(buffer_last.text) or has_silence_gap(
        buffer_last, following, threshold_ms
    )


def _flush(buffer: list[Segment]) -> Sentence:
    return Sentence(
        text="".join(s.text for s in buffer),
        segment_ids=[s.id for s in buffer],
        start_time=buffer[0].start_time,
        end_time=buffer[-1].end_time,
        start_ms=buffer[0].start_ms,
        end_ms=buffer[-1].end_ms,
    )


def merge_sentences(
    segments: Sequence[Segment],
    silence_threshold_ms: int = DEFAULT_SILENCE_THRESHOLD_MS,
) -> list[Sentence]:
    """Merge consecutive segments into sentences.

    A sentence closes when the last buffered segment ends with a sentence
    mark, when the silence before the next segment exceeds
    *silence_threshold_ms*, or when input runs out. Every segment lands in
    exactly one sentence.

    Args:
        segments: Parsed segments in source order.
        silence_threshold_ms: Pause length (ms) treated as a sentence break.

    Returns:
        Sentences in source order.
    """
    sentences: list[Sentence] = []
    buffer: list[Segment] = []

    for segment in segments:
        if buffer and should_split(buffer[-1], segment, silence_threshold_ms):
            sentences.append(_flush(buffer))
            buffer = []
        buffer.append(segment)

    if buffer:
        sentences.append(_flush(buffer))

    return sentences


def form_paragraphs(
    sentences: Sequence[Sentence],
    max_sentences_per_paragraph: int = 1,
) -> list[Paragraph]:
    """Group consecutive sentences into paragraphs of at most N sentences."""
    if max_sentences_per_paragraph < 1:
        raise ValueError("max_sentences_per_paragraph must be >= 1")

    paragraphs: list[Paragraph] = []
    for start in range(0, len(sentences), max_sentences_per_paragraph):
        group = sentences[start : start + max_sentences_per_paragraph]
        texts = [s.text.strip() for s in group]
        paragraphs.append(
            Paragraph(
                paragraph_id=len(paragraphs) + 1,
                full_text="".join(texts),
                start_time=group[0].start_time,
                end_time=group[-1].end_time,
                segment_ids=[sid for s in group for sid in s.segment_ids],
                sentences=texts,
            )
        )
    return paragraphs


def reconstruct_text(
    segments: Sequence[Segment],
    silence_threshold_ms: int = DEFAULT_SILENCE_THRESHOLD_MS,
    max_sentences_per_paragraph: int = 1,
) -> ReconstructionResult:
    """Rebuild sentences and paragraphs from parsed segments."""
    sentences = merge_sentences(segments, silence_threshold_ms)
    paragraphs = form_paragraphs(sentences, max_sentences_per_paragraph)

    logger.info(
        "Reconstructed %d sentences and %d paragraphs from %d segments",
        len(sentences),
        len(paragraphs),
        len(segments),
    )

    return ReconstructionResult(
        sentences=sentences,
        paragraphs=paragraphs,
        stats={
            "original_segments": len(segments),
            "reconstructed_sentences": len(sentences),
            "paragraphs": len(paragraphs),
            "average_sentences_per_paragraph": (
                len(sentences) / len(paragraphs) if paragraphs else 0.0
            ),
        },
    )
