"""Content cleaner: normalize, correct and tidy reconstructed paragraphs."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, is_dataclass
from typing import Any

from pydantic import ValidationError

from transcript_knowledge.cleaning.models import (
    CleanedParagraph,
    CleaningResult,
    CleaningStats,
    CorrectionRecord,
    ParagraphRecord,
)
from transcript_knowledge.errors import RecordValidationError
from transcript_knowledge.rules import RuleSet, resolve_ruleset

logger = logging.getLogger(__name__)

# Full-width ASCII letters/digits (U+FF10-U+FF5A ranges) map to ASCII by a fixed offset.
_FULLWIDTH_OFFSET = 0xFEE0
_FULLWIDTH_TABLE = {
    **{c: c - _FULLWIDTH_OFFSET for c in range(ord("Ａ"), ord("Ｚ") + 1)},
    **{c: c - _FULLWIDTH_OFFSET for c in range(ord("ａ"), ord("ｚ") + 1)},
    **{c: c - _FULLWIDTH_OFFSET for c in range(ord("０"), ord("９") + 1)},
    ord("　"): ord(" "),
}

# Any run of two or more exclamation / question marks, ASCII or full-width.
_MARK_RUN_RE = re.compile(r"[!?！？]{2,}")
_ELLIPSIS_RE = re.compile(r"\.{3,}|。{3,}")
_COMMA_RUN_RE = re.compile(r"、{2,}")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([。！？、])")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_characters(text: str) -> str:
    """Map full-width ASCII letters, digits and the ideographic space to half-width."""
    return text.translate(_FULLWIDTH_TABLE)


def fix_transcription_errors(
    text: str,
    rules: RuleSet | None = None,
) -> tuple[str, list[CorrectionRecord]]:
    """Apply the correction rules in order and record every replacement.

    Each rule runs against the text as corrected by the rules before it, and
    each record's ``position`` is the match offset in that progressively
    corrected text.

    Returns:
        ``(corrected_text, corrections)``.
    """
    ruleset = resolve_ruleset(rules)
    corrections: list[CorrectionRecord] = []
    corrected = text

    for rule in ruleset.corrections:
        shift = 0

        def _replace(match: re.Match[str]) -> str:
            nonlocal shift
            original = match.group(0)
            replacement = match.expand(rule.replacement) if rule.regex else rule.replacement
            if replacement != original:
                corrections.append(
                    CorrectionRecord(
                        original=original,
                        corrected=replacement,
                        position=match.start() + shift,
                    )
                )
            shift += len(replacement) - len(original)
            return replacement

        corrected = rule.compiled().sub(_replace, corrected)

    return corrected, corrections


def _non_verbal_pattern(labels: Iterable[str]) -> re.Pattern[str] | None:
    alternatives = "|".join(re.escape(label) for label in sorted(labels, key=len, reverse=True))
    if not alternatives:
        return None
    return re.compile(
        rf"([ \t]*)[\[［(（]\s*(?:{alternatives})\s*[\]］)）]([ \t]*)",
        re.IGNORECASE,
    )


def remove_non_verbal_markers(text: str, rules: RuleSet | None = None) -> str:
    """Delete bracketed non-speech annotations such as ``[音楽]`` or ``[Applause]``.

    Whitespace around a marker is dropped too; a single space is kept only
    when the marker sat between two space-separated words.
    """
    ruleset = resolve_ruleset(rules)
    pattern = _non_verbal_pattern(ruleset.non_verbal_labels)
    if pattern is None:
        return text

    def _replace(match: re.Match[str]) -> str:
        before_ok = match.start() > 0 and bool(match.group(1))
        after_ok = match.end() < len(text) and bool(match.group(2))
        return " " if before_ok and after_ok else ""

    return pattern.sub(_replace, text)


def remove_filler_words(text: str, rules: RuleSet | None = None) -> str:
    """Remove configured hesitation fillers (``あの、``, ``えー、`` ...)."""
    ruleset = resolve_ruleset(rules)
    for filler in sorted(ruleset.fillers, key=len, reverse=True):
        text = text.replace(filler, "")
    return text


def _collapse_mark_run(match: re.Match[str]) -> str:
    run = match.group(0)
    # Mixed runs such as "!?" are left untouched.
    return run[0] if len(set(run)) == 1 else run


def standardize_punctuation(text: str) -> str:
    """Collapse repeated punctuation.

    ``!!!`` -> ``!``, ``？？`` -> ``？``, ``...`` / ``。。。`` -> ``…`` and
    ``、、`` -> ``、``. Mixed runs like ``!?!`` pass through unchanged.
    """
    text = _MARK_RUN_RE.sub(_collapse_mark_run, text)
    text = _ELLIPSIS_RE.sub("…", text)
    text = _COMMA_RUN_RE.sub("、", text)
    return text


def clean_whitespace(text: str) -> str:
    """Collapse whitespace runs, drop spaces before Japanese punctuation and trim."""
    text = _WHITESPACE_RE.sub(" ", text)
    text = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text)
    return text.strip()


def validate_paragraph(record: Any) -> ParagraphRecord:
    """Coerce a Paragraph dataclass or mapping into a validated record.

    Raises:
        RecordValidationError: If required fields are missing or mistyped.
    """
    if is_dataclass(record) and not isinstance(record, type):
        data: Any = asdict(record)
    elif isinstance(record, Mapping):
        data = record
    else:
        raise RecordValidationError(f"Unsupported paragraph record type: {type(record).__name__}")

    try:
        return ParagraphRecord.model_validate(data)
    except ValidationError as exc:
        raise RecordValidationError(f"Invalid paragraph record: {exc}") from exc


def clean_text(
    text: str,
    *,
    fix_errors: bool = True,
    normalize_chars: bool = True,
    remove_non_verbal: bool = True,
    remove_fillers: bool = False,
    rules: RuleSet | None = None,
) -> tuple[str, list[CorrectionRecord]]:
    """Run the cleaning steps on a single string.

    Returns:
        ``(cleaned_text, corrections)``.
    """
    corrections: list[CorrectionRecord] = []

    if normalize_chars:
        text = normalize_characters(text)
    if fix_errors:
        text, corrections = fix_transcription_errors(text, rules)
    if remove_non_verbal:
        text = remove_non_verbal_markers(text, rules)
    if remove_fillers:
        text = remove_filler_words(text, rules)
    text = standardize_punctuation(text)
    text = clean_whitespace(text)

    return text, corrections


def clean_paragraphs(
    paragraphs: Iterable[Any],
    *,
    fix_errors: bool = True,
    normalize_chars: bool = True,
    remove_non_verbal: bool = True,
    remove_fillers: bool = False,
    rules: RuleSet | None = None,
) -> CleaningResult:
    """Clean a batch of paragraphs.

    Malformed records (e.g. missing ``fullText``) are skipped and counted in
    ``stats.paragraphs_skipped``; they never abort the batch.

    Args:
        paragraphs: :class:`Paragraph` objects or paragraph-shaped mappings.
        fix_errors: Apply the transcription-error corrections.
        normalize_chars: Map full-width letters/digits/space to half-width.
        remove_non_verbal: Strip bracketed non-speech markers.
        remove_fillers: Strip hesitation fillers.
        rules: Rule set override; defaults to the packaged rules.

    Returns:
        A :class:`CleaningResult` with cleaned paragraphs in input order.
    """
    ruleset = resolve_ruleset(rules)
    cleaned: list[CleanedParagraph] = []
    all_corrections: list[CorrectionRecord] = []
    stats = CleaningStats()

    for index, raw in enumerate(paragraphs):
        try:
            record = validate_paragraph(raw)
        except RecordValidationError as exc:
            stats.paragraphs_skipped += 1
            logger.warning("Skipping paragraph at index %d: %s", index, exc)
            continue

        cleaned_text, corrections = clean_text(
            record.full_text,
            fix_errors=fix_errors,
            normalize_chars=normalize_chars,
            remove_non_verbal=remove_non_verbal,
            remove_fillers=remove_fillers,
            rules=ruleset,
        )

        cleaned.append(
            CleanedParagraph(
                paragraph_id=record.paragraph_id,
                original_text=record.full_text,
                cleaned_text=cleaned_text,
                start_time=record.start_time,
                end_time=record.end_time,
                segment_ids=list(record.segment_ids),
                corrections=corrections,
                cleaning_applied={
                    "normalized": normalize_chars,
                    "errors_fixed": fix_errors and bool(corrections),
                    "non_verbal_removed": remove_non_verbal,
                    "fillers_removed": remove_fillers,
                },
            )
        )
        all_corrections.extend(corrections)
        if corrections:
            stats.paragraphs_corrected += 1

    stats.paragraphs_processed = len(cleaned)
    stats.total_corrections = len(all_corrections)
    stats.unique_corrections = len({c.original for c in all_corrections})

    logger.info(
        "Cleaned %d paragraphs (%d skipped), applied %d corrections",
        stats.paragraphs_processed,
        stats.paragraphs_skipped,
        stats.total_corrections,
    )

    return CleaningResult(paragraphs=cleaned, stats=stats, corrections=all_corrections)
