"""Pattern-driven knowledge extraction: entities, quotes, type and importance."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from transcript_knowledge.cleaning.models import CleanedParagraph
from transcript_knowledge.extraction.models import (
    Entities,
    ExtractionResult,
    Importance,
    KnowledgeContent,
    KnowledgeObject,
    KnowledgeType,
)
from transcript_knowledge.pipeline_config import ImportanceThresholds
from transcript_knowledge.rules import RuleSet, resolve_ruleset

logger = logging.getLogger(__name__)

# Name-like token: a run of kanji, katakana or latin letters.
_NAME_TOKEN = r"[一-龯々〆ヵヶァ-ヺーA-Za-z]+"
# Longest name kept before an honorific when no known name closes the token.
_MAX_NAME_CHARS = 4
_NUMERAL = r"\d+(?:[.,]\d+)*"
_KEY_TAKEAWAY_CHARS = 100


def _alternation(words: Iterable[str]) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


def _ordered_unique(found: Iterable[tuple[int, Any]]) -> list[Any]:
    """Sort ``(position, value)`` pairs by position and drop repeated values."""
    result: list[Any] = []
    for _, value in sorted(found, key=lambda pair: pair[0]):
        if value not in result:
            result.append(value)
    return result


def _vocabulary_hits(text: str, vocabulary: Iterable[str]) -> list[tuple[int, str]]:
    return [(text.find(term), term) for term in vocabulary if term and term in text]


def _trim_name(token: str, known: Sequence[str]) -> str:
    """Cut words that precede a name, e.g. ``先日青木`` -> ``青木``."""
    for name in known:
        if token.endswith(name):
            return name
    return token[-_MAX_NAME_CHARS:]


def _extract_people(text: str, ruleset: RuleSet) -> list[str]:
    found: list[tuple[int, str]] = []

    if ruleset.honorifics:
        pattern = re.compile(rf"({_NAME_TOKEN})({_alternation(ruleset.honorifics)})")
        stopwords = set(ruleset.people_stopwords)
        known = sorted(ruleset.known_people, key=len, reverse=True)
        for match in pattern.finditer(text):
            name = _trim_name(match.group(1), known)
            if name not in stopwords:
                start = match.end(1) - len(name)
                found.append((start, name + match.group(2)))

    # Known names count only when not already covered by an honorific match.
    for pos, name in _vocabulary_hits(text, ruleset.known_people):
        if not any(name in person for _, person in found):
            found.append((pos, name))

    return _ordered_unique(found)


def _extract_ages(text: str, ruleset: RuleSet) -> list[int]:
    pattern = re.compile(rf"(?<!\d)(\d{{1,3}}){re.escape(ruleset.age_counter)}", re.ASCII)
    return _ordered_unique((m.start(), int(m.group(1))) for m in pattern.finditer(text))


def _extract_numbers(text: str, ruleset: RuleSet) -> list[str]:
    units = [
        alt
        for alt in (_alternation(ruleset.magnitudes), _alternation(ruleset.currencies))
        if alt
    ]
    if not units:
        return []
    # Magnitudes win over currencies, so "100万円" yields "100万".
    pattern = re.compile(rf"(?<!\d){_NUMERAL}(?:{'|'.join(units)})", re.ASCII)
    return _ordered_unique((m.start(), m.group(0)) for m in pattern.finditer(text))


def extract_entities(text: str, rules: RuleSet | None = None) -> Entities:
    """Find people, concepts, organizations, ages and amounts in *text*.

    Each category is de-duplicated and ordered by first appearance.
    """
    ruleset = resolve_ruleset(rules)
    if not text:
        return Entities()

    return Entities(
        people=_extract_people(text, ruleset),
        concepts=_ordered_unique(_vocabulary_hits(text, ruleset.concepts)),
        organizations=_ordered_unique(_vocabulary_hits(text, ruleset.organizations)),
        ages=_extract_ages(text, ruleset),
        numbers=_extract_numbers(text, ruleset),
    )


def extract_quotes(text: str, rules: RuleSet | None = None) -> list[str]:
    """Return the text inside each closed quotation pair, left to right.

    Unterminated opening quotes are ignored; repeated quotes appear once.
    """
    ruleset = resolve_ruleset(rules)
    open_q, close_q = re.escape(ruleset.quote_open), re.escape(ruleset.quote_close)
    pattern = re.compile(rf"{open_q}([^{open_q}{close_q}]+){close_q}")
    return _ordered_unique((m.start(), m.group(1)) for m in pattern.finditer(text))


def classify_knowledge_type(
    text: str,
    entities: Entities | None = None,
    rules: RuleSet | None = None,
) -> KnowledgeType:
    """Classify *text* with the ordered rule list; the first matching rule wins."""
    ruleset = resolve_ruleset(rules)
    if not text:
        return KnowledgeType.GENERAL
    if entities is None:
        entities = extract_entities(text, ruleset)

    for rule in ruleset.classification:
        if rule.matches(text, entities):
            logger.debug("Rule %s classified text as %s", rule.tag, rule.knowledge_type)
            return rule.knowledge_type
    return KnowledgeType.GENERAL


def score_importance(
    main: str,
    quotes: Sequence[str],
    entities: Entities,
    thresholds: ImportanceThresholds | None = None,
) -> Importance:
    """Band a passage by length, quote count and entity count.

    ``high``: long and (enough quotes or enough concepts).
    ``low``: short with no quotes and no entities.
    ``medium``: everything else.
    """
    t = thresholds or ImportanceThresholds()
    is_long = len(main) > t.long_content_chars

    if is_long and (len(quotes) >= t.min_quotes or len(entities.concepts) >= t.min_concepts):
        return Importance.HIGH
    if not is_long and not quotes and entities.count() == 0:
        return Importance.LOW
    return Importance.MEDIUM


def assess_importance(
    knowledge: KnowledgeObject,
    thresholds: ImportanceThresholds | None = None,
) -> Importance:
    """Score an existing knowledge object."""
    return score_importance(
        knowledge.content.main, knowledge.content.quotes, knowledge.entities, thresholds
    )


def detect_topic(text: str, rules: RuleSet | None = None) -> str:
    """Return the earliest topic keyword in *text*, or ``"General"``."""
    ruleset = resolve_ruleset(rules)
    hits = _ordered_unique(_vocabulary_hits(text, ruleset.topic_keywords))
    return hits[0] if hits else "General"


def build_knowledge_object(
    paragraph: CleanedParagraph,
    knowledge_id: str,
    rules: RuleSet | None = None,
    thresholds: ImportanceThresholds | None = None,
) -> KnowledgeObject:
    """Extract a knowledge object from one cleaned paragraph."""
    ruleset = resolve_ruleset(rules)
    text = paragraph.cleaned_text

    entities = extract_entities(text, ruleset)
    quotes = extract_quotes(text, ruleset)

    return KnowledgeObject(
        knowledge_id=knowledge_id,
        content=KnowledgeContent(
            main=text,
            quotes=quotes,
            key_takeaway=quotes[0] if quotes else text[:_KEY_TAKEAWAY_CHARS],
        ),
        entities=entities,
        knowledge_type=classify_knowledge_type(text, entities, ruleset),
        importance=score_importance(text, quotes, entities, thresholds),
        topic=detect_topic(text, ruleset),
        start_time=paragraph.start_time,
        end_time=paragraph.end_time,
        segment_ids=list(paragraph.segment_ids),
        paragraph_id=paragraph.paragraph_id,
    )


def extract_knowledge(
    paragraphs: Sequence[CleanedParagraph],
    rules: RuleSet | None = None,
    thresholds: ImportanceThresholds | None = None,
) -> ExtractionResult:
    """Build one knowledge object per cleaned paragraph, in order.

    Args:
        paragraphs: Output of the cleaner.
        rules: Rule set override; defaults to the packaged rules.
        thresholds: Importance cut-offs.

    Returns:
        An :class:`ExtractionResult` with per-band and per-type counts.
    """
    ruleset = resolve_ruleset(rules)
    knowledge = [
        build_knowledge_object(p, f"k{i:03d}", ruleset, thresholds)
        for i, p in enumerate(paragraphs, start=1)
    ]

    stats: dict[str, int] = {"total_knowledge_objects": len(knowledge)}
    for band in Importance:
        stats[f"{band.value}_importance"] = sum(1 for k in knowledge if k.importance is band)
    for kind in KnowledgeType:
        stats[kind.value] = sum(1 for k in knowledge if k.knowledge_type is kind)

    logger.info(
        "Extracted %d knowledge objects (high=%d, medium=%d, low=%d)",
        len(knowledge),
        stats["high_importance"],
        stats["medium_importance"],
        stats["low_importance"],
    )

    return ExtractionResult(knowledge=knowledge, stats=stats)
