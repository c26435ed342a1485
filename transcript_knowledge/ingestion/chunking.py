"""Knowledge-based chunking: group knowledge objects into retrieval-sized chunks."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import Any

from transcript_knowledge.extraction.models import Entities, Importance, KnowledgeObject
from transcript_knowledge.ingestion.models import Chunk
from transcript_knowledge.rules import RuleSet, resolve_ruleset


def _chunk_topic(members: Sequence[KnowledgeObject]) -> str:
    """Most frequent concept among *members*, ties broken by first occurrence."""
    counts: Counter[str] = Counter()
    first_seen: dict[str, int] = {}
    for member in members:
        for concept in member.entities.concepts:
            counts[concept] += 1
            first_seen.setdefault(concept, len(first_seen))

    if counts:
        return min(counts, key=lambda c: (-counts[c], first_seen[c]))

    for member in members:
        if member.topic != "General":
            return member.topic
    return "General"


def generate_keywords(text: str, entities: Entities, rules: RuleSet | None = None) -> list[str]:
    """Entity names plus any configured important terms found in *text*."""
    ruleset = resolve_ruleset(rules)
    keywords: list[str] = []
    for term in [
        *entities.people,
        *entities.concepts,
        *entities.organizations,
        *(t for t in ruleset.important_terms if t in text),
    ]:
        if term not in keywords:
            keywords.append(term)
    return keywords


def _merge_entities(members: Sequence[KnowledgeObject]) -> Entities:
    merged = Entities()
    for member in members:
        for name in ("people", "concepts", "organizations", "ages", "numbers"):
            target = getattr(merged, name)
            target.extend(v for v in getattr(member.entities, name) if v not in target)
    return merged


def _build_chunk(
    knowledge: Sequence[KnowledgeObject],
    start: int,
    end: int,
    chunk_index: int,
    separator: str,
    max_chars: int,
    ruleset: RuleSet,
) -> Chunk:
    """Build the chunk holding ``knowledge[start:end]``."""
    members = list(knowledge[start:end])
    text = separator.join(m.content.main for m in members)
    entities = _merge_entities(members)
    return Chunk(
        chunk_id=f"chunk_{chunk_index + 1:03d}",
        chunk_index=chunk_index,
        knowledge=members,
        text=text,
        start_time=members[0].start_time,
        end_time=members[-1].end_time,
        topic=_chunk_topic(members),
        keywords=generate_keywords(text, entities, ruleset),
        importance=max((m.importance for m in members), key=lambda i: i.rank),
        oversized=len(text) > max_chars,
        entities=entities,
        context_before=knowledge[start - 1].topic if start > 0 else None,
        context_after=knowledge[end].topic if end < len(knowledge) else None,
    )


def chunk_knowledge(
    knowledge: Sequence[KnowledgeObject],
    max_chars: int = 1000,
    separator: str = "\n",
    rules: RuleSet | None = None,
) -> list[Chunk]:
    """Greedily pack consecutive knowledge objects into chunks.

    Objects are added to the current chunk while the merged text (including
    separators) stays within *max_chars*. An object that alone exceeds the
    limit becomes its own oversized chunk; text is never truncated.

    Args:
        knowledge: Knowledge objects in source order.
        max_chars: Maximum merged-text length per chunk.
        separator: String placed between member texts.
        rules: Rule set used for chunk keywords.

    Returns:
        Chunks in source order; each knowledge object appears in exactly one.
    """
    if max_chars < 1:
        raise ValueError("max_chars must be >= 1")
    if not knowledge:
        return []

    ruleset = resolve_ruleset(rules)
    chunks: list[Chunk] = []
    start = 0
    current_len = 0

    for index, item in enumerate(knowledge):
        item_len = len(item.content.main)
        if index > start and current_len + len(separator) + item_len > max_chars:
            chunks.append(
                _build_chunk(knowledge, start, index, len(chunks), separator, max_chars, ruleset)
            )
            start = index

        current_len = item_len if index == start else current_len + len(separator) + item_len

    chunks.append(
        _build_chunk(knowledge, start, len(knowledge), len(chunks), separator, max_chars, ruleset)
    )
    return chunks


def validate_chunks(
    chunks: Sequence[Chunk],
    min_chars: int = 100,
    max_chars: int = 1000,
) -> list[str]:
    """Return human-readable issues; an empty list means the chunks look sane."""
    issues: list[str] = []
    for chunk in chunks:
        size = len(chunk.text)
        if size < min_chars:
            issues.append(f"{chunk.chunk_id}: too small ({size} chars)")
        if size > max_chars and not (chunk.oversized and len(chunk.knowledge) == 1):
            issues.append(f"{chunk.chunk_id}: too large ({size} chars)")
        if not chunk.topic:
            issues.append(f"{chunk.chunk_id}: missing topic")
        if not chunk.knowledge:
            issues.append(f"{chunk.chunk_id}: no source knowledge")
    return issues


def chunk_statistics(chunks: Sequence[Chunk]) -> dict[str, Any]:
    """Summarize chunk sizes and importance for reporting."""
    sizes = [len(c.text) for c in chunks]
    return {
        "total_chunks": len(chunks),
        "total_knowledge": sum(len(c.knowledge) for c in chunks),
        "avg_chunk_size": round(sum(sizes) / len(sizes)) if sizes else 0,
        "oversized": sum(1 for c in chunks if c.oversized),
        "size_distribution": {
            "small": sum(1 for s in sizes if s < 400),
            "medium": sum(1 for s in sizes if 400 <= s < 700),
            "large": sum(1 for s in sizes if s >= 700),
        },
        "by_importance": {
            band.value: sum(1 for c in chunks if c.importance is band) for band in Importance
        },
    }
