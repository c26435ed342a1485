"""Versioned rule data for cleaning and extraction.

Correction tables, vocabularies and the ordered classification rules are
plain data validated with Pydantic, so they can be supplied per run and
extended without touching the algorithms. The packaged default set lives in
``data/default_rules.json``.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from transcript_knowledge.errors import RecordValidationError, TranscriptNotFoundError
from transcript_knowledge.extraction.models import Entities, KnowledgeType

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "data" / "default_rules.json"

EntityCategory = Literal["people", "concepts", "organizations", "ages", "numbers"]


def _check_pattern(pattern: str) -> str:
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ValueError(f"Invalid regular expression {pattern!r}: {exc}") from exc
    return pattern


class CorrectionRule(BaseModel):
    """A known transcription error and its fix."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    pattern: str = Field(min_length=1)
    replacement: str
    regex: bool = False

    @model_validator(mode="after")
    def pattern_compiles(self) -> CorrectionRule:
        if self.regex:
            _check_pattern(self.pattern)
        return self

    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.pattern if self.regex else re.escape(self.pattern))


class ClassificationRule(BaseModel):
    """One tagged matcher in the ordered classification rule list.

    The rule fires when any marker pattern matches the text and every
    category in ``requires_entities`` is non-empty.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    tag: str
    knowledge_type: KnowledgeType
    markers: list[str] = Field(min_length=1)
    requires_entities: list[EntityCategory] = Field(default_factory=list)

    @field_validator("markers")
    @classmethod
    def markers_compile(cls, v: list[str]) -> list[str]:
        return [_check_pattern(p) for p in v]

    def matches(self, text: str, entities: Entities) -> bool:
        if any(not getattr(entities, name) for name in self.requires_entities):
            return False
        return any(re.search(p, text) for p in self.markers)


class RuleSet(BaseModel):
    """All rule tables used by the cleaner and the extractor."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: str

    # Cleaning
    corrections: list[CorrectionRule] = Field(default_factory=list)
    non_verbal_labels: list[str] = Field(default_factory=list)
    fillers: list[str] = Field(default_factory=list)

    # Entities
    honorifics: list[str] = Field(default_factory=list)
    people_stopwords: list[str] = Field(default_factory=list)
    known_people: list[str] = Field(default_factory=list)
    concepts: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)
    age_counter: str = "歳"
    magnitudes: list[str] = Field(default_factory=list)
    currencies: list[str] = Field(default_factory=list)

    # Quotes
    quote_open: str = Field(default="「", min_length=1, max_length=1)
    quote_close: str = Field(default="」", min_length=1, max_length=1)

    # Topics and chunk keywords
    topic_keywords: list[str] = Field(default_factory=list)
    important_terms: list[str] = Field(default_factory=list)

    # Evaluated in order; the first matching rule wins.
    classification: list[ClassificationRule] = Field(default_factory=list)


def load_ruleset(path: str | Path) -> RuleSet:
    """Load and validate a rule set from a JSON file.

    Raises:
        TranscriptNotFoundError: If *path* does not exist.
        RecordValidationError: If the file is not a valid rule set.
    """
    rules_path = Path(path)
    try:
        raw = rules_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TranscriptNotFoundError(f"Rule file not found: {rules_path}") from exc

    try:
        ruleset = RuleSet.model_validate_json(raw)
    except ValidationError as exc:
        raise RecordValidationError(f"Invalid rule file {rules_path}: {exc}") from exc

    logger.debug("Loaded rule set %s from %s", ruleset.version, rules_path)
    return ruleset


@lru_cache(maxsize=1)
def default_ruleset() -> RuleSet:
    """Return the packaged default rule set (cached, immutable)."""
    return load_ruleset(DEFAULT_RULES_PATH)


def resolve_ruleset(rules: RuleSet | str | Path | None = None) -> RuleSet:
    """Accept a RuleSet, a path to one, or None for the default."""
    if rules is None:
        return default_ruleset()
    if isinstance(rules, RuleSet):
        return rules
    return load_ruleset(rules)
