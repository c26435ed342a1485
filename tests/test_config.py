"""Tests for Settings, PipelineConfig, the rule set loader and the error types."""

from __future__ import annotations

import dataclasses
import json

import pytest
from pydantic import ValidationError

from transcript_knowledge.config import Settings
from transcript_knowledge.errors import (
    MalformedInputError,
    RecordValidationError,
    TranscriptError,
    TranscriptNotFoundError,
)
from transcript_knowledge.extraction.models import KnowledgeType
from transcript_knowledge.pipeline_config import ImportanceThresholds, PipelineConfig
from transcript_knowledge.rules import (
    DEFAULT_RULES_PATH,
    RuleSet,
    default_ruleset,
    load_ruleset,
    resolve_ruleset,
)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MAX_CHUNK_CHARS", raising=False)
        monkeypatch.delenv("SILENCE_THRESHOLD_MS", raising=False)
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.silence_threshold_ms == 2000
        assert s.max_chunk_chars == 1000
        assert s.fix_errors is True
        assert s.remove_fillers is False

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_CHUNK_CHARS", "500")
        monkeypatch.setenv("REMOVE_FILLERS", "true")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.max_chunk_chars == 500
        assert s.remove_fillers is True

    def test_import_does_not_build_settings(self) -> None:
        import transcript_knowledge.config as config

        assert not hasattr(config, "settings")


# ---------------------------------------------------------------------------
# PipelineConfig
# ---------------------------------------------------------------------------


class TestPipelineConfig:
    def test_defaults(self) -> None:
        config = PipelineConfig()
        assert config.silence_threshold_ms == 2000
        assert config.max_sentences_per_paragraph == 1
        assert config.max_chunk_chars == 1000
        assert config.chunk_separator == "\n"
        assert config.importance == ImportanceThresholds()
        assert config.save_intermediate_results is False

    def test_frozen(self) -> None:
        config = PipelineConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.max_chunk_chars = 10  # type: ignore[misc]

    def test_replace(self) -> None:
        config = dataclasses.replace(PipelineConfig(), max_chunk_chars=400)
        assert config.max_chunk_chars == 400
        assert config.silence_threshold_ms == 2000

    def test_from_settings(self) -> None:
        s = Settings(  # type: ignore[call-arg]
            _env_file=None,
            silence_threshold_ms=1500,
            max_chunk_chars=800,
            importance_min_quotes=3,
            output_dir="",
        )
        config = PipelineConfig.from_settings(s)
        assert config.silence_threshold_ms == 1500
        assert config.max_chunk_chars == 800
        assert config.importance.min_quotes == 3
        assert config.output_dir is None


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


class TestRuleSet:
    def test_default_rules_load(self) -> None:
        rules = default_ruleset()
        assert DEFAULT_RULES_PATH.exists()
        assert rules.version
        assert rules.quote_open == "「"
        assert [r.knowledge_type for r in rules.classification] == [
            KnowledgeType.ADVICE,
            KnowledgeType.BIOGRAPHICAL_EVENT,
            KnowledgeType.CONCEPT_DEFINITION,
        ]

    def test_default_is_cached(self) -> None:
        assert default_ruleset() is default_ruleset()
        assert resolve_ruleset(None) is default_ruleset()

    def test_rules_are_immutable(self) -> None:
        with pytest.raises(ValidationError):
            default_ruleset().version = "changed"  # type: ignore[misc]

    def test_load_custom_file(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(
            json.dumps({"version": "custom-1", "concepts": ["テスト"]}, ensure_ascii=False),
            encoding="utf-8",
        )
        rules = resolve_ruleset(path)
        assert isinstance(rules, RuleSet)
        assert rules.version == "custom-1"
        assert rules.concepts == ["テスト"]
        assert rules.classification == []

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(TranscriptNotFoundError):
            load_ruleset(tmp_path / "nope.json")

    def test_unknown_key_rejected(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"version": "x", "unknown": 1}), encoding="utf-8")
        with pytest.raises(RecordValidationError):
            load_ruleset(path)

    def test_bad_regex_rejected(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(
            json.dumps(
                {
                    "version": "x",
                    "corrections": [{"pattern": "(", "replacement": "", "regex": True}],
                }
            ),
            encoding="utf-8",
        )
        with pytest.raises(RecordValidationError):
            load_ruleset(path)

    def test_not_json(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text("not json", encoding="utf-8")
        with pytest.raises(RecordValidationError):
            load_ruleset(path)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class TestErrors:
    def test_hierarchy(self) -> None:
        assert issubclass(TranscriptNotFoundError, TranscriptError)
        assert issubclass(TranscriptNotFoundError, FileNotFoundError)
        assert issubclass(MalformedInputError, ValueError)
        assert issubclass(RecordValidationError, TranscriptError)

    def test_malformed_input_location(self) -> None:
        exc = MalformedInputError("Invalid timestamp", cue_id=3, line=7)
        assert str(exc) == "Invalid timestamp (cue 3, line 7)"
        assert exc.cue_id == 3
        assert exc.line == 7

    def test_malformed_input_without_location(self) -> None:
        assert str(MalformedInputError("bad")) == "bad"
