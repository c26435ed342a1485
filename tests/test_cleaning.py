"""Tests for the content cleaner."""

from __future__ import annotations

import logging

import pytest

from transcript_knowledge.cleaning.cleaner import (
    clean_paragraphs,
    clean_text,
    clean_whitespace,
    fix_transcription_errors,
    normalize_characters,
    remove_filler_words,
    remove_non_verbal_markers,
    standardize_punctuation,
    validate_paragraph,
)
from transcript_knowledge.errors import RecordValidationError
from transcript_knowledge.ingestion.models import Paragraph
from transcript_knowledge.rules import CorrectionRule, RuleSet


class TestNormalizeCharacters:
    def test_fullwidth_to_halfwidth(self) -> None:
        assert normalize_characters("ＡＢＣ１２３　ｘｙｚ") == "ABC123 xyz"

    def test_japanese_untouched(self) -> None:
        assert normalize_characters("日本語のテキスト。") == "日本語のテキスト。"

    def test_idempotent(self) -> None:
        text = "Ｔｅｓｔ　１２３ と テスト"
        once = normalize_characters(text)
        assert normalize_characters(once) == once


class TestFixTranscriptionErrors:
    def test_known_error(self) -> None:
        fixed, records = fix_transcription_errors("青木サの話")
        assert fixed == "青木さんの話"
        assert len(records) == 1
        assert records[0].original == "青木サ"
        assert records[0].corrected == "青木さん"
        assert records[0].position == 0

    def test_already_correct_text_unchanged(self) -> None:
        fixed, records = fix_transcription_errors("青木さんの話")
        assert fixed == "青木さんの話"
        assert records == []

    def test_positions_track_corrected_text(self) -> None:
        fixed, records = fix_transcription_errors("青木サと青木サ")
        assert fixed == "青木さんと青木さん"
        assert [r.position for r in records] == [0, 5]
        for record in records:
            assert fixed[record.position : record.position + len(record.corrected)] == "青木さん"

    def test_multiple_rules(self) -> None:
        fixed, records = fix_transcription_errors("警額から学ぶ")
        assert fixed == "経験から学ぶ"
        assert records[0].original == "警額"

    def test_custom_rules(self) -> None:
        rules = RuleSet(
            version="test",
            corrections=[CorrectionRule(pattern="ﾃｽﾄ", replacement="テスト")],
        )
        fixed, records = fix_transcription_errors("ﾃｽﾄです", rules)
        assert fixed == "テストです"
        assert len(records) == 1

    def test_invalid_regex_rejected(self) -> None:
        with pytest.raises(ValueError):
            CorrectionRule(pattern="(", replacement="", regex=True)


class TestRemoveNonVerbalMarkers:
    def test_bracketed_marker(self) -> None:
        assert remove_non_verbal_markers("青木さんの[音楽]話です") == "青木さんの話です"

    def test_fullwidth_brackets(self) -> None:
        assert remove_non_verbal_markers("［拍手］ありがとう") == "ありがとう"
        assert remove_non_verbal_markers("（笑い）そうですね") == "そうですね"

    def test_case_insensitive(self) -> None:
        assert remove_non_verbal_markers("[music]Hello") == "Hello"
        assert remove_non_verbal_markers("(APPLAUSE) thanks") == "thanks"

    def test_space_kept_between_words(self) -> None:
        assert remove_non_verbal_markers("before [Applause] after") == "before after"

    def test_unknown_label_kept(self) -> None:
        assert remove_non_verbal_markers("[注]重要") == "[注]重要"


class TestPunctuationAndWhitespace:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("すごい！！！", "すごい！"),
            ("本当？？", "本当？"),
            ("wow!!!", "wow!"),
            ("話です。。。", "話です…"),
            ("wait...", "wait…"),
            ("それで、、次", "それで、次"),
            ("本当?!", "本当?!"),
            ("えっ!?!", "えっ!?!"),
            ("二つ..", "二つ.."),
        ],
    )
    def test_standardize(self, text: str, expected: str) -> None:
        assert standardize_punctuation(text) == expected

    def test_clean_whitespace(self) -> None:
        assert clean_whitespace("  こんにちは 。  世界  ") == "こんにちは。 世界"

    def test_fillers_removed(self) -> None:
        assert remove_filler_words("えー、今日はあの、話します") == "今日は話します"


class TestCleanText:
    def test_end_to_end_example(self) -> None:
        cleaned, corrections = clean_text("青木サの[音楽]話です。。。")
        assert cleaned == "青木さんの話です…"
        assert any(c.original == "青木サ" for c in corrections)

    def test_idempotent(self) -> None:
        once, _ = clean_text("青木サの[音楽]話です。。。  ＯＫ！！")
        twice, corrections = clean_text(once)
        assert twice == once
        assert corrections == []

    def test_fillers_kept_by_default(self) -> None:
        cleaned, _ = clean_text("えー、今日は")
        assert cleaned == "えー、今日は"

    def test_fillers_removed_when_enabled(self) -> None:
        cleaned, _ = clean_text("えー、今日は", remove_fillers=True)
        assert cleaned == "今日は"

    def test_fix_errors_disabled(self) -> None:
        cleaned, corrections = clean_text("青木サの話", fix_errors=False)
        assert cleaned == "青木サの話"
        assert corrections == []

    def test_empty_string(self) -> None:
        assert clean_text("") == ("", [])


class TestValidateParagraph:
    def test_camel_case_mapping(self) -> None:
        record = validate_paragraph(
            {"paragraphId": 3, "fullText": "本文", "startTime": "00:00:01,000", "segmentIds": [4]}
        )
        assert record.paragraph_id == 3
        assert record.full_text == "本文"
        assert record.segment_ids == [4]

    def test_dataclass(self) -> None:
        paragraph = Paragraph(
            paragraph_id=1,
            full_text="本文",
            start_time="00:00:00,000",
            end_time="00:00:01,000",
            segment_ids=[1],
        )
        assert validate_paragraph(paragraph).full_text == "本文"

    def test_missing_text_raises(self) -> None:
        with pytest.raises(RecordValidationError):
            validate_paragraph({"paragraphId": 1})

    def test_wrong_type_raises(self) -> None:
        with pytest.raises(RecordValidationError):
            validate_paragraph(42)


class TestCleanParagraphs:
    def _paragraphs(self) -> list[Paragraph]:
        return [
            Paragraph(
                paragraph_id=1,
                full_text="青木サの[音楽]話です。。。",
                start_time="00:00:00,160",
                end_time="00:00:03,879",
                segment_ids=[1, 2],
            ),
            Paragraph(
                paragraph_id=2,
                full_text="人間って変わらないんだよ",
                start_time="00:00:03,879",
                end_time="00:00:07,240",
                segment_ids=[3],
            ),
        ]

    def test_one_output_per_input(self) -> None:
        result = clean_paragraphs(self._paragraphs())
        assert len(result.paragraphs) == 2
        assert [p.paragraph_id for p in result.paragraphs] == [1, 2]

    def test_preserves_source_fields(self) -> None:
        first = clean_paragraphs(self._paragraphs()).paragraphs[0]
        assert first.original_text == "青木サの[音楽]話です。。。"
        assert first.cleaned_text == "青木さんの話です…"
        assert first.start_time == "00:00:00,160"
        assert first.end_time == "00:00:03,879"
        assert first.segment_ids == [1, 2]
        assert first.cleaning_applied["errors_fixed"] is True

    def test_stats(self) -> None:
        result = clean_paragraphs(self._paragraphs())
        assert result.stats.paragraphs_processed == 2
        assert result.stats.paragraphs_corrected == 1
        assert result.stats.total_corrections == 1
        assert result.stats.unique_corrections == 1
        assert result.stats.paragraphs_skipped == 0

    def test_malformed_records_are_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        records = [
            {"paragraphId": 1, "fullText": "一つ目"},
            {"paragraphId": 2},
            {"paragraphId": 3, "fullText": "三つ目"},
            "not a record",
        ]
        with caplog.at_level(logging.WARNING):
            result = clean_paragraphs(records)
        assert [p.paragraph_id for p in result.paragraphs] == [1, 3]
        assert result.stats.paragraphs_skipped == 2
        assert "Skipping paragraph" in caplog.text

    def test_to_dict(self) -> None:
        data = clean_paragraphs(self._paragraphs()).paragraphs[0].to_dict()
        assert data["cleanedText"] == "青木さんの話です…"
        assert data["corrections"][0]["original"] == "青木サ"

    def test_empty(self) -> None:
        result = clean_paragraphs([])
        assert result.paragraphs == []
        assert result.stats.paragraphs_processed == 0
