"""Command-line entry point: turn one SRT transcript into knowledge chunks.

Usage:
    python -m transcript_knowledge.cli talk.srt --output chunks.json
    python -m transcript_knowledge.cli talk.srt --save-intermediate ./output --log-level DEBUG
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

from transcript_knowledge.config import get_settings
from transcript_knowledge.errors import TranscriptError
from transcript_knowledge.ingestion.pipeline import process_transcript
from transcript_knowledge.pipeline_config import PipelineConfig

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: str) -> None:
    """Configure the root logger once for a CLI run."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=_LOG_FORMAT,
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m transcript_knowledge.cli",
        description="Parse, reconstruct, clean, extract and chunk an SRT transcript.",
    )
    parser.add_argument("srt_path", metavar="SRT_PATH", help="Path to the .srt file.")
    parser.add_argument(
        "--output",
        metavar="FILE",
        default=None,
        help="Write chunk payloads as JSON to FILE (default: stdout).",
    )
    parser.add_argument(
        "--rules",
        metavar="FILE",
        default=None,
        help="Rule set JSON overriding the packaged defaults.",
    )
    parser.add_argument(
        "--max-chunk-chars",
        type=int,
        default=None,
        help="Maximum merged text length per chunk.",
    )
    parser.add_argument(
        "--silence-threshold-ms",
        type=int,
        default=None,
        help="Pause length (ms) treated as a sentence break.",
    )
    parser.add_argument(
        "--no-fix-errors",
        action="store_true",
        default=False,
        help="Skip the known transcription-error corrections.",
    )
    parser.add_argument(
        "--remove-fillers",
        action="store_true",
        default=False,
        help="Strip hesitation fillers such as 'えー、'.",
    )
    parser.add_argument(
        "--save-intermediate",
        metavar="DIR",
        default=None,
        help="Save each stage's output (01-segments.json ... 05-chunks.json) to DIR.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: LOG_LEVEL setting).",
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> PipelineConfig:
    config = PipelineConfig.from_settings()
    overrides: dict[str, Any] = {}
    if args.max_chunk_chars is not None:
        overrides["max_chunk_chars"] = args.max_chunk_chars
    if args.silence_threshold_ms is not None:
        overrides["silence_threshold_ms"] = args.silence_threshold_ms
    if args.no_fix_errors:
        overrides["fix_errors"] = False
    if args.remove_fillers:
        overrides["remove_fillers"] = True
    if args.save_intermediate:
        overrides["output_dir"] = args.save_intermediate
        overrides["save_intermediate_results"] = True
    return dataclasses.replace(config, **overrides)


def main(argv: list[str] | None = None) -> int:
    """Run the pipeline for one file and return a process exit code."""
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(args.log_level or settings.log_level)

    config = _config_from_args(args)
    rules = args.rules or settings.rules_path or None

    try:
        result = process_transcript(args.srt_path, config=config, rules=rules)
    except TranscriptError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    payload = json.dumps(result.payloads(), ensure_ascii=False, indent=2)
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload, encoding="utf-8")
        logger.info("Wrote %d chunk payloads to %s", len(result.chunks), out)
    else:
        print(payload)

    extraction = result.extraction.stats
    print(
        f"Processed {args.srt_path}: "
        f"{len(result.segments)} segments -> "
        f"{len(result.reconstruction.paragraphs)} paragraphs -> "
        f"{extraction['total_knowledge_objects']} knowledge objects "
        f"(high={extraction['high_importance']}) -> "
        f"{len(result.chunks)} chunks",
        file=sys.stderr if not args.output else sys.stdout,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
