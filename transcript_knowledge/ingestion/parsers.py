"""SRT subtitle parser: numbered cues with ``HH:MM:SS,mmm`` timestamps."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from transcript_knowledge.errors import MalformedInputError, TranscriptNotFoundError
from transcript_knowledge.ingestion.models import Segment, SegmentStatistics

logger = logging.getLogger(__name__)

# Hours are at least two digits with no superfluous leading zero so that
# format_timestamp(parse_timestamp(s)) == s for every accepted string.
_TIMESTAMP_RE = re.compile(r"^(\d{2}|[1-9]\d{2,}):([0-5]\d):([0-5]\d),(\d{3})$", re.ASCII)
_ARROW_RE = re.compile(r"^(\S+)\s*-->\s*(\S+)$")
_BLOCK_SPLIT_RE = re.compile(r"\n[ \t]*\n")


def parse_timestamp(ts: str) -> int:
    """Convert an SRT timestamp (HH:MM:SS,mmm) to milliseconds.

    Raises:
        MalformedInputError: If *ts* is not a valid SRT timestamp.
    """
    match = _TIMESTAMP_RE.match(ts.strip())
    if not match:
        raise MalformedInputError(f"Invalid timestamp: {ts!r}")
    hours, minutes, seconds, millis = (int(g) for g in match.groups())
    return ((hours * 60 + minutes) * 60 + seconds) * 1000 + millis


def format_timestamp(ms: int) -> str:
    """Convert milliseconds to an SRT timestamp (HH:MM:SS,mmm)."""
    if ms < 0:
        raise ValueError(f"Timestamp cannot be negative: {ms}")
    seconds, millis = divmod(ms, 1000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def _parse_block(block: str, first_line: int) -> Segment:
    """Parse one cue block; *first_line* is its 1-based line number in the file."""
    lines = [line.strip() for line in block.split("\n")]

    id_line = lines[0]
    if not (id_line.isascii() and id_line.isdigit()) or int(id_line) < 1:
        raise MalformedInputError(
            f"Cue id must be a positive integer, got {id_line!r}", line=first_line
        )
    cue_id = int(id_line)

    if len(lines) < 2:
        raise MalformedInputError("Missing timestamp line", cue_id=cue_id, line=first_line)
    arrow = _ARROW_RE.match(lines[1])
    if not arrow:
        raise MalformedInputError(
            f"Expected 'HH:MM:SS,mmm --> HH:MM:SS,mmm', got {lines[1]!r}",
            cue_id=cue_id,
            line=first_line + 1,
        )
    start_time, end_time = arrow.group(1), arrow.group(2)
    try:
        start_ms = parse_timestamp(start_time)
        end_ms = parse_timestamp(end_time)
    except MalformedInputError as exc:
        raise MalformedInputError(str(exc), cue_id=cue_id, line=first_line + 1) from exc

    if end_ms < start_ms:
        raise MalformedInputError(
            f"Negative duration: {start_time} --> {end_time}",
            cue_id=cue_id,
            line=first_line + 1,
        )

    text_lines = [line for line in lines[2:] if line]
    if not text_lines:
        raise MalformedInputError("Cue has no text", cue_id=cue_id, line=first_line)

    return Segment(
        id=cue_id,
        text=" ".join(text_lines),
        start_time=start_time,
        end_time=end_time,
        start_ms=start_ms,
        end_ms=end_ms,
    )


def parse_srt(content: str) -> list[Segment]:
    """Parse SRT subtitle text into segments.

    Cue blocks are separated by blank lines; each holds a numeric id line,
    a ``start --> end`` line and one or more text lines. Multi-line bodies
    are joined with a single space.

    Args:
        content: Raw subtitle text (UTF-8 decoded).

    Returns:
        Segments in source order.

    Raises:
        MalformedInputError: If any cue block cannot be parsed, or cue ids
            are not strictly increasing.
    """
    normalized = content.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")

    segments: list[Segment] = []
    line_no = 1
    pos = 0
    # Walk the blocks while tracking line numbers for error context
    for sep in [*_BLOCK_SPLIT_RE.finditer(normalized), None]:
        end = sep.start() if sep else len(normalized)
        raw_block = normalized[pos:end]
        leading = len(raw_block) - len(raw_block.lstrip("\n \t"))
        block = raw_block.strip()
        if block:
            block_line = line_no + raw_block[:leading].count("\n")
            segment = _parse_block(block, block_line)
            if segments and segment.id <= segments[-1].id:
                raise MalformedInputError(
                    f"Cue ids must be strictly increasing (previous {segments[-1].id})",
                    cue_id=segment.id,
                    line=block_line,
                )
            segments.append(segment)
        if sep is None:
            break
        line_no += normalized[pos : sep.end()].count("\n")
        pos = sep.end()

    logger.debug("Parsed %d segments", len(segments))
    return segments


def load_srt(path: str | Path) -> list[Segment]:
    """Read an SRT file (UTF-8) and parse it into segments.

    Raises:
        TranscriptNotFoundError: If *path* does not exist.
        MalformedInputError: If the file is not UTF-8 or cannot be parsed.
    """
    srt_path = Path(path)
    try:
        content = srt_path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TranscriptNotFoundError(f"SRT file not found: {srt_path}") from exc
    except UnicodeDecodeError as exc:
        line = exc.object[: exc.start].count(b"\n") + 1
        raise MalformedInputError(
            f"SRT file is not valid UTF-8 (byte {exc.start}): {srt_path}", line=line
        ) from exc

    segments = parse_srt(content)
    logger.info("Loaded %d segments from %s", len(segments), srt_path)
    return segments


def get_statistics(segments: list[Segment]) -> SegmentStatistics:
    """Summarize segment count, durations (ms) and character counts."""
    total_duration = sum(s.duration for s in segments)
    total_characters = sum(s.text_length for s in segments)
    count = len(segments)
    return SegmentStatistics(
        total_segments=count,
        total_duration=total_duration,
        average_duration=total_duration / count if count else 0.0,
        total_characters=total_characters,
        average_characters=total_characters / count if count else 0.0,
    )


def segments_to_srt(segments: list[Segment]) -> str:
    """Serialize segments back to SRT text."""
    blocks = [
        f"{s.id}\n{format_timestamp(s.start_ms)} --> {format_timestamp(s.end_ms)}\n{s.text}\n"
        for s in segments
    ]
    return "\n".join(blocks)
