"""Utility functions for table I/O, row classification and response parsing."""

import csv
import io
import re
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

import structlog

from .config import HEADER_MARKERS, VERB_MARKER
from .errors import MalformedResponseError
from .models import OutputRow, RowClass, VocabRow

log = structlog.get_logger()

# Combining grave (U+0300) and acute (U+0301) accents, used as stress marks.
STRESS_MARKS = re.compile("[\u0300\u0301]")

RECORD_SEPARATOR = '","'
STRICT_RECORD = re.compile(r'^"([^"]+)","([^"]+)"$')


def normalize(text: str) -> str:
    """Strip combining stress marks, leaving every other character untouched."""
    return STRESS_MARKS.sub("", text)


def parse_table(csv_content: str) -> List[VocabRow]:
    """Parse header-less two-column quoted text into rows.

    Blank lines are skipped and stray quotes are removed from both fields;
    a missing gloss becomes an empty string.
    """
    rows = []
    for record in csv.reader(io.StringIO(csv_content)):
        if not record or not any(field.strip() for field in record):
            continue
        source = record[0].replace('"', "")
        gloss = record[1].replace('"', "") if len(record) > 1 else ""
        rows.append(VocabRow(source=source, gloss=gloss))
    return rows


def render_table(rows: Iterable[OutputRow]) -> str:
    """Render output rows as ``"source","gloss"`` lines joined by newlines."""
    return "\n".join(row.to_line() for row in rows)


def classify_row(row: VocabRow) -> RowClass:
    """A row is a verb when its gloss reads like an English infinitive."""
    if VERB_MARKER in row.gloss:
        return RowClass.VERB
    return RowClass.NON_VERB


def classify(rows: Sequence[VocabRow]) -> Tuple[List[VocabRow], List[VocabRow]]:
    """Split rows into (verb rows, pass-through rows), keeping input order."""
    verb_rows = []
    non_verb_rows = []
    for row in rows:
        if classify_row(row) is RowClass.VERB:
            verb_rows.append(row)
        else:
            non_verb_rows.append(row)
    return verb_rows, non_verb_rows


def pass_through(row: VocabRow) -> OutputRow:
    """Turn a non-verb input row into an output row."""
    return OutputRow(source=normalize(row.source), gloss=row.gloss)


def is_header_line(line: str) -> bool:
    return any(marker in line for marker in HEADER_MARKERS)


def parse_response(raw_text: str) -> List[OutputRow]:
    """Extract table rows from untrusted generator output.

    Lines matching ``"<source>","<gloss>"`` exactly are normalized. Lines that
    only contain the ``","`` separator are kept verbatim. Everything else,
    including echoed header lines, is dropped.
    """
    rows = []
    for line in raw_text.splitlines():
        line = line.strip()
        if not line or RECORD_SEPARATOR not in line or is_header_line(line):
            continue
        match = STRICT_RECORD.match(line)
        if match:
            rows.append(OutputRow(source=normalize(match.group(1)), gloss=match.group(2)))
        else:
            source, _, gloss = line.partition(RECORD_SEPARATOR)
            rows.append(OutputRow(source=source.lstrip('"'), gloss=gloss.rstrip('"'), raw=line))
    return rows


def rows_from_response(raw_text: str) -> List[OutputRow]:
    """Like :func:`parse_response` but raise when nothing usable was found."""
    rows = parse_response(raw_text)
    if not rows:
        raise MalformedResponseError(f"No table rows in response: {raw_text[:200]!r}")
    return rows


def merge(non_verb_rows: Sequence[VocabRow], generated: Sequence[OutputRow]) -> List[OutputRow]:
    """Pass-through rows first in input order, then generated rows in batch order."""
    return [pass_through(row) for row in non_verb_rows] + list(generated)


def load_table_from_file(file_path: Path) -> str:
    """Read a vocabulary table from disk."""
    if not file_path.exists():
        raise FileNotFoundError(f"Input file not found: {file_path}")

    content = file_path.read_text(encoding="utf-8")
    log.info("Loaded table from file", file=str(file_path), size=len(content))
    return content


def write_table(csv_content: str, file_path: Path):
    """Write the final table to disk."""
    file_path.write_text(csv_content, encoding="utf-8")
    log.info("Table written", file=str(file_path), lines=len(csv_content.splitlines()))
