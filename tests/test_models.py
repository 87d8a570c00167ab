"""Tests for data models."""

import json

import pytest
from pydantic import ValidationError

from vocab_conjugator.models import (
    GenerationRequest,
    GenerationResult,
    OutputRow,
    ProgressEvent,
    VocabRow,
)


def test_vocab_row_equality_by_value():
    """Rows with the same fields are equal and hashable."""
    a = VocabRow(source="читать", gloss="to read")
    b = VocabRow(source="читать", gloss="to read")

    assert a == b
    assert len({a, b}) == 1


def test_vocab_row_is_immutable():
    row = VocabRow(source="читать", gloss="to read")

    with pytest.raises(ValidationError):
        row.source = "писать"


def test_generation_result_ok():
    request = GenerationRequest(row=VocabRow(source="читать", gloss="to read"), batch_index=0)

    assert GenerationResult(request=request, text='"a","b"').ok
    assert not GenerationResult(request=request, error="timeout").ok
    assert not GenerationResult(request=request).ok


def test_output_row_rendering():
    assert OutputRow(source="я читаю", gloss="I read").to_line() == '"я читаю","I read"'

    raw = '"я чита́ю","I read'
    assert OutputRow(source="я чита́ю", gloss="I read", raw=raw).to_line() == raw


def test_progress_event_frame():
    """Intermediate frames carry only message and progress."""
    event = ProgressEvent(message="Parsing CSV file...", progress=10)
    frame = event.to_frame()

    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert json.loads(frame[len("data: "):]) == {"message": "Parsing CSV file...", "progress": 10}
    assert not event.is_terminal


def test_progress_event_complete():
    event = ProgressEvent.complete('"громкий","loud"')
    payload = event.to_payload()

    assert payload == {"message": "Processing complete!", "progress": 100, "csvContent": '"громкий","loud"'}
    assert event.is_terminal


def test_progress_event_failed():
    event = ProgressEvent.failed("No data found in CSV")
    payload = event.to_payload()

    assert payload["progress"] == 0
    assert payload["error"] == "No data found in CSV"
    assert "csvContent" not in payload
    assert event.is_terminal


def test_progress_event_frame_keeps_cyrillic():
    frame = ProgressEvent.complete('"громкий","loud"').to_frame()

    assert "громкий" in frame


def test_progress_out_of_range():
    with pytest.raises(ValidationError):
        ProgressEvent(message="too far", progress=101)
