"""Data models for the vocabulary conjugator."""

import json
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RowClass(str, Enum):
    """Whether a row is expanded by the generator or passed through."""

    VERB = "verb"
    NON_VERB = "non_verb"


class VocabRow(BaseModel):
    """One parsed input row: a source-language term and its gloss."""

    model_config = ConfigDict(frozen=True)

    source: str
    gloss: str


class GenerationRequest(BaseModel):
    """A verb row queued for generation within a batch."""

    model_config = ConfigDict(frozen=True)

    row: VocabRow
    batch_index: int


class GenerationResult(BaseModel):
    """Raw generator output for one request, or the reason it failed."""

    request: GenerationRequest
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.text is not None


class OutputRow(BaseModel):
    """A row of the final table.

    Rows recovered leniently from generator output keep the original line in
    ``raw`` and are rendered verbatim.
    """

    model_config = ConfigDict(frozen=True)

    source: str
    gloss: str
    raw: Optional[str] = None

    def to_line(self) -> str:
        if self.raw is not None:
            return self.raw
        return f'"{self.source}","{self.gloss}"'


class BatchResult(BaseModel):
    """Results of one completed batch, in submission order."""

    batch_index: int
    total_batches: int
    results: List[GenerationResult]
    progress: float


class ProgressEvent(BaseModel):
    """A single frame of the progress stream."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    progress: float = Field(ge=0, le=100)
    csv_content: Optional[str] = Field(default=None, alias="csvContent")
    error: Optional[str] = None

    @classmethod
    def complete(cls, csv_content: str) -> "ProgressEvent":
        return cls(message="Processing complete!", progress=100, csv_content=csv_content)

    @classmethod
    def failed(cls, reason: str) -> "ProgressEvent":
        return cls(message="Error processing CSV", progress=0, error=reason)

    @property
    def is_terminal(self) -> bool:
        return self.csv_content is not None or self.error is not None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_frame(self) -> str:
        """Render the event as a server-sent-events ``data:`` frame."""
        return f"data: {json.dumps(self.to_payload(), ensure_ascii=False)}\n\n"
