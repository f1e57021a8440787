"""Data models for scriptmill."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, model_validator

NO_TRANSCRIPT_PLACEHOLDER = "[no transcript available]"


class VideoReference(BaseModel):
    """A raw input string and the video ID extracted from it."""

    model_config = ConfigDict(frozen=True)

    raw: str
    video_id: str | None = None

    @property
    def resolved(self) -> bool:
        return self.video_id is not None

    @property
    def source_url(self) -> str:
        """The URL shown next to this video in the aggregated document."""
        raw = self.raw.strip()
        if "/" in raw or self.video_id is None:
            return raw
        return f"https://www.youtube.com/watch?v={self.video_id}"


class TranscriptSegment(BaseModel):
    """A single timed span of spoken text."""

    text: str
    start: float | None = None
    duration: float | None = None


class Transcript(BaseModel):
    """Outcome of transcript acquisition for one video."""

    model_config = ConfigDict(frozen=True)

    video_id: str
    source_url: str
    text: str = ""
    status: Literal["ok", "unavailable"] = "ok"
    reason: str | None = None
    provider: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


class DocumentBlock(BaseModel):
    """One labeled per-video block of an aggregated document."""

    model_config = ConfigDict(frozen=True)

    index: int
    source_url: str
    text: str

    @property
    def header(self) -> str:
        return f"--- Video {self.index}: {self.source_url} ---"

    def render(self) -> str:
        return f"{self.header}\n{self.text}"


class AggregatedDocument(BaseModel):
    """Concatenated transcripts, ready to send to the rewrite stage."""

    model_config = ConfigDict(frozen=True)

    blocks: tuple[DocumentBlock, ...]
    text: str
    total_length: int
    truncated: bool = False


class RewriteRequest(BaseModel):
    """A single chat completion request."""

    system_prompt: str
    prompt_text: str
    model: str
    temperature: float = 0.7
    max_output_tokens: int = 4000


class RewriteResult(BaseModel):
    """Outcome of the rewrite stage.

    ``script_text`` is set when the model produced a script, ``degraded_text``
    when it could not be called. Never both, never neither.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["ok", "degraded"]
    script_text: str | None = None
    degraded_text: str | None = None
    model: str | None = None
    reason: str | None = None

    @model_validator(mode="after")
    def _check_exactly_one_text(self) -> "RewriteResult":
        if self.status == "ok":
            if self.script_text is None or self.degraded_text is not None:
                msg = "ok results carry script_text only"
                raise ValueError(msg)
        elif self.degraded_text is None or self.script_text is not None:
            msg = "degraded results carry degraded_text only"
            raise ValueError(msg)
        return self

    @property
    def text(self) -> str:
        return self.script_text if self.script_text is not None else str(
            self.degraded_text
        )


class PipelineOutcome(BaseModel):
    """Final result of a pipeline run plus batch bookkeeping."""

    result: RewriteResult
    input_count: int
    resolved_count: int
    dropped_count: int
    raw_transcript_length: int
    transcripts: list[Transcript]
