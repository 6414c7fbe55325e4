"""Data contracts shared by the pipeline stages, the CLI and the HTTP shell."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, List, Literal, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config, settings

T = TypeVar("T")

BoundingBox = Tuple[float, float, float, float]

Verbosity = Literal["concise", "extensive"]
DetectionMode = Literal["llm"]
RunStatus = Literal["ok", "empty", "failed", "cancelled"]


class Detection(BaseModel):
    """One perceived UI element."""

    model_config = ConfigDict(frozen=True)

    kind: str = Field(..., description="Component category, e.g. button, input")
    bounding_box: BoundingBox = Field(
        (0.0, 0.0, 0.0, 0.0),
        description="(x, y, width, height) in source-image pixels",
    )
    confidence: float = Field(1.0, ge=0.0, le=1.0, description="Advisory only")
    label: str = Field(..., description="Visible text or description")
    location: str = Field("", description="Model's free-text location")

    @field_validator("bounding_box")
    @classmethod
    def _non_negative_size(cls, value: BoundingBox) -> BoundingBox:
        if value[2] < 0 or value[3] < 0:
            raise ValueError("bounding box width and height must be >= 0")
        return value

    @property
    def has_area(self) -> bool:
        return self.bounding_box[2] > 0 and self.bounding_box[3] > 0


class StageStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    FATAL = "fatal"


class StageReport(BaseModel):
    """Serializable outcome of one pipeline stage."""

    stage: str
    status: StageStatus
    error: Optional[str] = None
    duration_ms: int = 0


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """Tagged stage outcome: ok(value) | degraded(sentinel value) | fatal(error).

    Degraded results still carry a usable value so the pipeline can keep
    moving; fatal results carry only the error.
    """

    stage: str
    status: StageStatus
    value: Optional[T] = None
    error: Optional[str] = None
    duration_ms: int = 0

    @classmethod
    def ok(cls, stage: str, value: T, duration_ms: int = 0) -> "StageResult[T]":
        return cls(stage, StageStatus.OK, value, None, duration_ms)

    @classmethod
    def degraded(
        cls, stage: str, value: T, error: str, duration_ms: int = 0,
    ) -> "StageResult[T]":
        return cls(stage, StageStatus.DEGRADED, value, error, duration_ms)

    @classmethod
    def fatal(cls, stage: str, error: str, duration_ms: int = 0) -> "StageResult[T]":
        return cls(stage, StageStatus.FATAL, None, error, duration_ms)

    @property
    def is_ok(self) -> bool:
        return self.status is StageStatus.OK

    def report(self) -> StageReport:
        return StageReport(
            stage=self.stage,
            status=self.status,
            error=self.error,
            duration_ms=self.duration_ms,
        )


class PipelineConfig(BaseModel):
    """Run-scoped configuration, immutable for the duration of one run."""

    model_config = ConfigDict(frozen=True)

    detection_cap: int = Field(settings.MAX_UI_COMPONENTS, ge=1)
    detection_mode: DetectionMode = "llm"
    verbosity: Verbosity = "concise"
    provider: str = config.MODEL_PROVIDER
    model: Optional[str] = config.MODEL_NAME or None

    detection_temperature: float = Field(settings.DETECTION_TEMPERATURE, ge=0.0, le=2.0)
    analysis_temperature: float = Field(settings.ANALYSIS_TEMPERATURE, ge=0.0, le=2.0)
    design_temperature: float = Field(settings.DESIGN_TEMPERATURE, ge=0.0, le=2.0)
    synthesis_temperature: float = Field(settings.SYNTHESIS_TEMPERATURE, ge=0.0, le=2.0)

    min_confidence: float = Field(settings.MIN_CONFIDENCE, ge=0.0, le=1.0)
    crop_components: bool = settings.CROP_COMPONENTS
    component_concurrency: int = Field(settings.COMPONENT_CONCURRENCY, ge=1)


class AnalysisResult(BaseModel):
    """Pipeline output. Every field is always present."""

    design_summary: str
    component_summaries: List[str] = Field(default_factory=list)
    final_prompt: str
    activity_summary: str = ""
    detections: List[Detection] = Field(default_factory=list)
    status: RunStatus = "ok"
    error: Optional[str] = None
    stages: List[StageReport] = Field(default_factory=list)

    @classmethod
    def sentinel(
        cls,
        text: str,
        status: RunStatus,
        *,
        error: Optional[str] = None,
        detections: Optional[List[Detection]] = None,
        stages: Optional[List[StageReport]] = None,
    ) -> "AnalysisResult":
        """Well-formed result whose text fields all carry ``text``."""
        return cls(
            design_summary=text,
            component_summaries=[text],
            final_prompt=text,
            activity_summary=text,
            detections=detections or [],
            status=status,
            error=error,
            stages=stages or [],
        )
