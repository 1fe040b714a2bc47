"""PageBinder data models — typed contracts for the entire pipeline."""

from pagebinder.models.settings import (
    ConversionSettings,
    RasterPayload,
)
from pagebinder.models.job import (
    JobKind,
    JobState,
    StepTiming,
    ArtifactMetadata,
    VerificationResult,
    JobResult,
)
from pagebinder.models.project import (
    ProjectModel,
    ProjectCreate,
    ProjectUpdate,
    ProjectStats,
)

__all__ = [
    "ConversionSettings",
    "RasterPayload",
    "JobKind",
    "JobState",
    "StepTiming",
    "ArtifactMetadata",
    "VerificationResult",
    "JobResult",
    "ProjectModel",
    "ProjectCreate",
    "ProjectUpdate",
    "ProjectStats",
]
