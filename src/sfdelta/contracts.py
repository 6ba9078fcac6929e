"""Public models for the sfdelta package."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from sfdelta.codes import ChangeKind, PipelineState
from sfdelta.kernel.classify import MetadataRecord


class ChangedPath(BaseModel):
    """A path reported by git as added or modified."""
    path: str
    kind: ChangeKind = ChangeKind.MODIFIED

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('path')
    @classmethod
    def normalize_separators(cls, v: str) -> str:
        v = v.strip().replace("\\", "/")
        if not v:
            raise ValueError("Changed path must not be empty")
        return v


class ManifestBuild(BaseModel):
    """Outcome of classifying a set of changed paths."""
    records: List[MetadataRecord]  # One per classified path, in input order
    unclassified: List[str] = Field(default_factory=list)  # Paths no rule matched, in input order
    document: str  # package.xml text
    type_count: int = 0
    component_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.component_count == 0


class PipelineResult(BaseModel):
    """Terminal report of one deploy pipeline run."""
    ok: bool
    state: PipelineState  # DEPLOYED or FAILED
    label: str  # Change-set name stamped into the manifest
    transitions: List[PipelineState]  # States reached, in order, starting at IDLE
    failed_stage: Optional[PipelineState] = None  # Last state reached before failing
    error: Optional[str] = None
