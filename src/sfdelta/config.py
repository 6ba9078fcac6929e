"""Project configuration, resolved once at startup and passed explicitly.

Resolution order for each setting (later wins):

1. defaults on :class:`ProjectConfig`
2. ``sourceApiVersion`` from ``<project_root>/sfdx-project.json``
3. ``SFDELTA_*`` environment variables
4. explicit arguments to :func:`load_config`
"""

import json
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator

from sfdelta.kernel.manifest import DEFAULT_API_VERSION


SFDX_PROJECT_FILE = "sfdx-project.json"
STAGED_MANIFEST_NAME = "package.xml"

# Environment variable -> ProjectConfig field
ENV_OVERRIDES: Dict[str, str] = {
    "SFDELTA_API_VERSION": "api_version",
    "SFDELTA_SF_BIN": "sf_bin",
    "SFDELTA_WORK_DIR": "work_dir_name",
    "SFDELTA_MANIFEST_NAME": "manifest_name",
}


class ProjectConfig(BaseModel):
    """Where sfdelta reads and writes, and how it calls the sf CLI."""
    project_root: Path
    manifest_dir: str = "manifest"
    manifest_name: str = "package-diff.xml"
    work_dir_name: str = ".sfdelta"
    api_version: str = DEFAULT_API_VERSION
    sf_bin: str = "sf"
    retrieved_archive_name: str = "unpackaged.zip"  # Written by `sf project retrieve start --target-metadata-dir`
    packaged_archive_name: str = "deploy.zip"
    retrieve_args: Tuple[str, ...] = ()
    deploy_args: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('api_version')
    @classmethod
    def validate_api_version(cls, v: str) -> str:
        """API versions look like '63.0'."""
        major, sep, minor = v.partition(".")
        if not (major.isdigit() and sep and minor.isdigit()):
            raise ValueError(f"API version '{v}' must look like '63.0'")
        return v

    @field_validator(
        'manifest_dir', 'manifest_name', 'work_dir_name',
        'retrieved_archive_name', 'packaged_archive_name',
    )
    @classmethod
    def validate_path_segment(cls, v: str) -> str:
        """Each name is a single segment directly under project_root."""
        if v in ("", ".", "..") or "/" in v or "\\" in v or Path(v).is_absolute():
            raise ValueError(f"'{v}' must be a single file or directory name, not a path")
        return v

    @property
    def manifest_path(self) -> Path:
        return self.project_root / self.manifest_dir / self.manifest_name

    @property
    def work_dir(self) -> Path:
        return self.project_root / self.work_dir_name

    @property
    def retrieved_archive_path(self) -> Path:
        return self.work_dir / self.retrieved_archive_name

    @property
    def staged_manifest_path(self) -> Path:
        """Manifest copy used by retrieve and deploy runs; lives and dies with work_dir."""
        return self.work_dir / STAGED_MANIFEST_NAME

    @property
    def extract_dir(self) -> Path:
        return self.work_dir / "extracted"

    @property
    def packaged_archive_path(self) -> Path:
        return self.work_dir / self.packaged_archive_name


def read_source_api_version(project_root: Path) -> Optional[str]:
    """Return ``sourceApiVersion`` from sfdx-project.json, if declared."""
    project_file = project_root / SFDX_PROJECT_FILE
    if not project_file.is_file():
        return None
    with open(project_file, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {project_file}: {e}") from e
    version = data.get("sourceApiVersion") if isinstance(data, dict) else None
    return str(version) if version else None


def load_config(
    project_root: Path,
    api_version: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProjectConfig:
    """Build the configuration for one invocation.

    Args:
        project_root: Root of the Salesforce DX project (also the git work tree)
        api_version: Explicit manifest API version (highest precedence)
        environ: Environment mapping (defaults to ``os.environ``)

    Returns:
        ProjectConfig
    """
    root = Path(project_root).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Project root not found: {root}")

    env = os.environ if environ is None else environ
    values: Dict[str, object] = {"project_root": root}

    source_version = read_source_api_version(root)
    if source_version:
        values["api_version"] = source_version

    for var, field_name in ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw:
            values[field_name] = raw

    if api_version:
        values["api_version"] = api_version

    return ProjectConfig(**values)
