"""Salesforce CLI (``sf``) command builders and runners.

Retrieval and deployment are opaque, blocking pass/fail calls: the caller
inspects ``CmdResult.exit_code`` and never retries.
"""

from pathlib import Path
from typing import List

from sfdelta.config import ProjectConfig
from .cmd import CmdResult, run_cmd, which_or_raise


def build_metadata_retrieve_command(config: ProjectConfig, manifest_path: Path, target_dir: Path) -> List[str]:
    """Retrieve the manifest's components as a metadata-format zip into ``target_dir``."""
    return [
        config.sf_bin, "project", "retrieve", "start",
        "--manifest", str(manifest_path),
        "--target-metadata-dir", str(target_dir),
        *config.retrieve_args,
    ]


def build_source_retrieve_command(config: ProjectConfig, manifest_path: Path) -> List[str]:
    """Retrieve the manifest's components into the project's source tree."""
    return [
        config.sf_bin, "project", "retrieve", "start",
        "--manifest", str(manifest_path),
        *config.retrieve_args,
    ]


def build_deploy_command(config: ProjectConfig, archive_path: Path) -> List[str]:
    """Deploy a metadata-format zip as a single unit."""
    return [
        config.sf_bin, "project", "deploy", "start",
        "--metadata-dir", str(archive_path),
        *config.deploy_args,
    ]


def _run(config: ProjectConfig, cmd: List[str]) -> CmdResult:
    cmd[0] = which_or_raise(config.sf_bin)
    return run_cmd(cmd, cwd=config.project_root)


def retrieve_metadata(config: ProjectConfig, manifest_path: Path, target_dir: Path) -> CmdResult:
    return _run(config, build_metadata_retrieve_command(config, manifest_path, target_dir))


def retrieve_source(config: ProjectConfig, manifest_path: Path) -> CmdResult:
    return _run(config, build_source_retrieve_command(config, manifest_path))


def deploy_metadata(config: ProjectConfig, archive_path: Path) -> CmdResult:
    return _run(config, build_deploy_command(config, archive_path))
