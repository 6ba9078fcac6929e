"""Deploy pipeline: retrieve, extract, stamp, repackage, deploy.

    IDLE -> RETRIEVED -> EXTRACTED -> PATCHED -> PACKAGED -> DEPLOYED
                \\___________\\___________\\__________\\______-> FAILED

Every stage blocks until its external command or file operation finishes.
Nothing is retried: the first failure ends the run. The run executes inside
a :class:`~sfdelta.workspace.PipelineWorkspace`, so the working directory
and the manifest staged inside it are removed whichever terminal state is
reached. The user's own manifest under ``manifest/`` is never touched.
"""

import sys
from functools import partial
from pathlib import Path
from typing import Callable, List, Optional

from sfdelta.codes import PipelineState
from sfdelta.config import ProjectConfig
from sfdelta.contracts import PipelineResult
from sfdelta.errors import ArchiveError, DeploymentFailure, PipelineError, RetrievalFailure
from sfdelta.workspace import PipelineWorkspace, remove_path
from sfdelta._internal import sf_cli
from sfdelta._internal.archive import create_archive, extract_archive
from sfdelta._internal.cmd import CmdResult
from sfdelta._internal.manifest_patch import find_manifest, stamp_manifest_file


Retriever = Callable[[Path, Path], CmdResult]  # (manifest_path, target_dir)
Deployer = Callable[[Path], CmdResult]  # (archive_path)
Echo = Callable[[str], None]


def _quiet(_: str) -> None:
    pass


class DeployPipeline:
    """One deploy of a generated manifest under a change-set name.

    Args:
        config: Project configuration (paths, archive names, sf binary)
        manifest_xml: package.xml text produced by the serializer
        label: Change-set name stamped into the retrieved manifest
        retriever: Defaults to ``sf project retrieve start --target-metadata-dir``
        deployer: Defaults to ``sf project deploy start --metadata-dir``
        echo: Receives one progress line per transition (``print`` by default)
    """

    def __init__(
        self,
        config: ProjectConfig,
        manifest_xml: str,
        label: str,
        retriever: Optional[Retriever] = None,
        deployer: Optional[Deployer] = None,
        echo: Optional[Echo] = print,
    ):
        self.config = config
        self.manifest_xml = manifest_xml
        self.label = label
        self.retriever = retriever or partial(sf_cli.retrieve_metadata, config)
        self.deployer = deployer or partial(sf_cli.deploy_metadata, config)
        self.echo = echo or _quiet
        self.state = PipelineState.IDLE
        self.transitions: List[PipelineState] = [PipelineState.IDLE]

    def _advance(self, state: PipelineState, message: str) -> None:
        self.state = state
        self.transitions.append(state)
        self.echo(f"[OK] {message}")

    def retrieve(self) -> None:
        manifest_path = self.config.staged_manifest_path
        result = self.retriever(manifest_path, self.config.work_dir)
        if not result.ok:
            raise RetrievalFailure(result.exit_code, result.diagnostic(), result.command_str)
        self._advance(PipelineState.RETRIEVED, f"Retrieved components listed in {manifest_path.name}")

    def extract(self) -> None:
        archive_path = self.config.retrieved_archive_path
        if not archive_path.is_file():
            raise ArchiveError(f"Retrieve reported success but {archive_path.name} was not written")
        count = extract_archive(archive_path, self.config.extract_dir)
        remove_path(archive_path)
        self._advance(PipelineState.EXTRACTED, f"Extracted {count} files from {archive_path.name}")

    def patch(self) -> None:
        manifest_copy = find_manifest(self.config.extract_dir)
        stamp_manifest_file(manifest_copy, self.label)
        self._advance(PipelineState.PATCHED, f"Stamped change set '{self.label}' into {manifest_copy.name}")

    def package(self) -> None:
        archive_path = self.config.packaged_archive_path
        count = create_archive(self.config.extract_dir, archive_path)
        self._advance(PipelineState.PACKAGED, f"Packaged {count} files into {archive_path.name}")

    def deploy(self) -> None:
        result = self.deployer(self.config.packaged_archive_path)
        if not result.ok:
            raise DeploymentFailure(result.exit_code, result.diagnostic(), result.command_str)
        self._advance(PipelineState.DEPLOYED, f"Deployed change set '{self.label}'")

    def run(self) -> PipelineResult:
        """Run every stage in order; never raises for pipeline failures."""
        if self.state != PipelineState.IDLE:
            raise RuntimeError("A DeployPipeline instance can only be run once")

        stages = (self.retrieve, self.extract, self.patch, self.package, self.deploy)
        staged = self.config.staged_manifest_path
        try:
            with PipelineWorkspace(self.config.work_dir, staged, project_root=self.config.project_root):
                staged.write_text(self.manifest_xml, encoding="utf-8")
                for stage in stages:
                    stage()
        except (PipelineError, OSError) as e:
            return self._fail(e)

        return PipelineResult(
            ok=True,
            state=self.state,
            label=self.label,
            transitions=list(self.transitions),
        )

    def _fail(self, error: Exception) -> PipelineResult:
        failed_stage = self.state
        self.state = PipelineState.FAILED
        self.transitions.append(PipelineState.FAILED)
        print(f"Error: {error}", file=sys.stderr)
        print(f"  Pipeline stopped after: {failed_stage.value}", file=sys.stderr)
        return PipelineResult(
            ok=False,
            state=self.state,
            label=self.label,
            transitions=list(self.transitions),
            failed_stage=failed_stage,
            error=str(error),
        )
