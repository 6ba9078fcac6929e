"""Public API for sfdelta.

High-level functions that return complete, structured results. The CLI is a
thin layer over these.
"""

from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from sfdelta.config import ProjectConfig
from sfdelta.contracts import ChangedPath, ManifestBuild, PipelineResult
from sfdelta.errors import RetrievalFailure
from sfdelta.kernel.classify import MetadataRecord, classify
from sfdelta.kernel.manifest import DEFAULT_API_VERSION, aggregate, serialize
from sfdelta.kernel.rules import DEFAULT_RULES, RuleSet
from sfdelta.pipeline import Deployer, DeployPipeline, Echo, Retriever
from sfdelta.workspace import PipelineWorkspace
from sfdelta._internal import git, sf_cli
from sfdelta._internal.cmd import CmdResult


PathInput = Union[str, ChangedPath]


def _path_of(item: PathInput) -> str:
    """Normalize path input to a plain path string."""
    return item.path if isinstance(item, ChangedPath) else item


def build_manifest(
    paths: Iterable[PathInput],
    rules: RuleSet = DEFAULT_RULES,
    api_version: str = DEFAULT_API_VERSION,
) -> ManifestBuild:
    """Classify changed paths and render the manifest.

    Paths that match no rule are not errors; they are listed in
    ``ManifestBuild.unclassified`` so callers can report a count.

    Args:
        paths: Changed paths (strings or ChangedPath)
        rules: Classification rules
        api_version: Value of the manifest's <version> element

    Returns:
        ManifestBuild with records, unclassified paths and package.xml text
    """
    records: List[MetadataRecord] = []
    unclassified: List[str] = []
    for item in paths:
        path = _path_of(item)
        record = classify(path, rules)
        if record is None:
            unclassified.append(path)
        else:
            records.append(record)

    grouping = aggregate(records)
    return ManifestBuild(
        records=records,
        unclassified=unclassified,
        document=serialize(grouping, api_version),
        type_count=len(grouping),
        component_count=grouping.component_count(),
    )


def write_manifest(build: ManifestBuild, manifest_path: Path) -> Path:
    """Write the manifest document, creating parent directories."""
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    manifest_path.write_text(build.document, encoding="utf-8")
    return manifest_path


def collect_changed_paths(config: ProjectConfig, target_branch: str) -> Tuple[str, List[ChangedPath]]:
    """Return (current branch, paths added/modified since diverging from target_branch)."""
    current = git.get_current_branch(config.project_root)
    changed = git.get_changed_paths(config.project_root, target_branch, current_ref=current)
    return current, changed


def retrieve_changes(
    config: ProjectConfig,
    build: ManifestBuild,
    retriever: Optional[Callable[[Path], CmdResult]] = None,
) -> CmdResult:
    """Retrieve the manifest's components into the project source tree.

    The manifest is staged inside the working directory and only exists for
    the duration of the call; a manifest previously written by
    :func:`write_manifest` is left as it is.

    Raises:
        RetrievalFailure: the retrieve command exited non-zero
    """
    retriever = retriever or partial(sf_cli.retrieve_source, config)
    staged = config.staged_manifest_path
    with PipelineWorkspace(config.work_dir, staged, project_root=config.project_root):
        write_manifest(build, staged)
        result = retriever(staged)
        if not result.ok:
            raise RetrievalFailure(result.exit_code, result.diagnostic(), result.command_str)
    return result


def deploy_changes(
    config: ProjectConfig,
    build: ManifestBuild,
    label: str,
    retriever: Optional[Retriever] = None,
    deployer: Optional[Deployer] = None,
    echo: Optional[Echo] = print,
) -> PipelineResult:
    """Run the full deploy pipeline for a manifest under a change-set name."""
    pipeline = DeployPipeline(
        config,
        build.document,
        label,
        retriever=retriever,
        deployer=deployer,
        echo=echo,
    )
    return pipeline.run()
