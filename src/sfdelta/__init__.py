"""sfdelta: Salesforce package.xml from git changes, plus a guarded deploy pipeline."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("sfdelta")
except PackageNotFoundError:
    __version__ = "dev"

from sfdelta.api import build_manifest, deploy_changes, retrieve_changes, write_manifest
from sfdelta.codes import ChangeKind, ExtractionStrategy, PipelineState, RuleCategory
from sfdelta.contracts import ChangedPath, ManifestBuild, PipelineResult
from sfdelta.kernel.classify import MetadataRecord, classify
from sfdelta.kernel.manifest import aggregate, serialize

__all__ = [
    "__version__",
    "build_manifest",
    "write_manifest",
    "retrieve_changes",
    "deploy_changes",
    "classify",
    "aggregate",
    "serialize",
    "MetadataRecord",
    "ChangedPath",
    "ManifestBuild",
    "PipelineResult",
    "ChangeKind",
    "ExtractionStrategy",
    "PipelineState",
    "RuleCategory",
]
