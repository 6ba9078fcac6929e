"""Path classification: changed file path -> metadata record.

Pure functions only. A path that matches no rule yields ``None``; callers
count such paths as unclassified rather than treating them as errors.
A path that reaches a rule's marker and suffix but not the expected shape
(e.g. a field file with no ``objects/<Object>`` ancestor) does not match
that rule and falls through to the remaining rules.
"""

from typing import Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from sfdelta.codes import ExtractionStrategy
from .rules import DEFAULT_RULES, ClassificationRule, RuleSet


class MetadataRecord(BaseModel):
    """A classified component: metadata type plus fully qualified name."""
    type: str  # e.g. "ApexClass"
    name: str  # e.g. "Foo", "Account.Industry__c", "Sales/Pipeline"

    model_config = ConfigDict(frozen=True, extra="forbid")


def split_path(path: str) -> List[str]:
    """Split a repository path into segments (``\\`` treated as ``/``)."""
    normalized = path.strip().replace("\\", "/")
    return [part for part in normalized.split("/") if part and part != "."]


def _marker_index(rule: ClassificationRule, parts: List[str]) -> Optional[int]:
    """Index of the first directory segment equal to the rule marker."""
    directories = parts[:-1]
    if rule.marker not in directories:
        return None
    return directories.index(rule.marker)


def _strip(file_name: str, suffix: Optional[str]) -> Optional[str]:
    if suffix is None:
        return file_name
    if not file_name.endswith(suffix):
        return None
    return file_name[:-len(suffix)] or None


def _strip_suffix(rule: ClassificationRule, parts: List[str], idx: int) -> Optional[str]:
    return _strip(parts[-1], rule.suffix)


def _bundle_folder(rule: ClassificationRule, parts: List[str], idx: int) -> Optional[str]:
    # A file directly inside the marker (lwc/jsconfig.json) belongs to no bundle
    if len(parts) - idx < 3:
        return None
    if rule.suffix is not None and not parts[-1].endswith(rule.suffix):
        return None
    return parts[idx + 1]


def _object_child(rule: ClassificationRule, parts: List[str], idx: int) -> Optional[str]:
    # Expected shape: <parent>/<Object>/<marker>/<File><suffix>
    if idx < 2 or idx != len(parts) - 2:
        return None
    if parts[idx - 2] != rule.parent:
        return None
    child = _strip(parts[-1], rule.suffix)
    if child is None:
        return None
    return f"{parts[idx - 1]}.{child}"


def _folder_relative(rule: ClassificationRule, parts: List[str], idx: int) -> Optional[str]:
    relative = parts[idx + 1:]
    leaf = _strip(relative[-1], rule.suffix)
    if leaf is None:
        return None
    return "/".join(relative[:-1] + [leaf])


def _folder_name_before_dot(rule: ClassificationRule, parts: List[str], idx: int) -> Optional[str]:
    if rule.suffix is not None and not parts[-1].endswith(rule.suffix):
        return None
    return parts[idx + 1].split(".", 1)[0] or None


_EXTRACTORS: Dict[ExtractionStrategy, Callable[[ClassificationRule, List[str], int], Optional[str]]] = {
    ExtractionStrategy.STRIP_SUFFIX: _strip_suffix,
    ExtractionStrategy.BUNDLE_FOLDER: _bundle_folder,
    ExtractionStrategy.OBJECT_CHILD: _object_child,
    ExtractionStrategy.FOLDER_RELATIVE: _folder_relative,
    ExtractionStrategy.FOLDER_NAME_BEFORE_DOT: _folder_name_before_dot,
}


def match_rule(rule: ClassificationRule, parts: List[str]) -> Optional[str]:
    """Return the component name if ``rule`` accepts the path segments."""
    idx = _marker_index(rule, parts)
    if idx is None:
        return None
    return _EXTRACTORS[rule.strategy](rule, parts, idx)


def classify(path: str, rules: RuleSet = DEFAULT_RULES) -> Optional[MetadataRecord]:
    """Classify a single changed path.

    Rules are tried in precedence order and the first one that yields a name
    wins.

    Args:
        path: Repository-relative path, e.g. ``force-app/main/default/classes/Foo.cls``
        rules: Rule set to evaluate (defaults to ``DEFAULT_RULES``)

    Returns:
        MetadataRecord, or None if no rule matches
    """
    parts = split_path(path)
    if len(parts) < 2:
        return None
    for rule in rules.rules:
        name = match_rule(rule, parts)
        if name:
            return MetadataRecord(type=rule.metadata_type, name=name)
    return None


def classify_all(paths, rules: RuleSet = DEFAULT_RULES) -> List[Optional[MetadataRecord]]:
    """Classify paths in order; unmatched paths map to None."""
    return [classify(path, rules) for path in paths]
