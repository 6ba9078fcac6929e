"""Enum constants for sfdelta.

These constants prevent stringly-typed rule categories, extraction
strategies and pipeline states from drifting between modules.
"""

from enum import Enum


class ChangeKind(str, Enum):
    """Git change status of a path (only adds and modifications are consumed)."""

    ADDED = "A"
    MODIFIED = "M"


class RuleCategory(str, Enum):
    """Classification rule categories, listed in precedence order."""

    SINGLE_FILE = "SINGLE_FILE"
    BUNDLE = "BUNDLE"
    OBJECT_CHILD = "OBJECT_CHILD"
    FOLDER = "FOLDER"
    SPECIAL = "SPECIAL"


class ExtractionStrategy(str, Enum):
    """How a component name is derived from a matched path."""

    STRIP_SUFFIX = "STRIP_SUFFIX"  # Foo.cls -> Foo
    BUNDLE_FOLDER = "BUNDLE_FOLDER"  # lwc/myCmp/myCmp.js -> myCmp
    OBJECT_CHILD = "OBJECT_CHILD"  # objects/Account/fields/Foo__c.field-meta.xml -> Account.Foo__c
    FOLDER_RELATIVE = "FOLDER_RELATIVE"  # reports/Sales/Pipeline.report-meta.xml -> Sales/Pipeline
    FOLDER_NAME_BEFORE_DOT = "FOLDER_NAME_BEFORE_DOT"  # staticresources/Logo.resource-meta.xml -> Logo


class PipelineState(str, Enum):
    """States of the deploy pipeline."""

    IDLE = "IDLE"
    RETRIEVED = "RETRIEVED"
    EXTRACTED = "EXTRACTED"
    PATCHED = "PATCHED"
    PACKAGED = "PACKAGED"
    DEPLOYED = "DEPLOYED"
    FAILED = "FAILED"


CATEGORY_ORDER = (
    RuleCategory.SINGLE_FILE,
    RuleCategory.BUNDLE,
    RuleCategory.OBJECT_CHILD,
    RuleCategory.FOLDER,
    RuleCategory.SPECIAL,
)
