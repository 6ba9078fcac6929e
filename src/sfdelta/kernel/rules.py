"""Classification rules: declarative path -> metadata type mapping.

A rule names a marker directory segment, an optional file suffix, the
metadata type it produces and the strategy used to extract the component
name. Rules are evaluated in category order (see ``CATEGORY_ORDER``) and,
within a category, in declaration order. The first rule that yields a name
wins, so specific suffixes must be declared before generic ones that would
also match. ``RuleSet`` rejects tables where a rule can never be reached.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from sfdelta.codes import CATEGORY_ORDER, ExtractionStrategy, RuleCategory


# Strategies that strip an exact suffix from the file name
SUFFIX_STRATEGIES = frozenset({
    ExtractionStrategy.STRIP_SUFFIX,
    ExtractionStrategy.OBJECT_CHILD,
    ExtractionStrategy.FOLDER_RELATIVE,
})

# Strategies that accept a file at any depth below the marker
OPEN_STRATEGIES = frozenset({
    ExtractionStrategy.STRIP_SUFFIX,
    ExtractionStrategy.FOLDER_RELATIVE,
    ExtractionStrategy.FOLDER_NAME_BEFORE_DOT,
})


class ClassificationRule(BaseModel):
    """A single marker/suffix -> metadata type rule."""
    category: RuleCategory
    marker: str  # Directory segment, e.g. "classes", "lwc", "fields"
    metadata_type: str  # e.g. "ApexClass"
    strategy: ExtractionStrategy
    suffix: Optional[str] = None  # Exact file suffix, e.g. ".cls", ".field-meta.xml"
    parent: Optional[str] = None  # Ancestor segment for object-child rules, e.g. "objects"

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('marker', 'parent')
    @classmethod
    def validate_segment(cls, v: Optional[str]) -> Optional[str]:
        """Markers are single path segments."""
        if v is None:
            return v
        if not v or "/" in v or "\\" in v:
            raise ValueError(f"Marker '{v}' must be a single, non-empty path segment")
        return v

    @model_validator(mode="after")
    def validate_strategy_fields(self) -> "ClassificationRule":
        if self.strategy in SUFFIX_STRATEGIES and not self.suffix:
            raise ValueError(f"Rule for {self.metadata_type} needs a suffix for strategy {self.strategy.value}")
        if self.strategy == ExtractionStrategy.OBJECT_CHILD and not self.parent:
            raise ValueError(f"Rule for {self.metadata_type} needs a parent segment (e.g. 'objects')")
        return self

    def shadows(self, other: "ClassificationRule") -> bool:
        """True if every path ``other`` accepts is already claimed by this rule.

        Only rules on the same marker can collide, and only when this rule's
        shape is at least as permissive as the other's. A rule without a suffix
        claims every file under its marker; otherwise a rule claims the paths of
        a later rule whose suffix ends with its own (".field-meta.xml" ends
        with "-meta.xml").
        """
        if self.marker != other.marker:
            return False
        if self.strategy == other.strategy:
            if self.parent != other.parent:
                return False
        elif self.strategy not in OPEN_STRATEGIES:
            return False
        if self.suffix is None:
            return True
        return other.suffix is not None and other.suffix.endswith(self.suffix)

    def __str__(self) -> str:
        suffix = self.suffix or "*"
        return f"{self.category.value}:{self.marker}/{suffix}->{self.metadata_type}"


class RuleSet(BaseModel):
    """Ordered, immutable collection of classification rules.

    Rules are stably reordered by category so category precedence holds even
    when a caller declares them out of order.
    """
    rules: Tuple[ClassificationRule, ...]

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator('rules')
    @classmethod
    def order_by_category(cls, v: Tuple[ClassificationRule, ...]) -> Tuple[ClassificationRule, ...]:
        rank = {category: i for i, category in enumerate(CATEGORY_ORDER)}
        return tuple(sorted(v, key=lambda rule: rank[rule.category]))

    @model_validator(mode="after")
    def reject_unreachable_rules(self) -> "RuleSet":
        for i, later in enumerate(self.rules):
            for earlier in self.rules[:i]:
                if earlier.shadows(later):
                    raise ValueError(
                        f"Rule {later} is unreachable: shadowed by earlier rule {earlier}. "
                        "Declare the more specific suffix first."
                    )
        return self

    def __len__(self) -> int:
        return len(self.rules)

    def by_category(self, category: RuleCategory) -> Tuple[ClassificationRule, ...]:
        return tuple(rule for rule in self.rules if rule.category == category)


def _single(marker: str, suffix: str, metadata_type: str) -> ClassificationRule:
    return ClassificationRule(
        category=RuleCategory.SINGLE_FILE,
        marker=marker,
        suffix=suffix,
        metadata_type=metadata_type,
        strategy=ExtractionStrategy.STRIP_SUFFIX,
    )


def _bundle(marker: str, metadata_type: str) -> ClassificationRule:
    return ClassificationRule(
        category=RuleCategory.BUNDLE,
        marker=marker,
        metadata_type=metadata_type,
        strategy=ExtractionStrategy.BUNDLE_FOLDER,
    )


def _object_child(marker: str, suffix: str, metadata_type: str) -> ClassificationRule:
    return ClassificationRule(
        category=RuleCategory.OBJECT_CHILD,
        marker=marker,
        suffix=suffix,
        metadata_type=metadata_type,
        strategy=ExtractionStrategy.OBJECT_CHILD,
        parent="objects",
    )


def _folder(marker: str, suffix: str, metadata_type: str) -> ClassificationRule:
    return ClassificationRule(
        category=RuleCategory.FOLDER,
        marker=marker,
        suffix=suffix,
        metadata_type=metadata_type,
        strategy=ExtractionStrategy.FOLDER_RELATIVE,
    )


def _before_dot(marker: str, metadata_type: str) -> ClassificationRule:
    return ClassificationRule(
        category=RuleCategory.SPECIAL,
        marker=marker,
        metadata_type=metadata_type,
        strategy=ExtractionStrategy.FOLDER_NAME_BEFORE_DOT,
    )


# Only the source file of a class/trigger is mapped; "Foo.cls-meta.xml" matches nothing
DEFAULT_RULES = RuleSet(rules=(
    _single("classes", ".cls", "ApexClass"),
    _single("triggers", ".trigger", "ApexTrigger"),
    _single("pages", ".page", "ApexPage"),
    _single("components", ".component", "ApexComponent"),
    _single("customMetadata", ".md-meta.xml", "CustomMetadata"),
    _single("flexipages", ".flexipage-meta.xml", "FlexiPage"),
    _single("objects", ".object-meta.xml", "CustomObject"),
    _single("layouts", ".layout-meta.xml", "Layout"),
    _single("permissionsets", ".permissionset-meta.xml", "PermissionSet"),
    _single("permissionsetgroups", ".permissionsetgroup-meta.xml", "PermissionSetGroup"),
    _single("profiles", ".profile-meta.xml", "Profile"),
    _single("flows", ".flow-meta.xml", "Flow"),
    _single("tabs", ".tab-meta.xml", "CustomTab"),
    _single("applications", ".app-meta.xml", "CustomApplication"),
    _single("labels", ".labels-meta.xml", "CustomLabels"),
    _single("globalValueSets", ".globalValueSet-meta.xml", "GlobalValueSet"),
    _single("customPermissions", ".customPermission-meta.xml", "CustomPermission"),
    _single("quickActions", ".quickAction-meta.xml", "QuickAction"),
    _single("namedCredentials", ".namedCredential-meta.xml", "NamedCredential"),
    _single("remoteSiteSettings", ".remoteSite-meta.xml", "RemoteSiteSetting"),

    _bundle("lwc", "LightningComponentBundle"),
    _bundle("aura", "AuraDefinitionBundle"),

    _object_child("fields", ".field-meta.xml", "CustomField"),
    _object_child("validationRules", ".validationRule-meta.xml", "ValidationRule"),
    _object_child("recordTypes", ".recordType-meta.xml", "RecordType"),
    _object_child("listViews", ".listView-meta.xml", "ListView"),
    _object_child("webLinks", ".webLink-meta.xml", "WebLink"),
    _object_child("compactLayouts", ".compactLayout-meta.xml", "CompactLayout"),
    _object_child("fieldSets", ".fieldSet-meta.xml", "FieldSet"),
    _object_child("businessProcesses", ".businessProcess-meta.xml", "BusinessProcess"),

    _folder("reports", ".reportFolder-meta.xml", "Report"),
    _folder("reports", ".report-meta.xml", "Report"),
    _folder("dashboards", ".dashboardFolder-meta.xml", "Dashboard"),
    _folder("dashboards", ".dashboard-meta.xml", "Dashboard"),
    _folder("email", ".emailFolder-meta.xml", "EmailTemplate"),
    _folder("email", ".email-meta.xml", "EmailTemplate"),
    _folder("email", ".email", "EmailTemplate"),

    _before_dot("staticresources", "StaticResource"),
    _before_dot("contentassets", "ContentAsset"),
))
