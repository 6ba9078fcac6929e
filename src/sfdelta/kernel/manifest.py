"""Manifest aggregation and canonical package.xml serialization.

The serialized document is byte-stable: member names are sorted
case-insensitively and type blocks are sorted by type name, so two groupings
with the same content always render identically regardless of the order in
which records were seen.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set, Tuple
from xml.sax.saxutils import escape

from .classify import MetadataRecord


PACKAGE_NAMESPACE = "http://soap.sforce.com/2006/04/metadata"
DEFAULT_API_VERSION = "63.0"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
INDENT = "    "


def member_sort_key(name: str) -> Tuple[str, str]:
    """Case-insensitive ordering; the raw name breaks ties deterministically."""
    return (name.lower(), name)


@dataclass
class ManifestGrouping:
    """Metadata type -> set of unique component names.

    ``types`` keeps first-seen order for callers that care about discovery
    order; serialization does not depend on it.
    """
    members: Dict[str, Set[str]] = field(default_factory=dict)
    types: List[str] = field(default_factory=list)

    def add(self, record: MetadataRecord) -> None:
        if record.type not in self.members:
            self.members[record.type] = set()
            self.types.append(record.type)
        self.members[record.type].add(record.name)

    def names(self, metadata_type: str) -> List[str]:
        """Sorted names for one type (empty if the type is absent)."""
        return sorted(self.members.get(metadata_type, set()), key=member_sort_key)

    def component_count(self) -> int:
        return sum(len(names) for names in self.members.values())

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, metadata_type: object) -> bool:
        return metadata_type in self.members

    def __eq__(self, other: object) -> bool:
        # Content equality; discovery order is not part of identity
        if not isinstance(other, ManifestGrouping):
            return NotImplemented
        return self.members == other.members


def aggregate(records: Iterable[MetadataRecord]) -> ManifestGrouping:
    """Group records by type, collapsing duplicate (type, name) pairs.

    Several files of one logical component (the .js/.html/.js-meta.xml files
    of an LWC bundle) classify to the same record and end up as one member.
    """
    grouping = ManifestGrouping()
    for record in records:
        grouping.add(record)
    return grouping


@dataclass(frozen=True)
class ManifestDocument:
    """Ordered (type, sorted names) blocks plus the API version."""
    blocks: Tuple[Tuple[str, Tuple[str, ...]], ...]
    version: str = DEFAULT_API_VERSION

    def to_xml(self) -> str:
        lines = [XML_DECLARATION, f'<Package xmlns="{PACKAGE_NAMESPACE}">']
        for metadata_type, names in self.blocks:
            lines.append(f"{INDENT}<types>")
            for name in names:
                lines.append(f"{INDENT * 2}<members>{escape(name)}</members>")
            lines.append(f"{INDENT * 2}<name>{escape(metadata_type)}</name>")
            lines.append(f"{INDENT}</types>")
        lines.append(f"{INDENT}<version>{escape(self.version)}</version>")
        lines.append("</Package>")
        return "\n".join(lines) + "\n"


def build_document(grouping: ManifestGrouping, version: str = DEFAULT_API_VERSION) -> ManifestDocument:
    """Apply the canonical ordering to a grouping."""
    blocks = tuple(
        (metadata_type, tuple(grouping.names(metadata_type)))
        for metadata_type in sorted(grouping.members, key=member_sort_key)
    )
    return ManifestDocument(blocks=blocks, version=version)


def serialize(grouping: ManifestGrouping, version: str = DEFAULT_API_VERSION) -> str:
    """Render a grouping as package.xml text."""
    return build_document(grouping, version).to_xml()
