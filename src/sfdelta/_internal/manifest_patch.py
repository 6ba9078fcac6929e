"""Stamp a change-set name into a retrieved package.xml.

The document is parsed and mutated as a tree: ``<fullName>`` becomes the
first child of the ``Package`` root. Anything that is not a namespaced
``Package`` document is rejected instead of being left unchanged.
"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List

from sfdelta.errors import ManifestPatchError
from sfdelta.kernel.manifest import INDENT, PACKAGE_NAMESPACE, XML_DECLARATION


MANIFEST_FILE_NAME = "package.xml"
_PACKAGE_TAG = f"{{{PACKAGE_NAMESPACE}}}Package"
_FULL_NAME_TAG = f"{{{PACKAGE_NAMESPACE}}}fullName"


def stamp_full_name(xml_text: str, label: str) -> str:
    """Return ``xml_text`` with ``<fullName>label</fullName>`` as the first child.

    An existing ``fullName`` element is moved to the front and overwritten.
    """
    if not label or not label.strip():
        raise ManifestPatchError("Change-set name must not be empty")

    try:
        root = ET.fromstring(xml_text.encode("utf-8"))
    except ET.ParseError as e:
        raise ManifestPatchError(f"Manifest is not well-formed XML: {e}") from e

    if root.tag != _PACKAGE_TAG:
        raise ManifestPatchError(
            f"Manifest root is {root.tag!r}, expected <Package xmlns=\"{PACKAGE_NAMESPACE}\">"
        )

    full_name = root.find(_FULL_NAME_TAG)
    if full_name is not None:
        root.remove(full_name)
    else:
        full_name = ET.Element(_FULL_NAME_TAG)
    full_name.text = label
    root.insert(0, full_name)

    ET.indent(root, space=INDENT)
    try:
        body = ET.tostring(root, encoding="unicode", default_namespace=PACKAGE_NAMESPACE)
    except ValueError as e:
        # Raised for elements outside the package namespace
        raise ManifestPatchError(f"Manifest contains non-namespaced elements: {e}") from e
    return f"{XML_DECLARATION}\n{body}\n"


def find_manifest(extract_dir: Path) -> Path:
    """Locate the shallowest package.xml under an extracted tree."""
    candidates: List[Path] = sorted(
        extract_dir.rglob(MANIFEST_FILE_NAME),
        key=lambda p: (len(p.relative_to(extract_dir).parts), p.as_posix()),
    )
    if not candidates:
        raise ManifestPatchError(f"No {MANIFEST_FILE_NAME} found under {extract_dir}")
    return candidates[0]


def stamp_manifest_file(manifest_path: Path, label: str) -> None:
    """Rewrite a package.xml on disk with the change-set name stamped in."""
    text = manifest_path.read_text(encoding="utf-8")
    manifest_path.write_text(stamp_full_name(text, label), encoding="utf-8")
