"""
Material catalog and registry.

The catalog is a GDML materials document (isotopes, elements, materials),
loaded once from a URL or a local file before any structure is built. The
registry maps the symbolic names used by the detector description ("Copper",
"Gas", ...) to catalog materials ("G4_Cu", "G4_Ar", ...).

Catalog identifiers the document does not define are treated as missing;
references *inside* catalog definitions that are not defined there (Geant4
NIST built-ins) are left for Geant4 to resolve.
"""

from __future__ import annotations

import copy
import logging
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

import requests

from gdml_builder.contracts import MaterialRef
from gdml_builder.errors import DuplicateNameError, UnknownMaterialError, UnknownReferenceError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = (
    "https://raw.githubusercontent.com/rest-for-physics/materials/main/materials.xml"
)

CATALOG_TAGS = ("isotope", "element", "material")


def _local_tag(tag: str) -> str:
    return tag.split("}", 1)[-1]


def _strip_namespaces(element: ET.Element) -> ET.Element:
    for node in element.iter():
        node.tag = _local_tag(node.tag)
    return element


@dataclass(frozen=True)
class MaterialHandle:
    """Opaque handle to one catalog definition."""

    name: str
    tag: str
    element: ET.Element
    refs: Tuple[str, ...] = ()

    def to_element(self) -> ET.Element:
        """A detached copy of the definition, safe to insert into a document."""
        element = copy.deepcopy(self.element)
        for node in element.iter():
            if node.text is not None and not node.text.strip():
                node.text = None
            if node.tail is not None and not node.tail.strip():
                node.tail = None
        return element


class MaterialCatalog:
    """Named isotope/element/material definitions from a GDML materials file."""

    def __init__(self, entries: Iterable[MaterialHandle] = (), source: str = ""):
        self.source = source
        self._entries: Dict[str, MaterialHandle] = {}
        for entry in entries:
            self._entries[entry.name] = entry

    def __contains__(self, catalog_id: object) -> bool:
        return catalog_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def names(self) -> List[str]:
        return list(self._entries)

    def resolve(self, catalog_id: str) -> MaterialHandle:
        try:
            return self._entries[catalog_id]
        except KeyError:
            raise UnknownMaterialError(
                f"material '{catalog_id}' not found in catalog {self.source or '<inline>'}"
            ) from None

    def definitions_for(self, catalog_ids: Iterable[str]) -> List[MaterialHandle]:
        """Requested definitions plus everything they reference, dependencies first."""
        done: Set[str] = set()
        order: List[MaterialHandle] = []

        def visit(name: str, trail: Tuple[str, ...]) -> None:
            if name in done or name in trail:
                return
            entry = self._entries.get(name)
            if entry is None:
                logger.debug("Catalog reference %s is not defined locally", name)
                return
            for ref in entry.refs:
                visit(ref, trail + (name,))
            done.add(name)
            order.append(entry)

        for catalog_id in catalog_ids:
            self.resolve(catalog_id)
            visit(catalog_id, ())
        return order

    # --- loading ---

    @classmethod
    def from_xml(cls, text: str, source: str = "") -> "MaterialCatalog":
        try:
            root = ET.fromstring(text)
        except ET.ParseError as exc:
            raise UnknownMaterialError(
                f"could not parse material catalog {source or '<inline>'}: {exc}"
            ) from exc

        _strip_namespaces(root)
        container = root if root.tag == "materials" else root.find(".//materials")
        if container is None:
            raise UnknownMaterialError(
                f"material catalog {source or '<inline>'} has no <materials> section"
            )

        entries = []
        for child in container:
            if child.tag not in CATALOG_TAGS:
                continue
            name = child.get("name")
            if not name:
                logger.warning("Skipping unnamed <%s> in material catalog", child.tag)
                continue
            refs = tuple(
                node.get("ref")
                for node in child.iter()
                if node is not child and node.get("ref")
            )
            entries.append(MaterialHandle(name=name, tag=child.tag, element=child, refs=refs))

        catalog = cls(entries, source=source)
        logger.info("Loaded %d catalog entries from %s", len(catalog), source or "<inline>")
        return catalog

    @classmethod
    def from_file(cls, path: str) -> "MaterialCatalog":
        catalog_path = Path(path)
        if not catalog_path.is_file():
            raise UnknownMaterialError(f"material catalog file not found: {path}")
        return cls.from_xml(catalog_path.read_text(encoding="utf-8"), source=str(catalog_path))

    @classmethod
    def fetch(
        cls,
        url: str = DEFAULT_CATALOG_URL,
        timeout: float = 30.0,
        retries: int = 3,
        backoff_seconds: float = 1.0,
    ) -> "MaterialCatalog":
        """Download the catalog; failures after all retries are fatal."""
        last_error: Optional[Exception] = None
        for attempt in range(1, max(retries, 1) + 1):
            try:
                resp = requests.get(url, timeout=timeout)
                resp.raise_for_status()
                return cls.from_xml(resp.text, source=url)
            except requests.RequestException as exc:
                last_error = exc
                logger.warning(
                    "Material catalog fetch failed (attempt %d/%d): %s",
                    attempt, retries, exc,
                )
                if attempt < retries:
                    time.sleep(backoff_seconds * attempt)
        raise UnknownMaterialError(
            f"material catalog unavailable at {url}: {last_error}"
        ) from last_error


class MaterialRegistry:
    """Symbolic material names bound to catalog definitions."""

    def __init__(self, catalog: MaterialCatalog):
        self.catalog = catalog
        self._materials: Dict[str, MaterialHandle] = {}

    def __contains__(self, ref: object) -> bool:
        name = ref.name if isinstance(ref, MaterialRef) else ref
        return name in self._materials

    def __len__(self) -> int:
        return len(self._materials)

    def names(self) -> List[str]:
        return list(self._materials)

    def define(self, name: str, catalog_id: str) -> MaterialRef:
        if name in self._materials:
            raise DuplicateNameError("material", name)
        handle = self.catalog.resolve(catalog_id)
        self._materials[name] = handle
        logger.debug("Material %s -> %s", name, catalog_id)
        return MaterialRef(name)

    def get(self, ref: MaterialRef) -> MaterialHandle:
        try:
            return self._materials[ref.name]
        except KeyError:
            raise UnknownReferenceError("material", ref.name) from None

    def catalog_id(self, ref: MaterialRef) -> str:
        return self.get(ref).name

    def items(self) -> List[Tuple[str, MaterialHandle]]:
        return list(self._materials.items())

    def absorb(self, items: Iterable[Tuple[str, MaterialHandle]]) -> None:
        """Rebind materials of another run against this registry's catalog."""
        for name, handle in items:
            if name not in self._materials:
                self._materials[name] = self.catalog.resolve(handle.name)
