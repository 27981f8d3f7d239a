"""!
@brief Adobe deployment catalog loading and lookup.
@details Adobe packages ship an XML document describing the products they
contain. Products appear under two independent sections, the legacy ``RIBS``
list and the newer ``HD`` list; each ``Media`` child names a SAP code, a base
version and a platform. A product may be listed in both sections, and each
listing drives its own uninstall invocation, so lookups never deduplicate.

Example::

    <Deployment>
      <Products>
        <RIBS><Media><SAPCode>APRO</SAPCode><BaseVersion>25.0</BaseVersion>
          <Platform>win64</Platform></Media></RIBS>
        <HD><Media SAPCode="ILST" BaseVersion="26.0" Platform="win64"/></HD>
      </Products>
    </Deployment>
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from . import constants, logging_ext
from .errors import CatalogError

_SAP_CODE_FIELDS = ("SAPCode", "sapCode")
_VERSION_FIELDS = ("BaseVersion", "baseVersion", "ProdVersion", "prodVersion", "Version", "version")
_PLATFORM_FIELDS = ("Platform", "platform")


@dataclass(frozen=True)
class ProductCatalogEntry:
    """!
    @brief One product listing from a catalog section.
    """

    sap_code: str
    version: str
    platform: str
    section: str

    def to_dict(self) -> dict[str, str]:
        return {
            "sap_code": self.sap_code,
            "version": self.version,
            "platform": self.platform,
            "section": self.section,
        }


@dataclass(frozen=True)
class ProductCatalog:
    """!
    @brief Immutable catalog keeping each section's entries in document order.
    """

    sections: Tuple[Tuple[str, Tuple[ProductCatalogEntry, ...]], ...]
    source: str | None = None

    def entries(self, section: str | None = None) -> Tuple[ProductCatalogEntry, ...]:
        collected: List[ProductCatalogEntry] = []
        for name, entries in self.sections:
            if section is None or name == section:
                collected.extend(entries)
        return tuple(collected)

    def __len__(self) -> int:
        return sum(len(entries) for _, entries in self.sections)


def _field(element: ET.Element, names: Iterable[str]) -> str:
    """!
    @brief Read a field from a child element's text, falling back to attributes.
    """

    for name in names:
        child = element.find(name)
        if child is not None and child.text and child.text.strip():
            return child.text.strip()
    for name in names:
        value = element.get(name)
        if value and value.strip():
            return value.strip()
    return ""


def _iter_media(section: ET.Element) -> Iterable[ET.Element]:
    for element in section.iter():
        if element is section:
            continue
        if element.tag in {"Media", "HDMedia"}:
            yield element


def parse_catalog(text: str, *, source: str | None = None) -> ProductCatalog:
    """!
    @brief Parse catalog XML from ``text``.
    @throws CatalogError When the document is not well-formed XML.
    """

    human_logger = logging_ext.get_human_logger()

    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise CatalogError(f"Malformed catalog XML{' in ' + source if source else ''}: {exc}") from exc

    sections: List[Tuple[str, Tuple[ProductCatalogEntry, ...]]] = []
    for section_name in constants.CATALOG_SECTIONS:
        entries: List[ProductCatalogEntry] = []
        for section in root.iter(section_name):
            for media in _iter_media(section):
                sap_code = _field(media, _SAP_CODE_FIELDS)
                version = _field(media, _VERSION_FIELDS)
                if not sap_code or not version:
                    human_logger.warning(
                        "Skipping %s catalog media without SAP code or version", section_name
                    )
                    continue
                entries.append(
                    ProductCatalogEntry(
                        sap_code=sap_code,
                        version=version,
                        platform=_field(media, _PLATFORM_FIELDS),
                        section=section_name,
                    )
                )
        sections.append((section_name, tuple(entries)))

    return ProductCatalog(sections=tuple(sections), source=source)


def load_catalog(path: Path | str) -> ProductCatalog:
    """!
    @brief Read and parse the catalog file at ``path``.
    @throws CatalogError When the file is missing, unreadable or malformed.
    """

    catalog_path = Path(path)
    try:
        text = catalog_path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise CatalogError(f"Unable to read catalog {catalog_path}: {exc}") from exc

    catalog = parse_catalog(text, source=str(catalog_path))
    logging_ext.get_machine_logger().info(
        "catalog_loaded",
        extra={
            "event": "catalog_loaded",
            "path": str(catalog_path),
            "counts": {name: len(entries) for name, entries in catalog.sections},
        },
    )
    return catalog


def version_matches(base_version: str, candidate: str) -> bool:
    """!
    @brief Prefix match ``candidate`` against ``base_version`` component-wise.
    @details ``25`` matches ``25``, ``25.0`` and ``25.1.3`` but not ``125`` or
    ``250``; ``25.1`` matches ``25.1.3`` but not ``25.10``.
    """

    base_parts = [part for part in base_version.strip().split(".") if part != ""]
    candidate_parts = candidate.strip().split(".")
    if not base_parts or len(candidate_parts) < len(base_parts):
        return False
    return candidate_parts[: len(base_parts)] == base_parts


def find_entries(
    catalog: ProductCatalog,
    sap_code: str,
    base_version: str | None,
) -> Sequence[ProductCatalogEntry]:
    """!
    @brief Return every catalog entry matching ``sap_code`` and ``base_version``.
    @details SAP codes compare exactly (case-sensitive as stored). Each section
    is searched on its own and matches from both are returned.
    """

    if not sap_code or not base_version:
        return ()
    matches: List[ProductCatalogEntry] = []
    for entry in catalog.entries():
        if entry.sap_code == sap_code and version_matches(base_version, entry.version):
            matches.append(entry)
    return tuple(matches)


__all__ = [
    "ProductCatalog",
    "ProductCatalogEntry",
    "find_entries",
    "load_catalog",
    "parse_catalog",
    "version_matches",
]
