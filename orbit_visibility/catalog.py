"""
Element Catalog

Parses raw (name, line1, line2) triples into TrackedObjects and holds the
resulting set. A catalog is immutable: reloading builds a new ElementCatalog
and swaps the reference, so concurrent readers see either the old catalog or
the new one.

Load rules:
- line1 must start with "1 " and line2 with "2 "; otherwise the entry is
  dropped as a MalformedElementSet
- an element set the sgp4 library rejects at initialisation (non-zero error
  on the Satrec) is dropped the same way, even when the lines are well formed
- display names are unique; later duplicates are dropped
- the catalog number comes from line 1 columns 3-7; when those columns do not
  hold a plain integer (Alpha-5 or blank) it is backfilled from the number the
  sgp4 library decoded
"""

from typing import Dict, Iterable, Iterator, List, Optional, Protocol, Sequence, Tuple

from orbit_visibility.exceptions import MalformedElementSet
from orbit_visibility.logging_config import get_logger
from orbit_visibility.models import TrackedObject
from orbit_visibility.propagation import build_handle

logger = get_logger(__name__)

RawEntry = Tuple[str, str, str]

# Name keywords for the quick category filters
CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "Starlink": ("starlink",),
    "ISS": ("iss", "zarya"),
    "GPS": ("gps", "navstar"),
    "Weather": ("noaa", "goes", "meteosat"),
    "Hubble": ("hst", "hubble"),
}
ALL_CATEGORIES = "All"


class CatalogSource(Protocol):
    def fetch(self) -> Iterable[RawEntry]:
        """Return raw (name, line1, line2) triples."""
        ...


def parse_catalog_number(line1: str) -> Optional[int]:
    """Catalog number from columns 3-7 of line 1, or None when absent."""
    if not line1 or len(line1) < 7:
        return None
    raw = line1[2:7].strip()
    try:
        return int(raw)
    except ValueError:
        return None


def parse_entry(name: str, line1: str, line2: str) -> TrackedObject:
    """
    Build a TrackedObject from one raw triple.

    Raises:
        MalformedElementSet: if the structural checks fail or the element set
            cannot be turned into a propagation handle
    """
    name = (name or "").strip()
    line1 = (line1 or "").strip()
    line2 = (line2 or "").strip()

    if not name:
        raise MalformedElementSet("Entry has no display name")
    if not line1.startswith("1 "):
        raise MalformedElementSet(f"Line 1 of {name} does not start with '1 '", name)
    if not line2.startswith("2 "):
        raise MalformedElementSet(f"Line 2 of {name} does not start with '2 '", name)

    try:
        handle = build_handle(line1, line2)
    except (ValueError, IndexError) as e:
        raise MalformedElementSet(f"Failed to parse element set for {name}: {e}", name)

    if getattr(handle, "error", 0) != 0:
        raise MalformedElementSet(
            f"Element set for {name} failed initialisation (error {handle.error})", name
        )

    catalog_number = parse_catalog_number(line1)
    if catalog_number is None:
        catalog_number = getattr(handle, "satnum", None) or None

    return TrackedObject(
        name=name,
        line1=line1,
        line2=line2,
        catalog_number=catalog_number,
        handle=handle,
    )


def parse_tle_text(text: str) -> List[RawEntry]:
    """Split three-line-format text into (name, line1, line2) triples."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return [
        (lines[i], lines[i + 1], lines[i + 2])
        for i in range(0, len(lines) - 2, 3)
    ]


def matches_category(name: str, category: str) -> bool:
    if category == ALL_CATEGORIES:
        return True
    keywords = CATEGORY_KEYWORDS.get(category)
    if keywords is None:
        return True
    lower = name.lower()
    return any(keyword in lower for keyword in keywords)


class ElementCatalog:
    """Immutable, ordered set of tracked objects with unique display names."""

    def __init__(self, objects: Sequence[TrackedObject] = ()):
        self._objects: Tuple[TrackedObject, ...] = tuple(objects)
        self._by_name: Dict[str, TrackedObject] = {}
        for tracked in self._objects:
            if tracked.name in self._by_name:
                raise ValueError(f"Duplicate display name in catalog: {tracked.name}")
            self._by_name[tracked.name] = tracked

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[TrackedObject]:
        return iter(self._objects)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"ElementCatalog({len(self._objects)} objects)"

    @property
    def objects(self) -> Tuple[TrackedObject, ...]:
        return self._objects

    def get(self, name: str) -> Optional[TrackedObject]:
        return self._by_name.get(name)

    def by_catalog_number(self, catalog_number: int) -> Optional[TrackedObject]:
        for tracked in self._objects:
            if tracked.catalog_number == catalog_number:
                return tracked
        return None

    def in_category(self, category: str) -> List[TrackedObject]:
        return [t for t in self._objects if matches_category(t.name, category)]

    def search(self, term: str = "", category: str = ALL_CATEGORIES, limit: Optional[int] = 15) -> List[TrackedObject]:
        """Case-insensitive name search combined with a category filter."""
        needle = term.lower()
        matches = [
            t for t in self._objects
            if needle in t.name.lower() and matches_category(t.name, category)
        ]
        return matches[:limit] if limit is not None else matches


def load_catalog(entries: Iterable[RawEntry], limit: Optional[int] = None) -> ElementCatalog:
    """
    Build a catalog from raw triples, dropping malformed and duplicate entries.

    Args:
        entries: Iterable of (name, line1, line2)
        limit: Stop once this many objects have been accepted (None = no limit)

    Returns:
        ElementCatalog (possibly empty)
    """
    accepted: List[TrackedObject] = []
    seen = set()
    dropped = 0
    duplicates = 0

    for entry in entries:
        try:
            name, line1, line2 = entry
            tracked = parse_entry(name, line1, line2)
        except (MalformedElementSet, ValueError, TypeError) as e:
            dropped += 1
            logger.warning("element_set_dropped", reason=str(e))
            continue

        if tracked.name in seen:
            duplicates += 1
            continue

        seen.add(tracked.name)
        accepted.append(tracked)

        if limit is not None and len(accepted) >= limit:
            break

    logger.info(
        "catalog_loaded", tracked=len(accepted), dropped=dropped, duplicates=duplicates
    )
    return ElementCatalog(accepted)


def load_from_source(
    source: CatalogSource,
    fallback: Iterable[RawEntry] = (),
    limit: Optional[int] = None,
    min_objects: int = 50,
) -> ElementCatalog:
    """
    Load a catalog from a source, falling back to a local snapshot.

    The fallback is used when the source raises or yields no more than
    min_objects trackable entries.
    """
    try:
        catalog = load_catalog(source.fetch(), limit=limit)
        if len(catalog) > min_objects:
            return catalog
        logger.warning(
            "catalog_source_too_small", tracked=len(catalog), min_objects=min_objects
        )
    except Exception as e:
        logger.warning("catalog_source_failed", error=str(e))

    return load_catalog(fallback, limit=limit)
