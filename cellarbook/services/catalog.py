"""Catalog store: searchable reference wines, replaced wholesale from a CSV file.

A refresh never edits the served entries in place. It parses the whole source
into memory, inserts the rows as a new generation, and then flips the
``active_generation`` pointer in a single document write. Readers resolve the
pointer first and only ever see one complete generation. Entries from older
generations are pruned after the flip, keeping the previous generation for
readers that resolved the pointer just before it moved.
"""

import asyncio
import csv
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from beanie.operators import NotIn

from cellarbook.models.catalog import CatalogEntry, CatalogMetadata
from cellarbook.models.category import BeverageCategory
from cellarbook.models.counter import Counter
from cellarbook.schemas.catalog import CatalogRefreshResult, CatalogStats
from cellarbook.services.errors import IngestError, persistence_errors

logger = logging.getLogger(__name__)

CATALOG_HEADER = ("name", "category", "producer", "region", "country")
OPTIONAL_COLUMNS = ("producer", "region", "country", "wine_type", "sub_type")

# Alternative header spellings accepted in source files
HEADER_ALIASES = {
    "wine": "wine_type",
    "winetype": "wine_type",
    "wine type": "wine_type",
    "subtype": "sub_type",
    "sub type": "sub_type",
    "winery": "producer",
}

CATALOG_SEQUENCE = "catalog"
GENERATION_SEQUENCE = "catalog_generation"

ACTIVE_GENERATION_KEY = "active_generation"
SOURCE_KEY = "source"
ENTRY_COUNT_KEY = "entry_count"
REFRESHED_AT_KEY = "refreshed_at"


def _normalize_header(header: str) -> str:
    key = header.strip().lower()
    return HEADER_ALIASES.get(key, key)


def row_to_entry_data(row: dict[str, Any]) -> dict[str, Any]:
    """Map a parsed CSV row onto catalog entry fields, applying defaults."""
    cleaned: dict[str, str] = {}
    for header, value in row.items():
        if not header or value is None:
            continue
        cleaned[_normalize_header(header)] = str(value).strip()

    data: dict[str, Any] = {
        "name": cleaned.get("name") or "",
        "category": cleaned.get("category") or BeverageCategory.OTHER.value,
    }
    for column in OPTIONAL_COLUMNS:
        data[column] = cleaned.get(column) or None
    return data


def parse_catalog_csv(path: Path) -> tuple[list[dict[str, Any]], int]:
    """Parse a catalog CSV file completely into memory.

    Blank lines are ignored. Rows with more cells than the header has columns
    are malformed and skipped; rows with fewer cells get defaults.

    Returns:
        Tuple of (entry data dicts, number of skipped rows).

    Raises:
        IngestError: If the file cannot be read or decoded, or the CSV
            stream itself is broken.
    """
    rows: list[dict[str, Any]] = []
    skipped = 0

    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                # Empty file
                return rows, skipped

            for line_no, row in enumerate(reader, start=2):
                if None in row:
                    skipped += 1
                    logger.warning("Skipping malformed catalog row at line %d in %s", line_no, path)
                    continue
                if not any(v and v.strip() for v in row.values() if isinstance(v, str)):
                    continue
                rows.append(row_to_entry_data(row))
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise IngestError(f"Cannot read catalog source {path}: {e}") from e

    return rows, skipped


def ensure_source(path: Path) -> bool:
    """Create a header-only source file if none exists.

    Returns:
        True if the file was created.
    """
    if path.exists():
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(",".join(CATALOG_HEADER) + "\n", encoding="utf-8")
    except OSError as e:
        raise IngestError(f"Cannot create catalog source {path}: {e}") from e
    logger.info("Created empty catalog source at %s", path)
    return True


class CatalogStore:
    """Read-mostly reference catalog with wholesale refresh.

    Created once at application start and shared by request handlers.
    """

    def __init__(self, source_path: Path | str | None = None):
        self.source_path = Path(source_path) if source_path else None
        self._refresh_lock = asyncio.Lock()

    # =========================================================================
    # Metadata
    # =========================================================================

    async def _get_metadata(self, key: str) -> CatalogMetadata | None:
        return await CatalogMetadata.find_one(CatalogMetadata.key == key)

    async def _set_metadata(self, key: str, value: str) -> None:
        meta = await self._get_metadata(key)
        if meta is None:
            await CatalogMetadata(key=key, value=value).insert()
        else:
            meta.value = value
            meta.updated_at = datetime.now(timezone.utc)
            await meta.save()

    async def active_generation(self) -> int | None:
        """Return the generation currently served, or None before the first refresh."""
        with persistence_errors("catalog generation lookup"):
            meta = await self._get_metadata(ACTIVE_GENERATION_KEY)
        return int(meta.value) if meta else None

    # =========================================================================
    # Queries
    # =========================================================================

    async def list_all(self) -> list[CatalogEntry]:
        """Return every entry of the active generation."""
        generation = await self.active_generation()
        if generation is None:
            return []
        with persistence_errors("catalog list"):
            return (
                await CatalogEntry.find(CatalogEntry.generation == generation)
                .sort([("_id", 1)])
                .to_list()
            )

    async def search(self, query: str) -> list[CatalogEntry]:
        """Case-insensitive substring search on name or producer.

        An empty query matches nothing; use list_all() for the full catalog.
        Whitespace in the query is matched as typed.
        """
        query = query or ""
        if not query:
            return []

        generation = await self.active_generation()
        if generation is None:
            return []

        pattern = {"$regex": re.escape(query), "$options": "i"}
        with persistence_errors("catalog search"):
            return (
                await CatalogEntry.find(
                    {
                        "generation": generation,
                        "$or": [{"name": pattern}, {"producer": pattern}],
                    }
                )
                .sort([("_id", 1)])
                .to_list()
            )

    async def stats(self) -> CatalogStats:
        """Return entry count and refresh metadata."""
        generation = await self.active_generation()
        if generation is None:
            return CatalogStats()

        with persistence_errors("catalog stats"):
            count = await CatalogEntry.find(CatalogEntry.generation == generation).count()
            source = await self._get_metadata(SOURCE_KEY)
            refreshed_at = await self._get_metadata(REFRESHED_AT_KEY)

        return CatalogStats(
            entry_count=count,
            generation=generation,
            source=source.value if source else None,
            refreshed_at=datetime.fromisoformat(refreshed_at.value) if refreshed_at else None,
        )

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self, source: Path | str | None = None) -> CatalogRefreshResult:
        """Replace the whole catalog with the rows of ``source``.

        A missing source is created with just the header row and yields an
        empty catalog.

        Raises:
            IngestError: If the source cannot be read or parsed. The catalog
                being served is left untouched.
            PersistenceError: If the database fails. Readers keep seeing the
                previous generation.
        """
        path = Path(source) if source else self.source_path
        if path is None:
            raise IngestError("No catalog source configured")

        async with self._refresh_lock:
            try:
                created = ensure_source(path)
                rows, skipped = await asyncio.to_thread(parse_catalog_csv, path)
            except IngestError as e:
                logger.error("Catalog refresh aborted: %s", e)
                raise

            with persistence_errors("catalog refresh"):
                previous = await self.active_generation()
                generation = await Counter.reserve(GENERATION_SEQUENCE)

                if rows:
                    first_id = await Counter.reserve(CATALOG_SEQUENCE, len(rows))
                    entries = [
                        CatalogEntry(id=first_id + i, generation=generation, **row)
                        for i, row in enumerate(rows)
                    ]
                    await CatalogEntry.insert_many(entries)

                # Swap: readers move to the new generation in one write
                await self._set_metadata(ACTIVE_GENERATION_KEY, str(generation))
                await self._set_metadata(SOURCE_KEY, str(path))
                await self._set_metadata(ENTRY_COUNT_KEY, str(len(rows)))
                await self._set_metadata(
                    REFRESHED_AT_KEY, datetime.now(timezone.utc).isoformat()
                )

                keep = [generation] if previous is None else [generation, previous]
                await CatalogEntry.find(NotIn(CatalogEntry.generation, keep)).delete()

        logger.info(
            "Catalog refreshed from %s: generation=%d entries=%d skipped=%d",
            path, generation, len(rows), skipped,
        )
        return CatalogRefreshResult(
            generation=generation,
            entries=len(rows),
            skipped=skipped,
            created_source=created,
            source=str(path),
        )
