"""Manual migration helper for the stored journal blob.

    python db_migrate.py                 rewrite the blob in the current schema
    python db_migrate.py --import FILE   merge a JSON export of the browser
                                         app's `aurora_journal_entries` value

A backup copy of the blob is written before anything is changed.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import List, Optional

from aurorajournal.db import DB_PATH, SQLiteBlobStorage
from aurorajournal.models import Record
from aurorajournal.store import STORAGE_KEY, CollectionStore, encode_collection


def _parse_items(raw: str, source: str) -> List[Record]:
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"{source}: expected a JSON list of entries")
    records = []
    for i, item in enumerate(data):
        try:
            records.append(Record.from_dict(item))
        except ValueError as exc:
            raise ValueError(f"{source}: entry #{i} is invalid: {exc}") from exc
    return records


def _merge_by_date(records: List[Record], imported: List[Record]) -> List[Record]:
    """Slot *imported* into *records* by creation date; existing order is kept."""
    merged = list(records)
    for record in sorted(imported, key=lambda r: r.created_at, reverse=True):
        at = next((i for i, r in enumerate(merged) if r.created_at < record.created_at), len(merged))
        merged.insert(at, record)
    return merged


async def migrate(db_path: str = DB_PATH, import_file: Optional[Path] = None) -> int:
    """Rewrite (and optionally extend) the stored collection; return its size."""
    storage = SQLiteBlobStorage(db_path)
    store = CollectionStore(storage)

    blob = await storage.read(STORAGE_KEY)
    records = _parse_items(blob, "stored blob") if blob else []

    if import_file is not None:
        known = {r.id for r in records}
        imported = []
        for record in _parse_items(import_file.read_text(encoding="utf-8"), str(import_file)):
            if record.id not in known:
                known.add(record.id)
                imported.append(record)
        records = _merge_by_date(records, imported)

    backup_key = await store.backup()
    if backup_key:
        print(f"Backed up existing entries as {backup_key}")
    await storage.write(STORAGE_KEY, encode_collection(records))
    return len(records)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--db", default=DB_PATH, help="SQLite file (default: %(default)s)")
    parser.add_argument("--import", dest="import_file", type=Path, help="JSON export to merge")
    args = parser.parse_args()
    count = asyncio.run(migrate(args.db, args.import_file))
    print(f"{count} entries stored in current schema")


if __name__ == "__main__":
    main()
