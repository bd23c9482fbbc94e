"""Copy files from the local storage root into the configured cloud provider.

Usage:
    python -m app.scripts.migrate_storage --dry-run   # preview
    python -m app.scripts.migrate_storage             # migrate
    python -m app.scripts.migrate_storage --force     # overwrite existing objects

The target is whatever ``STORAGE_PROVIDER`` (plus ``STORAGE_*`` / ``GCS_*``)
selects and must be ``s3``, ``r2`` or ``gcs``. Object keys are the file paths
relative to the source root, so ``<root>/uploads/a.jpg`` lands at
``uploads/a.jpg`` and existing upload records keep resolving.

Exit codes: 0 when every file was migrated or skipped, 1 when any file
failed, 2 when the target configuration is unusable.
"""

from __future__ import annotations

import argparse
import json
import logging
import mimetypes
import sys
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Sequence, TextIO

from app.adapters.storage.base import ObjectStorageAdapter
from app.adapters.storage.factory import create_storage_adapter
from app.core.config import GcsSettings, StorageSettings
from app.core.errors import AppError, StorageNotFoundError
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)

TARGET_PROVIDERS = ("s3", "r2", "gcs")
DEFAULT_CONTENT_TYPE = "application/octet-stream"

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_BAD_TARGET = 2


@dataclass
class MigrationStats:
    scanned: int = 0
    migrated: int = 0
    skipped_existing: int = 0
    failed: int = 0
    dry_run: bool = False


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="migrate_storage",
        description="Migrate locally stored media to the configured S3/R2/GCS bucket.",
    )
    p.add_argument(
        "--source-root",
        type=Path,
        default=None,
        help="Local storage root (default: STORAGE_LOCAL_ROOT_DIR or ./storage)",
    )
    p.add_argument("--dry-run", action="store_true", help="List what would be uploaded")
    p.add_argument("--force", action="store_true", help="Overwrite objects that already exist")
    return p.parse_args(argv)


def iter_local_objects(root: Path) -> Iterator[tuple[str, Path]]:
    """Yield ``(key, path)`` for every regular file under ``root``, sorted."""
    for path in sorted(p for p in root.rglob("*") if p.is_file()):
        yield path.relative_to(root).as_posix(), path


def object_exists(target: ObjectStorageAdapter, key: str) -> bool:
    try:
        stored = target.get_object_stream(key)
    except StorageNotFoundError:
        return False
    stored.stream.close()
    return True


def guess_content_type(path: Path) -> str:
    return mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE


def migrate(
    source_root: Path,
    target: ObjectStorageAdapter,
    *,
    dry_run: bool = False,
    force: bool = False,
    out: TextIO = sys.stdout,
) -> MigrationStats:
    """Copy every file under ``source_root`` into ``target``.

    Existing target objects are skipped unless ``force``. A failing file is
    counted and reported; the run continues with the next one.
    """
    stats = MigrationStats(dry_run=dry_run)

    for key, path in iter_local_objects(source_root):
        stats.scanned += 1
        try:
            if not force and object_exists(target, key):
                stats.skipped_existing += 1
                print(f"  {key} ... skipped (already exists)", file=out)
                continue

            size = path.stat().st_size
            if dry_run:
                stats.migrated += 1
                print(f"  {key} ... would upload ({size / 1024:.1f} KB)", file=out)
                continue

            with path.open("rb") as fh:
                result = target.put_object(key, guess_content_type(path), fh)
            stats.migrated += 1
            print(f"  {key} ... uploaded ({result.size / 1024:.1f} KB)", file=out)
        except (AppError, OSError) as exc:
            stats.failed += 1
            logger.warning(
                "migrate_storage.object_failed",
                extra={"key": key, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            print(f"  {key} ... failed: {exc}", file=out)

    return stats


def main(
    argv: Sequence[str] | None = None,
    *,
    target: ObjectStorageAdapter | None = None,
    out: TextIO = sys.stdout,
) -> int:
    args = parse_args(argv)
    if target is None:
        # Callers that inject a target own the logging setup
        configure_logging()
    storage = StorageSettings()
    source_root = args.source_root or Path(storage.local_root_dir or Path.cwd() / "storage")

    if target is None:
        provider = (storage.provider or "").strip().lower()
        if provider not in TARGET_PROVIDERS:
            print(
                f"ERROR: STORAGE_PROVIDER must be one of {', '.join(TARGET_PROVIDERS)} "
                f"to run this migration (current: {provider or '(unset)'})",
                file=sys.stderr,
            )
            return EXIT_BAD_TARGET
        try:
            target = create_storage_adapter(storage, GcsSettings())
        except AppError as exc:
            print(f"ERROR: {exc.message}", file=sys.stderr)
            return EXIT_BAD_TARGET

    if not source_root.is_dir():
        print(f"ERROR: source root does not exist: {source_root}", file=sys.stderr)
        return EXIT_BAD_TARGET

    print(f"Target: {target.provider} | source: {source_root}", file=out)
    if args.dry_run:
        print("Dry run: nothing will be uploaded", file=out)

    stats = migrate(source_root, target, dry_run=args.dry_run, force=args.force, out=out)

    print(
        json.dumps(
            {"timestamp": datetime.now(timezone.utc).isoformat(), **asdict(stats)},
            indent=2,
        ),
        file=out,
    )
    return EXIT_OK if stats.failed == 0 else EXIT_FAILURES


if __name__ == "__main__":
    raise SystemExit(main())
