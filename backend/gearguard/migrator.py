"""
SQL migration runner.

Executes ``NNN_name.sql`` files from the migrations directory in numeric
order and records each one in ``schema_migrations``. Files already recorded
are skipped, so the runner can be invoked on every deploy.

Usage:
    python -m gearguard.migrator            # apply pending migrations
    python -m gearguard.migrator --status   # list applied / pending files
    python -m gearguard.migrator --dir path/to/migrations
"""

import argparse
import logging
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from sqlalchemy import text, select
from sqlalchemy.engine import Engine

from gearguard.config import settings
from gearguard.database import create_db_engine
from gearguard.logging_config import setup_logging
from gearguard.models import SchemaMigration

logger = logging.getLogger(__name__)

MIGRATION_PATTERN = re.compile(r"^(\d+)_(.+)\.sql$")


@dataclass
class MigrationFile:
    filename: str
    path: Path
    order: int


def discover_migrations(directory: Path) -> List[MigrationFile]:
    """Migration files sorted by their numeric prefix"""
    migrations = []
    for path in directory.glob("*.sql"):
        match = MIGRATION_PATTERN.match(path.name)
        if not match:
            logger.warning(f"Skipping {path.name}: expected NNN_name.sql")
            continue
        migrations.append(MigrationFile(filename=path.name, path=path, order=int(match.group(1))))
    return sorted(migrations, key=lambda m: (m.order, m.filename))


def split_statements(sql: str) -> List[str]:
    """Split a script on ``;`` after dropping ``--`` comment lines"""
    lines = [line for line in sql.splitlines() if not line.strip().startswith("--")]
    statements = [statement.strip() for statement in "\n".join(lines).split(";")]
    return [statement for statement in statements if statement]


def executed_migrations(engine: Engine) -> List[str]:
    SchemaMigration.__table__.create(engine, checkfirst=True)
    with engine.connect() as connection:
        rows = connection.execute(
            select(SchemaMigration.migration_name).order_by(SchemaMigration.id)
        )
        return [row[0] for row in rows]


def run_migration(engine: Engine, migration: MigrationFile):
    logger.info(f"Running migration: {migration.filename}")
    statements = split_statements(migration.path.read_text(encoding="utf-8"))

    with engine.begin() as connection:
        for statement in statements:
            connection.execute(text(statement))
        connection.execute(
            SchemaMigration.__table__.insert().values(migration_name=migration.filename)
        )

    logger.info(f"Migration completed: {migration.filename} ({len(statements)} statements)")


def run_migrations(engine: Engine, directory: Path) -> List[str]:
    """Apply every pending migration; returns the applied file names."""
    done = set(executed_migrations(engine))
    pending = [m for m in discover_migrations(directory) if m.filename not in done]

    if not pending:
        logger.info("Database is up to date")
        return []

    for migration in pending:
        run_migration(engine, migration)

    logger.info(f"Applied {len(pending)} migration(s)")
    return [m.filename for m in pending]


def print_status(engine: Engine, directory: Path):
    done = set(executed_migrations(engine))
    for migration in discover_migrations(directory):
        state = "applied" if migration.filename in done else "pending"
        print(f"  [{state:>7}] {migration.filename}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Apply GearGuard SQL migrations"
    )

    parser.add_argument(
        "--dir",
        type=Path,
        default=Path(settings.MIGRATIONS_DIR),
        help="Directory holding NNN_name.sql files"
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Show applied and pending migrations without running them"
    )

    args = parser.parse_args(argv)
    setup_logging(settings.LOG_LEVEL)

    if not args.dir.is_dir():
        logger.error(f"Migrations directory not found: {args.dir}")
        return 1

    engine = create_db_engine(settings)
    try:
        if args.status:
            print_status(engine, args.dir)
        else:
            run_migrations(engine, args.dir)
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        return 1
    finally:
        engine.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
