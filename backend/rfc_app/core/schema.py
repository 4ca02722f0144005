"""Startup schema management.

Brings the store from any previously deployed layout to the current one
without losing data that can still be interpreted, and does nothing when
the layout is already current. Detection looks at the columns that are
actually there instead of trusting a version number, because earlier
deployments never recorded one.

Procedure (``ensure_schema``):
1. Create any table that does not exist yet from the ORM metadata.
2. Observe every known table through ``describe_columns``.
3. Evaluate MIGRATION_RULES in order. Each rule is a pure function from
   the observed schema to an optional action. A matching rule's action
   runs in its own transaction, then the schema is observed again before
   the next rule.

Not safe to run from two processes at once. Run it once, before serving.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from rfc_app.core.errors import SchemaError
from rfc_app.models import Base

logger = logging.getLogger(__name__)

# Table that stored RFC documents inline before they moved to Markdown files
LEGACY_DOCUMENTS_TABLE = "rfcs"

_OLD_SUFFIX = "_old"


@dataclass(frozen=True)
class ColumnDescriptor:
    """Engine-neutral view of one column.

    Attributes:
        name: Column name.
        type_name: Declared type, upper-cased (e.g. ``"INTEGER"``).
        nullable: Whether NULL is allowed.
    """

    name: str
    type_name: str
    nullable: bool


ObservedSchema = Mapping[str, frozenset[ColumnDescriptor]]


@dataclass(frozen=True)
class RebuildTable:
    """Rename the table aside, recreate it, copy rows, drop the old copy.

    Attributes:
        table: Table to rebuild.
        copy_columns: Target column -> SQL expression over the old table.
            Empty means the new table starts without rows.
    """

    table: str
    copy_columns: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DropTable:
    """Drop a table the application no longer owns."""

    table: str


MigrationAction = RebuildTable | DropTable


@dataclass(frozen=True)
class MigrationRule:
    """A named legacy-shape check.

    Attributes:
        name: Stable identifier, reported when the rule fires.
        detect: Pure function of the observed schema; returns the action
            to run or None if the shape is already current.
    """

    name: str
    detect: Callable[[ObservedSchema], MigrationAction | None]


def _column(
    observed: ObservedSchema, table: str, column: str
) -> ColumnDescriptor | None:
    for descriptor in observed.get(table, frozenset()):
        if descriptor.name == column:
            return descriptor
    return None


def users_password_hash_nullable(observed: ObservedSchema) -> MigrationAction | None:
    """password_hash was once NOT NULL; passwordless users need it optional."""
    column = _column(observed, "users", "password_hash")
    if column is None or column.nullable:
        return None
    return RebuildTable(
        "users",
        copy_columns={
            "id": "id",
            "email": "email",
            "password_hash": "password_hash",
            "created_at": "created_at",
        },
    )


def comments_keyed_by_slug(observed: ObservedSchema) -> MigrationAction | None:
    """Comments once pointed at a numeric rfc_id; those rows cannot be rekeyed."""
    if _column(observed, "comments", "rfc_id") is None:
        return None
    return RebuildTable("comments")


def drop_documents_table(observed: ObservedSchema) -> MigrationAction | None:
    """RFC documents are read from disk now; the table copy is stale."""
    if LEGACY_DOCUMENTS_TABLE not in observed:
        return None
    return DropTable(LEGACY_DOCUMENTS_TABLE)


def login_tokens_epoch_expiry(observed: ObservedSchema) -> MigrationAction | None:
    """expires_at was once a text timestamp; convert it to epoch seconds."""
    column = _column(observed, "login_tokens", "expires_at")
    if column is None or column.type_name == "INTEGER":
        return None
    return RebuildTable(
        "login_tokens",
        copy_columns={
            "user_id": "user_id",
            "token": "token",
            "expires_at": "CAST(strftime('%s', expires_at) AS INTEGER)",
            "created_at": "created_at",
        },
    )


# Order matters: comments must be rekeyed before the documents table they
# referenced is dropped, and users must be settled before anything that
# points at it is rebuilt.
MIGRATION_RULES: tuple[MigrationRule, ...] = (
    MigrationRule("users_password_hash_nullable", users_password_hash_nullable),
    MigrationRule("comments_keyed_by_slug", comments_keyed_by_slug),
    MigrationRule("drop_documents_table", drop_documents_table),
    MigrationRule("login_tokens_epoch_expiry", login_tokens_epoch_expiry),
)


def describe_columns(conn: Connection, table: str) -> frozenset[ColumnDescriptor] | None:
    """Describe the columns of ``table``, or None if it does not exist.

    Args:
        conn: Synchronous connection (use inside ``run_sync``).
        table: Table name.

    Returns:
        Column descriptors, or None for a missing table.
    """
    inspector = inspect(conn)
    if not inspector.has_table(table):
        return None
    return frozenset(
        ColumnDescriptor(
            name=column["name"],
            type_name=str(column["type"]).upper(),
            nullable=bool(column["nullable"]),
        )
        for column in inspector.get_columns(table)
    )


def observe_schema(conn: Connection) -> dict[str, frozenset[ColumnDescriptor]]:
    """Snapshot every table any rule may look at."""
    tables = [*Base.metadata.tables, LEGACY_DOCUMENTS_TABLE]
    observed: dict[str, frozenset[ColumnDescriptor]] = {}
    for table in tables:
        columns = describe_columns(conn, table)
        if columns is not None:
            observed[table] = columns
    return observed


def _rebuild_table(conn: Connection, action: RebuildTable) -> None:
    table = Base.metadata.tables[action.table]
    old_name = f"{action.table}{_OLD_SUFFIX}"

    conn.exec_driver_sql(f'ALTER TABLE "{action.table}" RENAME TO "{old_name}"')
    # Indexes keep their names when the table is renamed; free them for the
    # new table.
    for index in table.indexes:
        conn.exec_driver_sql(f'DROP INDEX IF EXISTS "{index.name}"')
    table.create(conn)

    if action.copy_columns:
        targets = ", ".join(f'"{name}"' for name in action.copy_columns)
        sources = ", ".join(action.copy_columns.values())
        conn.execute(
            text(
                f'INSERT INTO "{action.table}" ({targets}) '  # nosec B608
                f'SELECT {sources} FROM "{old_name}"'
            )
        )

    conn.exec_driver_sql(f'DROP TABLE "{old_name}"')


def _set_rebuild_pragmas(conn: Connection, rebuilding: bool) -> None:
    """Toggle the pragmas a table rebuild depends on.

    While rebuilding, foreign keys are off and legacy ALTER TABLE semantics
    are on: renaming ``users`` aside must leave the references in
    ``comments`` and ``login_tokens`` pointing at ``users``, and dropping
    the old copy must not cascade into them. PRAGMA foreign_keys is
    ignored inside a transaction, so this goes to the driver connection
    directly, outside SQLAlchemy's transaction.
    """
    cursor = conn.connection.cursor()
    try:
        cursor.execute(f"PRAGMA foreign_keys={'OFF' if rebuilding else 'ON'}")
        cursor.execute(f"PRAGMA legacy_alter_table={'ON' if rebuilding else 'OFF'}")
    finally:
        cursor.close()


def apply_action(conn: Connection, action: MigrationAction) -> None:
    """Execute one migration action on an open transaction."""
    if isinstance(action, DropTable):
        conn.exec_driver_sql(f'DROP TABLE IF EXISTS "{action.table}"')
    else:
        _rebuild_table(conn, action)


async def ensure_schema(
    engine: AsyncEngine,
    rules: tuple[MigrationRule, ...] = MIGRATION_RULES,
) -> list[str]:
    """Create missing tables and migrate any legacy shapes.

    Running this against an already-current store changes nothing.

    Args:
        engine: Engine from ``create_engine``.
        rules: Migration rules in evaluation order.

    Returns:
        Names of the rules that fired, in order.

    Raises:
        SchemaError: If the store is unreachable or a step fails.
    """
    applied: list[str] = []
    try:
        async with engine.connect() as conn:
            async with conn.begin():
                await conn.run_sync(Base.metadata.create_all)

            await conn.run_sync(_set_rebuild_pragmas, True)
            try:
                for rule in rules:
                    async with conn.begin():
                        observed = await conn.run_sync(observe_schema)
                        action = rule.detect(observed)
                        if action is None:
                            continue
                        logger.info(
                            "Applying schema migration %s to table %s",
                            rule.name,
                            action.table,
                        )
                        await conn.run_sync(apply_action, action)
                    applied.append(rule.name)
            finally:
                await conn.run_sync(_set_rebuild_pragmas, False)
    except SQLAlchemyError as exc:
        logger.exception("Schema migration failed")
        raise SchemaError(f"Schema migration failed: {exc}") from exc

    if not applied:
        logger.debug("Schema is current, no migrations applied")
    return applied


async def _main() -> None:
    from rfc_app.core.config import settings
    from rfc_app.core.database import create_engine, ensure_database_directory

    logging.basicConfig(level=settings.log_level)
    ensure_database_directory(settings.database_path)
    engine = create_engine(settings.database_url)
    try:
        applied = await ensure_schema(engine)
    finally:
        await engine.dispose()
    logger.info("Schema ready (%d migrations applied)", len(applied))


if __name__ == "__main__":
    asyncio.run(_main())
