"""PostgreSQL schema introspection with caching."""

import logging
from collections import Counter

from psycopg import AsyncConnection

from graphseed.exceptions import SchemaNotFoundError, TableNotFoundError
from graphseed.models import AssociationInfo, AssociationKind, ColumnInfo, TableInfo

logger = logging.getLogger(__name__)


class SchemaIntrospector:
    """
    Introspect a PostgreSQL schema into TableInfo objects.

    Every foreign key becomes a BELONGS_TO association of the referencing
    table. When a table has several foreign keys to the same target, each
    association is aliased by its foreign key column so they stay apart.
    """

    def __init__(self, conn: AsyncConnection, schema: str):
        self.conn = conn
        self.schema = schema
        self._table_cache: dict[str, TableInfo] = {}
        self._schema_validated = False

    async def validate_schema(self) -> None:
        """Validate that schema exists in database."""
        if self._schema_validated:
            return
        async with self.conn.cursor() as cur:
            await cur.execute(
                "SELECT EXISTS(SELECT 1 FROM information_schema.schemata WHERE schema_name = %s)",
                (self.schema,),
            )
            exists = (await cur.fetchone())[0]
        if not exists:
            raise SchemaNotFoundError(self.schema)
        self._schema_validated = True

    async def get_tables(self) -> list[str]:
        """Names of all base tables in the schema."""
        await self.validate_schema()
        async with self.conn.cursor() as cur:
            await cur.execute(
                """
                SELECT table_name
                FROM information_schema.tables
                WHERE table_schema = %s
                  AND table_type = 'BASE TABLE'
                ORDER BY table_name
                """,
                (self.schema,),
            )
            rows = await cur.fetchall()
        return [row[0] for row in rows]

    async def get_table_info(self, table_name: str) -> TableInfo:
        """Get complete table information (cached)."""
        if table_name in self._table_cache:
            return self._table_cache[table_name]

        await self.validate_schema()
        async with self.conn.cursor() as cur:
            await cur.execute(
                """
                SELECT EXISTS(
                    SELECT 1 FROM information_schema.tables
                    WHERE table_schema = %s AND table_name = %s
                )
                """,
                (self.schema, table_name),
            )
            exists = (await cur.fetchone())[0]
        if not exists:
            raise TableNotFoundError(table_name, self.schema)

        foreign_keys = await self.get_foreign_keys(table_name)
        columns = await self.get_columns(table_name)
        referenced = {column: target for column, target, _ in foreign_keys}
        for col in columns:
            col.references = referenced.get(col.name)

        table_info = TableInfo(
            name=table_name,
            columns=columns,
            associations=self._build_associations(foreign_keys),
        )
        self._table_cache[table_name] = table_info
        logger.debug(
            f"Introspected '{self.schema}.{table_name}': {len(columns)} columns, "
            f"{len(foreign_keys)} foreign keys"
        )
        return table_info

    async def get_columns(self, table_name: str) -> list[ColumnInfo]:
        """Get all columns for a table, with primary key and enum labels."""
        async with self.conn.cursor() as cur:
            await cur.execute(
                """
                SELECT
                    c.column_name,
                    c.data_type,
                    c.udt_name,
                    c.is_nullable,
                    c.column_default,
                    c.is_identity,
                    CASE WHEN pk.column_name IS NOT NULL THEN true ELSE false END as is_pk
                FROM information_schema.columns c
                LEFT JOIN (
                    SELECT kcu.column_name
                    FROM information_schema.table_constraints tc
                    JOIN information_schema.key_column_usage kcu
                      ON tc.constraint_name = kcu.constraint_name
                      AND tc.table_schema = kcu.table_schema
                    WHERE tc.constraint_type = 'PRIMARY KEY'
                      AND tc.table_schema = %s
                      AND tc.table_name = %s
                ) pk ON c.column_name = pk.column_name
                WHERE c.table_schema = %s
                  AND c.table_name = %s
                ORDER BY c.ordinal_position
                """,
                (self.schema, table_name, self.schema, table_name),
            )
            rows = await cur.fetchall()

        columns = []
        for name, data_type, udt_name, is_nullable, default, is_identity, is_pk in rows:
            column_type = data_type
            values = None
            if data_type == "USER-DEFINED":
                values = await self.get_enum_values(udt_name)
                column_type = "enum" if values else udt_name
            columns.append(
                ColumnInfo(
                    name=name,
                    column_type=column_type,
                    is_nullable=is_nullable == "YES",
                    is_primary_key=is_pk,
                    is_auto_generated=is_identity == "YES"
                    or (default or "").startswith("nextval("),
                    default_value=default,
                    values=values,
                )
            )
        return columns

    async def get_enum_values(self, type_name: str) -> tuple[str, ...] | None:
        """Labels of an enum type, in declaration order (None if not an enum)."""
        async with self.conn.cursor() as cur:
            await cur.execute(
                """
                SELECT e.enumlabel
                FROM pg_type t
                JOIN pg_enum e ON e.enumtypid = t.oid
                WHERE t.typname = %s
                ORDER BY e.enumsortorder
                """,
                (type_name,),
            )
            rows = await cur.fetchall()
        return tuple(row[0] for row in rows) or None

    async def get_foreign_keys(self, table_name: str) -> list[tuple[str, str, str]]:
        """(column, referenced table, referenced column) for each foreign key."""
        async with self.conn.cursor() as cur:
            await cur.execute(
                """
                SELECT
                    kcu.column_name,
                    ccu.table_name AS foreign_table_name,
                    ccu.column_name AS foreign_column_name
                FROM information_schema.table_constraints AS tc
                JOIN information_schema.key_column_usage AS kcu
                  ON tc.constraint_name = kcu.constraint_name
                  AND tc.table_schema = kcu.table_schema
                JOIN information_schema.constraint_column_usage AS ccu
                  ON ccu.constraint_name = tc.constraint_name
                  AND ccu.table_schema = tc.table_schema
                WHERE tc.constraint_type = 'FOREIGN KEY'
                  AND tc.table_schema = %s
                  AND tc.table_name = %s
                ORDER BY kcu.ordinal_position, kcu.column_name
                """,
                (self.schema, table_name),
            )
            rows = await cur.fetchall()
        return [(row[0], row[1], row[2]) for row in rows]

    @staticmethod
    def _build_associations(foreign_keys: list[tuple[str, str, str]]) -> list[AssociationInfo]:
        per_target = Counter(target for _, target, _ in foreign_keys)
        return [
            AssociationInfo(
                kind=AssociationKind.BELONGS_TO,
                target=target,
                foreign_key=column,
                referenced_column=referenced_column,
                alias=column if per_target[target] > 1 else None,
            )
            for column, target, referenced_column in foreign_keys
        ]

    def clear_cache(self) -> None:
        """Clear cached introspection data."""
        self._table_cache.clear()
        self._schema_validated = False
