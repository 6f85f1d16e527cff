"""Direct backend - executes SQL against PostgreSQL through psycopg."""

import logging
from typing import Any

from psycopg import AsyncConnection, sql
from psycopg.rows import dict_row

from graphseed.backends.base import Backend, link_value
from graphseed.config import DatabaseConfig
from graphseed.exceptions import SchemaInconsistencyError
from graphseed.introspection import SchemaIntrospector
from graphseed.models import AssociationInfo, SeedRow, TableInfo

logger = logging.getLogger(__name__)


class DirectBackend(Backend):
    """
    Persist rows with INSERT/SELECT/UPDATE statements.

    Uses PostgreSQL's RETURNING clause to capture auto-generated values
    (IDENTITY columns, defaults) after insertion. Statements run in the
    connection's current transaction; committing or rolling back is left to
    the caller.
    """

    def __init__(self, conn: AsyncConnection, schema: str):
        """
        Initialize backend.

        Args:
            conn: Async PostgreSQL connection
            schema: Schema name for qualified table names
        """
        self.conn = conn
        self.schema = schema
        self.introspector = SchemaIntrospector(conn, schema)

    @classmethod
    async def connect(cls, config: DatabaseConfig | None = None) -> "DirectBackend":
        """Open a connection from database configuration."""
        config = config or DatabaseConfig()
        conn = await AsyncConnection.connect(config.url)
        return cls(conn, config.schema_name)

    async def get_table_info(self, name: str) -> TableInfo:
        return await self.introspector.get_table_info(name)

    def _table(self, table_info: TableInfo) -> sql.Identifier:
        return sql.Identifier(self.schema, table_info.name)

    def _order_by(self, table_info: TableInfo) -> sql.Composable:
        if table_info.pk_column is None:
            return sql.SQL("")
        return sql.SQL(" ORDER BY {}").format(sql.Identifier(table_info.pk_column))

    def _to_row(self, table_info: TableInfo, data: dict[str, Any]) -> SeedRow:
        return SeedRow(table=table_info.name, _data=dict(data), pk_column=table_info.pk_column)

    async def insert_rows(self, table_info: TableInfo, rows: list[dict[str, Any]]) -> list[SeedRow]:
        """
        Insert rows and return them with generated columns.

        Rows sharing the same column set go through one multi-row INSERT;
        otherwise rows are inserted one by one.
        """
        if not rows:
            return []

        columns = list(rows[0])
        if len(rows) > 1 and columns and all(list(row) == columns for row in rows):
            return await self.insert_rows_bulk(table_info, rows, columns)

        inserted_rows = []
        async with self.conn.cursor(row_factory=dict_row) as cur:
            for row in rows:
                if row:
                    query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
                        self._table(table_info),
                        sql.SQL(", ").join(map(sql.Identifier, row)),
                        sql.SQL(", ").join(sql.Placeholder() * len(row)),
                    )
                else:
                    query = sql.SQL("INSERT INTO {} DEFAULT VALUES RETURNING *").format(
                        self._table(table_info)
                    )
                await cur.execute(query, list(row.values()))
                inserted_rows.append(self._to_row(table_info, await cur.fetchone()))
        return inserted_rows

    async def insert_rows_bulk(
        self,
        table_info: TableInfo,
        rows: list[dict[str, Any]],
        columns: list[str],
        batch_size: int = 100,
    ) -> list[SeedRow]:
        """
        Insert rows using multi-row INSERT for better performance.

        Args:
            table_info: Table metadata
            rows: List of row data, all with the keys in `columns`
            columns: Columns to insert
            batch_size: Number of rows per INSERT statement

        Returns:
            List of complete rows including generated columns
        """
        single_placeholder = sql.SQL("({})").format(
            sql.SQL(", ").join(sql.Placeholder() * len(columns))
        )
        inserted_rows = []

        async with self.conn.cursor(row_factory=dict_row) as cur:
            for i in range(0, len(rows), batch_size):
                batch = rows[i : i + batch_size]
                query = sql.SQL("INSERT INTO {} ({}) VALUES {} RETURNING *").format(
                    self._table(table_info),
                    sql.SQL(", ").join(map(sql.Identifier, columns)),
                    sql.SQL(", ").join([single_placeholder] * len(batch)),
                )

                # Flatten values: [row1_col1, row1_col2, row2_col1, row2_col2, ...]
                values = [row[col] for row in batch for col in columns]
                await cur.execute(query, values)
                inserted_rows.extend(self._to_row(table_info, r) for r in await cur.fetchall())

        logger.debug(f"Bulk inserted {len(inserted_rows)} rows into '{table_info.name}'")
        return inserted_rows

    async def fetch_all(self, table_info: TableInfo) -> list[SeedRow]:
        query = sql.SQL("SELECT * FROM {}{}").format(
            self._table(table_info), self._order_by(table_info)
        )
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query)
            return [self._to_row(table_info, r) for r in await cur.fetchall()]

    async def _fetch_first(self, table_info: TableInfo, where: dict[str, Any]) -> SeedRow | None:
        conditions = sql.SQL(" AND ").join(
            sql.SQL("{} = {}").format(sql.Identifier(column), sql.Placeholder())
            for column in where
        )
        query = sql.SQL("SELECT * FROM {}{}{} LIMIT 1").format(
            self._table(table_info),
            sql.SQL(" WHERE {}").format(conditions) if where else sql.SQL(""),
            self._order_by(table_info),
        )
        async with self.conn.cursor(row_factory=dict_row) as cur:
            await cur.execute(query, list(where.values()))
            result = await cur.fetchone()
        return self._to_row(table_info, result) if result is not None else None

    async def fetch_by_key(self, table_info: TableInfo, column: str, value: Any) -> SeedRow | None:
        return await self._fetch_first(table_info, {column: value})

    async def find_or_create(
        self,
        table_info: TableInfo,
        where: dict[str, Any],
        defaults: dict[str, Any],
    ) -> SeedRow:
        existing = await self._fetch_first(table_info, where)
        if existing is not None:
            return existing
        created = await self.insert_rows(table_info, [{**defaults, **where}])
        return created[0]

    async def set_related(
        self,
        owner: SeedRow,
        association: AssociationInfo,
        target: SeedRow | list[SeedRow],
    ) -> None:
        owner_info = await self.get_table_info(owner.table)
        if not owner_info.has_column(association.foreign_key):
            raise SchemaInconsistencyError(owner.table, association.foreign_key, association.name)
        value = link_value(association, target)

        query = sql.SQL("UPDATE {} SET {} = {} WHERE {} = {}").format(
            self._table(owner_info),
            sql.Identifier(association.foreign_key),
            sql.Placeholder(),
            sql.Identifier(owner.pk_column),
            sql.Placeholder(),
        )
        async with self.conn.cursor() as cur:
            await cur.execute(query, (value, owner.pk))
        owner[association.foreign_key] = value

    async def get_related(self, owner: SeedRow, association: AssociationInfo) -> SeedRow | None:
        value = owner.get(association.foreign_key)
        if value is None:
            return None
        target_info = await self.get_table_info(association.target)
        return await self.fetch_by_key(target_info, association.referenced_column, value)

    async def count(self, table_info: TableInfo) -> int:
        query = sql.SQL("SELECT COUNT(*) FROM {}").format(self._table(table_info))
        async with self.conn.cursor() as cur:
            await cur.execute(query)
            return (await cur.fetchone())[0]
