"""Staging backend - in-memory backend for testing without database."""

from typing import Any

from graphseed.backends.base import Backend, link_value
from graphseed.exceptions import SchemaInconsistencyError
from graphseed.models import AssociationInfo, SeedRow, TableInfo
from graphseed.schema import Schema


class StagingBackend(Backend):
    """
    In-memory backend for resolving model graphs without a database.

    Simulates database behavior:
    - Generates primary keys (sequential IDs starting from 1)
    - Fills undeclared values of declared columns with None
    - Stores rows in memory; fetched rows are the stored objects, so the
      same row is always the same SeedRow

    Use case: Fast unit tests, offline development, prototyping model graphs.
    """

    def __init__(self, schema: Schema | None = None):
        """Initialize staging backend with empty state."""
        self.schema = schema or Schema()
        self._data: dict[str, list[SeedRow]] = {}
        self._pk_sequences: dict[str, int] = {}

    async def get_table_info(self, name: str) -> TableInfo:
        return self.schema.get_table_info(name)

    async def insert_rows(self, table_info: TableInfo, rows: list[dict[str, Any]]) -> list[SeedRow]:
        """
        Simulate database insert (generate PKs, store in memory).

        Returns:
            List of complete rows including generated primary keys
        """
        if not rows:
            return []

        table_name = table_info.name
        pk_column = table_info.pk_column

        # Initialize PK sequence if first time seeing this table
        if table_name not in self._pk_sequences:
            self._pk_sequences[table_name] = 1

        inserted_rows = []
        for row in rows:
            complete_row = {col.name: None for col in table_info.columns}
            complete_row.update(row)

            if pk_column is not None:
                if complete_row.get(pk_column) is None:
                    complete_row[pk_column] = self._pk_sequences[table_name]
                    self._pk_sequences[table_name] += 1
                elif isinstance(complete_row[pk_column], int):
                    # Explicit key: keep the sequence ahead of it
                    self._pk_sequences[table_name] = max(
                        self._pk_sequences[table_name], complete_row[pk_column] + 1
                    )

            inserted_rows.append(SeedRow(table=table_name, _data=complete_row, pk_column=pk_column))

        self._data.setdefault(table_name, []).extend(inserted_rows)
        return inserted_rows

    async def fetch_all(self, table_info: TableInfo) -> list[SeedRow]:
        rows = self._data.get(table_info.name, [])
        if table_info.pk_column is None:
            return list(rows)
        return sorted(rows, key=lambda r: (r.pk is None, r.pk))

    async def fetch_by_key(self, table_info: TableInfo, column: str, value: Any) -> SeedRow | None:
        for row in await self.fetch_all(table_info):
            if row.get(column) == value:
                return row
        return None

    async def find_or_create(
        self,
        table_info: TableInfo,
        where: dict[str, Any],
        defaults: dict[str, Any],
    ) -> SeedRow:
        for row in await self.fetch_all(table_info):
            if all(row.get(column) == value for column, value in where.items()):
                return row
        created = await self.insert_rows(table_info, [{**defaults, **where}])
        return created[0]

    async def set_related(
        self,
        owner: SeedRow,
        association: AssociationInfo,
        target: SeedRow | list[SeedRow],
    ) -> None:
        owner_info = self.schema.get_table_info(owner.table)
        if not owner_info.has_column(association.foreign_key):
            raise SchemaInconsistencyError(owner.table, association.foreign_key, association.name)
        owner[association.foreign_key] = link_value(association, target)

    async def get_related(self, owner: SeedRow, association: AssociationInfo) -> SeedRow | None:
        value = owner.get(association.foreign_key)
        if value is None:
            return None
        target_info = self.schema.get_table_info(association.target)
        return await self.fetch_by_key(target_info, association.referenced_column, value)

    async def count(self, table_info: TableInfo) -> int:
        return len(self._data.get(table_info.name, []))

    def get_data(self, table_name: str) -> list[SeedRow]:
        """
        Get in-memory rows for inspection.

        Args:
            table_name: Table name

        Returns:
            List of rows for the table
        """
        return self._data.get(table_name, [])

    def clear(self) -> None:
        """Clear all in-memory data and sequences."""
        self._data.clear()
        self._pk_sequences.clear()
