"""Persistence backend interface."""

from abc import ABC, abstractmethod
from typing import Any

from graphseed.exceptions import SchemaInconsistencyError
from graphseed.models import AssociationInfo, SeedRow, TableInfo


class Backend(ABC):
    """
    Data-mapper contract consumed by the graph resolver.

    Every method touching rows is a coroutine; the resolver awaits each call
    and never wraps them in a transaction.
    """

    @abstractmethod
    async def get_table_info(self, name: str) -> TableInfo:
        """
        Get table metadata (columns and associations).

        Raises:
            TableNotFoundError: If table doesn't exist
        """

    @abstractmethod
    async def insert_rows(self, table_info: TableInfo, rows: list[dict[str, Any]]) -> list[SeedRow]:
        """
        Insert rows and return them as persisted (generated columns included).

        Args:
            table_info: Table metadata
            rows: Attribute dicts, one per row

        Returns:
            Persisted rows in insertion order
        """

    @abstractmethod
    async def fetch_all(self, table_info: TableInfo) -> list[SeedRow]:
        """All rows of a table, ordered by primary key."""

    @abstractmethod
    async def fetch_by_key(self, table_info: TableInfo, column: str, value: Any) -> SeedRow | None:
        """First row whose `column` equals `value`, or None."""

    @abstractmethod
    async def find_or_create(
        self,
        table_info: TableInfo,
        where: dict[str, Any],
        defaults: dict[str, Any],
    ) -> SeedRow:
        """
        First row (by primary key) matching every `where` pair; when none
        matches, insert one built from `defaults` updated with `where`.
        """

    @abstractmethod
    async def set_related(
        self,
        owner: SeedRow,
        association: AssociationInfo,
        target: SeedRow | list[SeedRow],
    ) -> None:
        """
        Persist the foreign key linking `owner` to `target`.

        Raises:
            SchemaInconsistencyError: If a column named by the association is missing
        """

    @abstractmethod
    async def get_related(self, owner: SeedRow, association: AssociationInfo) -> SeedRow | None:
        """Row referenced by the owner's foreign key, or None."""

    @abstractmethod
    async def count(self, table_info: TableInfo) -> int:
        """Number of rows in a table."""


def link_value(association: AssociationInfo, target: SeedRow | list[SeedRow]) -> Any:
    """
    Value the owner's foreign key takes for `target`.

    A plural relationship is set with a list of rows; the owner references
    the first of them.

    Raises:
        SchemaInconsistencyError: If the target row lacks the referenced column
    """
    row = target[0] if isinstance(target, list) else target
    if association.referenced_column not in row:
        raise SchemaInconsistencyError(row.table, association.referenced_column, association.name)
    return row[association.referenced_column]
