"""In-memory schema declarations."""

from graphseed.exceptions import TableNotFoundError
from graphseed.models import AssociationInfo, AssociationKind, ColumnInfo, TableInfo


class Schema:
    """
    Registry of declared tables and their associations.

    Used by backends that cannot introspect a database (StagingBackend) and
    by tests that describe a model graph by hand.

    Example:
        >>> schema = Schema()
        >>> schema.define("ModelParent", [ColumnInfo("name", "string")])
        >>> schema.define("ModelChild", [])
        >>> schema.belongs_to("ModelChild", "ModelParent")
        >>> schema.get_table_info("ModelChild").foreign_key_columns
        {'ModelParent_id'}
    """

    def __init__(self, name: str = "staging"):
        self.name = name
        self._tables: dict[str, TableInfo] = {}

    def define(
        self,
        name: str,
        columns: list[ColumnInfo] | None = None,
        primary_key: str = "id",
    ) -> TableInfo:
        """
        Declare a table.

        An auto-generated integer primary key named `primary_key` is added
        unless one of the columns is already a primary key.

        Args:
            name: Table name
            columns: Column declarations
            primary_key: Name of the implicit primary key column

        Returns:
            The declared TableInfo
        """
        columns = list(columns or [])
        if not any(col.is_primary_key for col in columns):
            columns.insert(
                0,
                ColumnInfo(
                    name=primary_key,
                    column_type="integer",
                    is_nullable=False,
                    is_primary_key=True,
                    is_auto_generated=True,
                ),
            )
        table_info = TableInfo(name=name, columns=columns)
        self._tables[name] = table_info
        return table_info

    def belongs_to(
        self,
        owner: str,
        target: str,
        foreign_key: str | None = None,
        alias: str | None = None,
        plural: bool = False,
    ) -> AssociationInfo:
        """
        Declare that rows of `owner` reference one row of `target`.

        The foreign key column ("<alias or target>_id" unless given) is added
        to the owner when it is not declared yet. A plural association is set
        with, and recorded as, a list of target rows.
        """
        owner_info = self.get_table_info(owner)
        target_info = self.get_table_info(target)

        association = AssociationInfo(
            kind=AssociationKind.BELONGS_TO,
            target=target,
            foreign_key=foreign_key or f"{alias or target}_id",
            referenced_column=target_info.pk_column or "id",
            alias=alias,
            plural=plural,
        )
        if not owner_info.has_column(association.foreign_key):
            owner_info.columns.append(
                ColumnInfo(
                    name=association.foreign_key,
                    column_type="integer",
                    references=target,
                )
            )
        owner_info.associations.append(association)
        return association

    def has_many(self, owner: str, target: str, foreign_key: str | None = None) -> AssociationInfo:
        """Declare the one-to-many inverse side (rows of `target` reference `owner`)."""
        return self._inverse(AssociationKind.HAS_MANY, owner, target, foreign_key)

    def has_one(self, owner: str, target: str, foreign_key: str | None = None) -> AssociationInfo:
        """Declare the one-to-one inverse side (one row of `target` references `owner`)."""
        return self._inverse(AssociationKind.HAS_ONE, owner, target, foreign_key)

    def _inverse(
        self,
        kind: AssociationKind,
        owner: str,
        target: str,
        foreign_key: str | None,
    ) -> AssociationInfo:
        owner_info = self.get_table_info(owner)
        self.get_table_info(target)
        association = AssociationInfo(
            kind=kind,
            target=target,
            foreign_key=foreign_key or f"{owner}_id",
            referenced_column=owner_info.pk_column or "id",
        )
        owner_info.associations.append(association)
        return association

    def add_table(self, table_info: TableInfo) -> None:
        """Register a fully described table as-is."""
        self._tables[table_info.name] = table_info

    def get_table_info(self, name: str) -> TableInfo:
        """
        Get table metadata.

        Raises:
            TableNotFoundError: If the table is not declared
        """
        if name not in self._tables:
            raise TableNotFoundError(name, self.name)
        return self._tables[name]

    def get_tables(self) -> list[TableInfo]:
        return list(self._tables.values())
