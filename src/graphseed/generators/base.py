"""Base generator interface."""

from abc import ABC, abstractmethod
from typing import Any


class BaseGenerator(ABC):
    """
    Base class for custom generators.

    Subclass this to create custom data generators that can be registered
    and selected with the `strategy` option of a resolution.

    Example:
        >>> class SKUGenerator(BaseGenerator):
        ...     def generate(self, column_name, column_type, **context):
        ...         if column_name != "sku":
        ...             return None  # fall back to faker
        ...         return f"SKU-{context['instance']:06d}"
        >>>
        >>> register_generator('sku', SKUGenerator)
        >>> await generate(backend, "Product", count=100, strategy="sku")
    """

    @abstractmethod
    def generate(self, column_name: str, column_type: str, **context: Any) -> Any:
        """
        Generate a value for a column.

        Args:
            column_name: Column name being generated
            column_type: Declared type tag of the column
            **context: Additional context:
                - column: ColumnInfo of the column
                - instance: Row instance number (1-based, per table and call)
                - row_data: Attributes already computed for the current row
                - table_info: TableInfo for current table (may be None)
                - sequence: UniqueSequence used by the synthesizer

        Returns:
            Generated value, or None to let the faker strategy handle the column
        """
        pass
