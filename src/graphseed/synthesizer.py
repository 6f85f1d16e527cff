"""Attribute synthesis for a single row creation."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from faker import Faker

from graphseed.generators.base import BaseGenerator
from graphseed.generators.faker_generator import FakerGenerator
from graphseed.generators.registry import get_generator
from graphseed.generators.sequence import UniqueSequence
from graphseed.models import ColumnInfo, TableInfo

logger = logging.getLogger(__name__)


class AttributeSynthesizer:
    """
    Compute the final attribute set for one row.

    Caller-supplied values always win and are copied verbatim. For every other
    declared column:
      - store-generated columns are left out
      - foreign key columns are set to None (the relationship setter fills
        them in once the parent row exists)
      - remaining columns get a value from the active strategy; columns the
        strategy cannot produce a value for are left out

    Args:
        sequence: Unique value source (defaults to the process-wide sequence)
        fake: Faker instance to draw words, URLs and choices from
        url_scheme: Scheme of synthesized URLs
    """

    def __init__(
        self,
        sequence: UniqueSequence | None = None,
        fake: Faker | None = None,
        url_scheme: str = "http",
    ):
        self.faker_generator = FakerGenerator(sequence=sequence, fake=fake, url_scheme=url_scheme)
        self.sequence = self.faker_generator.sequence
        self._custom: dict[type, BaseGenerator] = {}

    def synthesize(
        self,
        columns: Iterable[ColumnInfo],
        overrides: Mapping[str, Any],
        foreign_keys: Iterable[str] = (),
        *,
        strategy: str = "faker",
        instance: int = 1,
        table_info: TableInfo | None = None,
    ) -> dict[str, Any]:
        """
        Merge overrides with synthesized values.

        Args:
            columns: Declared columns of the table
            overrides: Per-row values supplied by the caller
            foreign_keys: Foreign key columns of BELONGS_TO associations
            strategy: Generation strategy ("faker" or a registered name)
            instance: Row instance number passed to custom generators
            table_info: Table metadata passed to custom generators

        Returns:
            Attributes to create the row with

        Raises:
            UnknownStrategyError: If strategy is not registered
        """
        foreign_keys = set(foreign_keys)
        custom = self._custom_generator(strategy)
        row: dict[str, Any] = dict(overrides)

        for col in columns:
            if col.name in overrides:
                continue

            if col.is_auto_generated:
                continue

            if col.references is not None or col.name in foreign_keys:
                row[col.name] = None
                continue

            value = None
            if custom is not None:
                value = custom.generate(
                    col.name,
                    col.column_type,
                    column=col,
                    instance=instance,
                    row_data=row,
                    table_info=table_info,
                    sequence=self.sequence,
                )
            if value is None:
                value = self.faker_generator.generate(col.name, col.column_type, column=col)

            if value is None:
                logger.debug(
                    f"No value synthesized for column '{col.name}' "
                    f"(type: {col.column_type}); leaving it to the store default"
                )
                continue
            row[col.name] = value

        return row

    def _custom_generator(self, strategy: str) -> BaseGenerator | None:
        if strategy == "faker":
            return None
        generator_class = get_generator(strategy)
        if generator_class not in self._custom:
            self._custom[generator_class] = generator_class()
        return self._custom[generator_class]
