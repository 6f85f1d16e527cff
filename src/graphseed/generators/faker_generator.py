"""Faker-based data generator."""

from typing import Any

from faker import Faker

from graphseed.generators.base import BaseGenerator
from graphseed.generators.sequence import UniqueSequence, default_sequence

INTEGER_TYPES = frozenset(
    {"integer", "int", "bigint", "smallint", "tinyint", "mediumint", "serial", "bigserial"}
)

STRING_TYPES = frozenset(
    {"string", "text", "varchar", "character varying", "char", "character", "citext"}
)

ENUM_TYPES = frozenset({"enum", "user-defined"})


class FakerGenerator(BaseGenerator):
    """
    Generate values by declared column type using the Faker library.

    Integers come from the unique sequence, strings are unique tokens
    ("<word>-<n>"), URL columns get a token appended to a fake URL and
    enumerated columns pick one of their declared values. Any other type
    yields None (the store's default applies).
    """

    def __init__(
        self,
        sequence: UniqueSequence | None = None,
        fake: Faker | None = None,
        url_scheme: str = "http",
    ):
        self.sequence = sequence or default_sequence
        self.fake = fake or Faker()
        self.url_scheme = url_scheme

    def generate(self, column_name: str, column_type: str, **context: Any) -> Any:
        """Generate data for a column based on its type and hints."""
        column = context.get("column")
        values = getattr(column, "values", None)
        base_type = column.base_type if column is not None else column_type.lower()

        if values:
            return self.fake.random_element(elements=values)
        if base_type in ENUM_TYPES:
            # Enumerated type without declared values
            return None

        if base_type in INTEGER_TYPES:
            return self.sequence.next_value()

        if base_type in STRING_TYPES:
            token = self.token()
            if getattr(column, "is_url", False):
                return f"{self.fake.url(schemes=[self.url_scheme])}{token}"
            return token

        return None

    def token(self) -> str:
        """Unique opaque string, e.g. 'maybe-42'."""
        return f"{self.fake.word()}-{self.sequence.next_value()}"
