"""Custom exceptions with helpful error messages."""


class GraphSeedError(Exception):
    """Base exception for graphseed errors."""

    pass


class ConfigurationError(GraphSeedError):
    """Resolution configuration cannot be honored."""

    pass


class InvalidOverrideError(ConfigurationError):
    """Per-table override has an unrecognized shape."""

    def __init__(self, table: str, value: object):
        super().__init__(
            f"Invalid override for table '{table}': {value!r}.\n\n"
            f"Suggestions:\n"
            f"1. Use None to skip the association:\n"
            f"   overrides={{'{table}': None}}\n"
            f"2. Use 'shared' or 'any' to reuse rows:\n"
            f"   overrides={{'{table}': 'shared'}}\n"
            f"3. Use a nested configuration:\n"
            f"   overrides={{'{table}': {{'attributes': {{'name': 'Acme'}}}}}}"
        )


class NoExistingRowsError(ConfigurationError):
    """'any' reuse mode requested for a table without rows."""

    def __init__(self, table: str):
        super().__init__(
            f"Cannot reuse an existing row of '{table}': the table is empty.\n\n"
            f"Suggestions:\n"
            f"1. Populate '{table}' before resolving:\n"
            f"   await generate(backend, '{table}', count=N)\n"
            f"2. Use 'shared' to create a row when none exists:\n"
            f"   overrides={{'{table}': 'shared'}}"
        )


class AttributeSequenceError(ConfigurationError):
    """Positional attribute sequence is shorter than the number of rows."""

    def __init__(self, column: str, table: str, length: int, position: int):
        super().__init__(
            f"Attribute sequence for column '{column}' in table '{table}' has "
            f"{length} values, but value #{position + 1} was requested.\n\n"
            f"Suggestions:\n"
            f"1. Provide at least as many values as rows to create\n"
            f"2. Use a callable to compute values per instance:\n"
            f"   attributes={{'{column}': lambda i: f'{column}-{{i}}'}}"
        )


class UnknownStrategyError(ConfigurationError):
    """Generation strategy is not registered."""

    def __init__(self, strategy: str, available: list[str]):
        available_str = ", ".join(["'faker'", *(repr(name) for name in available)])
        super().__init__(
            f"Unknown strategy '{strategy}'. Available: {available_str}.\n\n"
            f"Suggestions:\n"
            f"1. Check strategy name spelling\n"
            f"2. Register a custom generator first:\n"
            f"   register_generator('{strategy}', MyGenerator)"
        )


class TableNotFoundError(GraphSeedError):
    """Table is not declared in the schema."""

    def __init__(self, table: str, schema: str):
        super().__init__(
            f"Table '{table}' not found in schema '{schema}'.\n\n"
            f"Suggestions:\n"
            f"1. Check table name spelling\n"
            f"2. Declare the table before resolving: schema.define('{table}', [...])\n"
            f"3. For PostgreSQL, ensure table exists: CREATE TABLE {schema}.{table} (...);"
        )


class SchemaNotFoundError(GraphSeedError):
    """Schema does not exist in database."""

    def __init__(self, schema: str):
        super().__init__(
            f"Schema '{schema}' not found in database.\n\n"
            f"Suggestions:\n"
            f"1. Check schema name spelling\n"
            f"2. Ensure schema exists: CREATE SCHEMA {schema};\n"
            f"3. Check database connection settings"
        )


class SchemaInconsistencyError(GraphSeedError, AttributeError):
    """Association refers to a column missing from the row's table."""

    def __init__(self, table: str, column: str, association: str):
        super().__init__(
            f"Association '{association}' refers to column '{column}', "
            f"which does not exist on table '{table}'.\n\n"
            f"Suggestions:\n"
            f"1. Check the association's foreign_key spelling\n"
            f"2. Declare the column on '{table}' or let belongs_to() add it"
        )
