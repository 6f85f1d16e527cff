"""
graphseed - Test Fixtures for Relational Model Graphs

Creates rows of a table together with every row they belong to, with
type-driven attribute synthesis and per-table reuse modes.
"""

from graphseed.backends.staging import StagingBackend
from graphseed.config import Config
from graphseed.exceptions import (
    ConfigurationError,
    GraphSeedError,
    SchemaInconsistencyError,
    TableNotFoundError,
)
from graphseed.generators.base import BaseGenerator
from graphseed.generators.registry import (
    clear_generators,
    list_generators,
    register_generator,
)
from graphseed.models import (
    ANY,
    SHARED,
    AssociationInfo,
    AssociationKind,
    ColumnInfo,
    ResolutionConfig,
    SeedRow,
    TableInfo,
)
from graphseed.resolver import GraphResolver, generate
from graphseed.schema import Schema
from graphseed.synthesizer import AttributeSynthesizer

__version__ = "0.1.0"

__all__ = [
    "generate",
    "GraphResolver",
    "ResolutionConfig",
    "AttributeSynthesizer",
    "Schema",
    "StagingBackend",
    "Config",
    "ColumnInfo",
    "TableInfo",
    "AssociationInfo",
    "AssociationKind",
    "SeedRow",
    "SHARED",
    "ANY",
    "BaseGenerator",
    "register_generator",
    "list_generators",
    "clear_generators",
    "GraphSeedError",
    "ConfigurationError",
    "TableNotFoundError",
    "SchemaInconsistencyError",
]
