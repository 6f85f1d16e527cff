"""Pytest configuration and shared fixtures."""

import pytest
from faker import Faker

from graphseed import (
    AttributeSynthesizer,
    ColumnInfo,
    GraphResolver,
    Schema,
    StagingBackend,
    clear_generators,
)
from graphseed.generators.sequence import UniqueSequence


@pytest.fixture
def schema() -> Schema:
    """
    Three-generation model graph.

    ModelChild -> ModelParent -> ModelGrandParent, every table with a
    string `name` column.
    """
    schema = Schema()
    schema.define("ModelGrandParent", [ColumnInfo("name", "string")])
    schema.define("ModelParent", [ColumnInfo("name", "string")])
    schema.define("ModelChild", [ColumnInfo("name", "string")])
    schema.belongs_to("ModelParent", "ModelGrandParent")
    schema.belongs_to("ModelChild", "ModelParent")
    return schema


@pytest.fixture
def backend(schema: Schema) -> StagingBackend:
    return StagingBackend(schema)


@pytest.fixture
def synthesizer() -> AttributeSynthesizer:
    """Synthesizer with its own sequence and a seeded Faker."""
    fake = Faker()
    fake.seed_instance(1234)
    return AttributeSynthesizer(sequence=UniqueSequence(), fake=fake)


@pytest.fixture
def resolver(backend: StagingBackend, synthesizer: AttributeSynthesizer) -> GraphResolver:
    return GraphResolver(backend, synthesizer)


@pytest.fixture(autouse=True)
def _reset_generators():
    """Registered strategies never leak between tests."""
    yield
    clear_generators()
