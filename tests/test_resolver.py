"""Tests for recursive BELONGS_TO resolution."""

import asyncio

import pytest

from graphseed import (
    AssociationInfo,
    AssociationKind,
    ColumnInfo,
    GraphResolver,
    ResolutionConfig,
    Schema,
    StagingBackend,
    TableInfo,
    generate,
)


@pytest.mark.asyncio
async def test_model_without_relationships(synthesizer):
    """Test a table without associations is created on its own."""
    schema = Schema()
    schema.define("ModelWithoutRelationship")
    backend = StagingBackend(schema)

    row = await generate(backend, "ModelWithoutRelationship", synthesizer=synthesizer)

    assert row.table == "ModelWithoutRelationship"
    assert row.id == 1
    assert row.generator == {}


@pytest.mark.asyncio
async def test_creates_parent(resolver, backend):
    """Test resolving a child creates the parent it belongs to."""
    child = await resolver.resolve("ModelChild")

    parent = child.generator["ModelParent"]
    assert parent.table == "ModelParent"
    assert child.ModelParent_id == parent.id
    assert len(backend.get_data("ModelParent")) == 1


@pytest.mark.asyncio
async def test_creates_multiple_parents(synthesizer):
    """Test every BELONGS_TO association of a row gets its own parent."""
    schema = Schema()
    schema.define("ModelChild")
    for i in range(10):
        schema.define(f"ModelParent{i}")
        schema.belongs_to("ModelChild", f"ModelParent{i}")
    backend = StagingBackend(schema)

    child = await generate(backend, "ModelChild", synthesizer=synthesizer)

    assert len(child.generator) == 10
    for i in range(10):
        parent = child.generator[f"ModelParent{i}"]
        assert parent.table == f"ModelParent{i}"
        assert child[f"ModelParent{i}_id"] == parent.id


@pytest.mark.asyncio
async def test_creates_grandparent(resolver, backend):
    """Test parents are resolved recursively."""
    child = await resolver.resolve("ModelChild")

    parent = child.generator["ModelParent"]
    grand_parent = parent.generator["ModelGrandParent"]
    assert grand_parent.table == "ModelGrandParent"
    assert parent.ModelGrandParent_id == grand_parent.id
    assert "ModelGrandParent" not in child.generator


@pytest.mark.asyncio
async def test_deep_chain_returns_root(synthesizer):
    """Test ten generations resolve and the first row is returned."""
    schema = Schema()
    for i in range(10):
        schema.define(f"Model{i}")
    for i in range(9):
        schema.belongs_to(f"Model{i}", f"Model{i + 1}")
    backend = StagingBackend(schema)

    root = await generate(backend, "Model0", synthesizer=synthesizer)

    assert root.table == "Model0"
    row = root
    for i in range(1, 10):
        row = row.generator[f"Model{i}"]
        assert row.table == f"Model{i}"
    assert row.generator == {}
    assert all(len(backend.get_data(f"Model{i}")) == 1 for i in range(10))


@pytest.mark.asyncio
async def test_only_ancestors_are_created(backend, synthesizer):
    """Test resolving a parent never creates children."""
    backend.schema.has_many("ModelParent", "ModelChild")

    parent = await generate(backend, "ModelParent", synthesizer=synthesizer)

    assert list(parent.generator) == ["ModelGrandParent"]
    assert backend.get_data("ModelChild") == []


@pytest.mark.asyncio
async def test_has_many_keeps_belongs_to_singular(backend, synthesizer):
    """Test an inverse declaration does not change the recorded parent."""
    backend.schema.has_many("ModelParent", "ModelChild")
    backend.schema.has_one("ModelGrandParent", "ModelParent")

    child = await generate(backend, "ModelChild", synthesizer=synthesizer)

    parent = child.generator["ModelParent"]
    assert parent.table == "ModelParent"
    assert parent.generator["ModelGrandParent"].table == "ModelGrandParent"


@pytest.mark.asyncio
async def test_plural_association_records_list(synthesizer):
    """Test a plural association is set with, and recorded as, a list."""
    schema = Schema()
    schema.define("Team")
    schema.define("Player")
    schema.belongs_to("Player", "Team", plural=True)
    backend = StagingBackend(schema)

    player = await generate(backend, "Player", synthesizer=synthesizer)

    teams = player.generator["Team"]
    assert isinstance(teams, list)
    assert len(teams) == 1
    assert player.Team_id == teams[0].id


@pytest.mark.asyncio
async def test_alias_names_relationship(synthesizer):
    """Test an aliased association is keyed by its alias."""
    schema = Schema()
    schema.define("ModelParent")
    schema.define("ModelChild")
    schema.belongs_to("ModelChild", "ModelParent", alias="Mother")
    schema.belongs_to("ModelChild", "ModelParent", alias="Father")
    backend = StagingBackend(schema)

    child = await generate(backend, "ModelChild", synthesizer=synthesizer)

    mother = child.generator["Mother"]
    father = child.generator["Father"]
    assert child.Mother_id == mother.id
    assert child.Father_id == father.id
    assert mother.id != father.id
    assert "ModelParent" not in child.generator


class TestAttributes:
    """Tests for caller-supplied attributes."""

    @pytest.mark.asyncio
    async def test_top_level_attributes(self, backend, synthesizer):
        child = await generate(
            backend, "ModelChild", synthesizer=synthesizer, attributes={"name": "Alice"}
        )
        assert child.name == "Alice"

    @pytest.mark.asyncio
    async def test_parent_attributes(self, backend, synthesizer):
        child = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            ModelParent={"attributes": {"name": "Bob"}},
        )
        assert child.generator["ModelParent"].name == "Bob"

    @pytest.mark.asyncio
    async def test_grandparent_attributes(self, backend, synthesizer):
        child = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            attributes={"name": "Carl"},
            ModelParent={"attributes": {"name": "Bob"}},
            ModelGrandParent={"attributes": {"name": "Dora"}},
        )

        parent = child.generator["ModelParent"]
        assert child.name == "Carl"
        assert parent.name == "Bob"
        assert parent.generator["ModelGrandParent"].name == "Dora"

    @pytest.mark.asyncio
    async def test_null_attribute(self, backend, synthesizer):
        """Test None is kept verbatim instead of being synthesized."""
        child = await generate(
            backend, "ModelChild", synthesizer=synthesizer, attributes={"name": None}
        )
        assert child.name is None

    @pytest.mark.asyncio
    async def test_positional_attributes(self, backend, synthesizer):
        children = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            count=3,
            attributes={"name": ["A", "B", "C"]},
        )
        assert [c.name for c in children] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_positional_parent_attributes(self, backend, synthesizer):
        """Test a nested sequence keeps its position across batch rows."""
        children = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            count=2,
            ModelParent={"attributes": {"name": ["P1", "P2"]}},
        )
        assert [c.generator["ModelParent"].name for c in children] == ["P1", "P2"]

    @pytest.mark.asyncio
    async def test_callable_attributes(self, backend, synthesizer):
        children = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            count=2,
            attributes={"name": lambda i: f"child-{i}"},
            ModelParent={"attributes": {"name": lambda: "parent"}},
        )

        assert [c.name for c in children] == ["child-1", "child-2"]
        assert all(c.generator["ModelParent"].name == "parent" for c in children)


class TestForeignKeys:
    """Tests for foreign key nulling, wiring and reuse."""

    @pytest.mark.asyncio
    async def test_foreign_key_created_null_then_set(self, schema, synthesizer):
        inserted = []

        class RecordingBackend(StagingBackend):
            async def insert_rows(self, table_info, rows):
                inserted.extend((table_info.name, dict(row)) for row in rows)
                return await super().insert_rows(table_info, rows)

        backend = RecordingBackend(schema)
        child = await generate(backend, "ModelChild", synthesizer=synthesizer)

        created_child = next(row for table, row in inserted if table == "ModelChild")
        assert created_child["ModelParent_id"] is None
        assert child.ModelParent_id == child.generator["ModelParent"].id

    @pytest.mark.asyncio
    async def test_existing_parent_by_key(self, backend, synthesizer):
        parent = await generate(backend, "ModelParent", synthesizer=synthesizer)

        child = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            attributes={"ModelParent_id": parent.id},
        )

        assert child.ModelParent_id == parent.id
        assert child.generator["ModelParent"] is parent
        assert len(backend.get_data("ModelParent")) == 1
        assert len(backend.get_data("ModelGrandParent")) == 1

    @pytest.mark.asyncio
    async def test_positional_foreign_keys(self, backend, synthesizer):
        parents = await generate(backend, "ModelParent", synthesizer=synthesizer, count=2)

        children = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            count=2,
            attributes={"ModelParent_id": [p.id for p in parents]},
        )

        assert [c.ModelParent_id for c in children] == [p.id for p in parents]
        assert len(backend.get_data("ModelParent")) == 2

    @pytest.mark.asyncio
    async def test_unknown_key_creates_parent(self, backend, synthesizer, caplog):
        """Test a key naming no row falls back to creating the parent."""
        child = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            attributes={"ModelParent_id": 999},
        )

        parent = child.generator["ModelParent"]
        assert parent.id != 999
        assert child.ModelParent_id == parent.id
        assert "matches no row" in caplog.text

    @pytest.mark.asyncio
    async def test_existing_parent_with_skipped_grandparent(self, backend, synthesizer):
        """Test skipping keeps a grandparent that is already wired."""
        parent = await generate(backend, "ModelParent", synthesizer=synthesizer)
        grand_parent_id = parent.ModelGrandParent_id

        child = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            attributes={"ModelParent_id": parent.id},
            ModelGrandParent=None,
        )

        assert child.generator["ModelParent"].ModelGrandParent_id == grand_parent_id
        assert len(backend.get_data("ModelGrandParent")) == 1


class TestSkip:
    """Tests for skipping associations with None."""

    @pytest.mark.asyncio
    async def test_skip_grandparent(self, backend, synthesizer):
        child = await generate(
            backend, "ModelChild", synthesizer=synthesizer, ModelGrandParent=None
        )

        parent = child.generator["ModelParent"]
        assert parent.ModelGrandParent_id is None
        assert "ModelGrandParent" not in parent.generator
        assert backend.get_data("ModelGrandParent") == []

    @pytest.mark.asyncio
    async def test_skip_prunes_branch(self, backend, synthesizer):
        """Test nothing below a skipped table is created."""
        child = await generate(backend, "ModelChild", synthesizer=synthesizer, ModelParent=None)

        assert child.ModelParent_id is None
        assert child.generator == {}
        assert backend.get_data("ModelParent") == []
        assert backend.get_data("ModelGrandParent") == []


class TestCount:
    """Tests for batch creation."""

    @pytest.mark.asyncio
    async def test_count_gives_sequential_rows(self, synthesizer):
        schema = Schema()
        schema.define("ModelWithoutRelationship")
        backend = StagingBackend(schema)

        rows = await generate(
            backend, "ModelWithoutRelationship", synthesizer=synthesizer, count=7
        )

        assert [row.id for row in rows] == [1, 2, 3, 4, 5, 6, 7]
        assert len({row.identity for row in rows}) == 7

    @pytest.mark.asyncio
    async def test_count_with_parent(self, backend, synthesizer):
        """Test every batch row gets its own parent and is its own root."""
        children = await generate(backend, "ModelChild", synthesizer=synthesizer, count=2)

        assert [c.table for c in children] == ["ModelChild", "ModelChild"]
        parent_ids = {c.ModelParent_id for c in children}
        assert len(parent_ids) == 2
        assert len(backend.get_data("ModelParent")) == 2
        assert len(backend.get_data("ModelGrandParent")) == 2

    @pytest.mark.asyncio
    async def test_count_with_skipped_grandparent(self, backend, synthesizer):
        children = await generate(
            backend, "ModelChild", synthesizer=synthesizer, count=2, ModelGrandParent=None
        )

        assert len(children) == 2
        assert len(backend.get_data("ModelParent")) == 2
        assert backend.get_data("ModelGrandParent") == []

    @pytest.mark.asyncio
    async def test_count_with_existing_parent(self, backend, synthesizer):
        parent = await generate(backend, "ModelParent", synthesizer=synthesizer)

        children = await generate(
            backend,
            "ModelChild",
            synthesizer=synthesizer,
            count=3,
            attributes={"ModelParent_id": parent.id},
        )

        assert all(c.ModelParent_id == parent.id for c in children)
        assert len(backend.get_data("ModelParent")) == 1

    @pytest.mark.asyncio
    async def test_count_one_returns_row(self, resolver):
        child = await resolver.resolve("ModelChild", ResolutionConfig(count=1))
        assert child.table == "ModelChild"


class TestPopulation:
    """Tests for type-driven values of created rows."""

    @pytest.mark.asyncio
    async def test_all_types_populated(self, synthesizer):
        schema = Schema()
        schema.define(
            "ModelPopulated",
            [
                ColumnInfo("integer_field", "INTEGER"),
                ColumnInfo("enum_field", "ENUM", values=("a", "b", "c")),
                ColumnInfo("string_field", "STRING"),
                ColumnInfo("string42_field", "STRING(42)"),
                ColumnInfo("char_field", "CHAR"),
                ColumnInfo("char32_field", "CHAR(32)"),
                ColumnInfo("small_field", "SMALLINT UNSIGNED"),
            ],
        )
        backend = StagingBackend(schema)

        rows = await generate(backend, "ModelPopulated", synthesizer=synthesizer, count=2)

        for row in rows:
            assert isinstance(row.integer_field, int)
            assert isinstance(row.small_field, int)
            assert row.enum_field in ("a", "b", "c")
            for column in ("string_field", "string42_field", "char_field", "char32_field"):
                assert isinstance(row[column], str)
        assert rows[0].string_field != rows[1].string_field
        assert rows[0].char32_field != rows[1].char32_field

    @pytest.mark.asyncio
    async def test_url_column(self, synthesizer):
        schema = Schema()
        schema.define("ModelWithUrl", [ColumnInfo("website", "string", is_url=True)])
        backend = StagingBackend(schema)

        row = await generate(backend, "ModelWithUrl", synthesizer=synthesizer)

        assert row.website.startswith("http://")


@pytest.mark.asyncio
async def test_existing_row_as_target(resolver, backend):
    """Test resolving a persisted row fills in its missing parents."""
    table_info = await backend.get_table_info("ModelChild")
    [child] = await backend.insert_rows(table_info, [{"name": "orphan"}])

    root = await resolver.resolve(child)

    assert root is child
    assert child.ModelParent_id == child.generator["ModelParent"].id


@pytest.mark.asyncio
async def test_descent_is_sequential(synthesizer):
    """Test one parent's subtree completes before the next one starts."""
    schema = Schema()
    for name in ("ModelChild", "ModelMother", "ModelFather", "ModelGrandParent"):
        schema.define(name)
    schema.belongs_to("ModelChild", "ModelMother")
    schema.belongs_to("ModelChild", "ModelFather")
    schema.belongs_to("ModelMother", "ModelGrandParent")
    schema.belongs_to("ModelFather", "ModelGrandParent")

    class YieldingBackend(StagingBackend):
        async def get_table_info(self, name):
            await asyncio.sleep(0)
            return await super().get_table_info(name)

    class RecordingResolver(GraphResolver):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self.events = []

        async def _resolve_row(self, row, config, path):
            self.events.append(("enter", row.table))
            result = await super()._resolve_row(row, config, path)
            self.events.append(("exit", row.table))
            return result

    resolver = RecordingResolver(YieldingBackend(schema), synthesizer)
    await resolver.resolve("ModelChild")

    mother_exit = resolver.events.index(("exit", "ModelMother"))
    father_enter = resolver.events.index(("enter", "ModelFather"))
    assert mother_exit < father_enter


class TestCallScope:
    """Tests for per-call resolution state."""

    @pytest.mark.asyncio
    async def test_config_reused_across_calls(self, resolver, backend):
        """Test each call gets its own root, arena and sequence positions."""
        config = ResolutionConfig(attributes={"name": ["first"]})

        parent = await resolver.resolve("ModelParent", config)
        child = await resolver.resolve("ModelChild", config)

        assert parent.table == "ModelParent"
        assert child.table == "ModelChild"
        assert parent.name == child.name == "first"
        assert child.ModelParent_id == child.generator["ModelParent"].id
        assert config.root_instance is None
        assert len(backend.get_data("ModelGrandParent")) == 2

    @pytest.mark.asyncio
    async def test_nested_config_reused_across_calls(self, resolver):
        config = ResolutionConfig.from_options(ModelParent={"attributes": {"name": ["P1"]}})

        first = await resolver.resolve("ModelChild", config)
        second = await resolver.resolve("ModelChild", config)

        assert first.generator["ModelParent"].name == "P1"
        assert second.generator["ModelParent"].name == "P1"


@pytest.mark.asyncio
async def test_rows_without_primary_key(synthesizer):
    """Test every row of a key-less table gets its parents."""
    schema = Schema()
    schema.define("ModelParent")
    schema.add_table(
        TableInfo(
            name="Link",
            columns=[ColumnInfo("ModelParent_id", "integer", references="ModelParent")],
            associations=[
                AssociationInfo(AssociationKind.BELONGS_TO, "ModelParent", "ModelParent_id")
            ],
        )
    )
    backend = StagingBackend(schema)

    links = await generate(backend, "Link", synthesizer=synthesizer, count=2)

    assert [link.ModelParent_id for link in links] == [1, 2]
    assert all("ModelParent" in link.generator for link in links)
