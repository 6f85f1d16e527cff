"""Graph resolution: create a row and, recursively, the rows it belongs to.

Example:
    >>> schema = Schema()
    >>> schema.define("Person", [ColumnInfo("name", "string")])
    >>> schema.define("Pet", [ColumnInfo("name", "string")])
    >>> schema.belongs_to("Pet", "Person")
    >>> pet = await generate(StagingBackend(schema), "Pet")
    >>> pet.generator["Person"].id == pet.Person_id
    True
"""

import asyncio
import logging
import random
from typing import Any

from graphseed.backends.base import Backend
from graphseed.config import DEFAULT_CONFIG, Config
from graphseed.exceptions import NoExistingRowsError
from graphseed.models import (
    AssociationInfo,
    ResolutionConfig,
    ResolutionMode,
    SeedRow,
    TableInfo,
)
from graphseed.synthesizer import AttributeSynthesizer

logger = logging.getLogger(__name__)


class GraphResolver:
    """
    Build a persisted, referentially consistent row graph.

    For every BELONGS_TO association of a row the resolver obtains a target
    row (create, reuse by key, shared, any existing, or skip), wires the
    foreign key through the backend and then resolves the target row's own
    associations with the same configuration.

    Concurrency contract:
        - the associations of one row are resolved concurrently, and all of
          them complete before any recursive descent starts
        - recursive descent runs one row at a time
        - rows of a batch (count > 1) are resolved one at a time

    Args:
        backend: Persistence backend
        synthesizer: Attribute synthesizer (default: faker strategy, process-wide sequence)
    """

    def __init__(self, backend: Backend, synthesizer: AttributeSynthesizer | None = None):
        self.backend = backend
        self.synthesizer = synthesizer or AttributeSynthesizer()
        self._shared_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_config(cls, backend: Backend, config: Config | None = None) -> "GraphResolver":
        """Resolver whose synthesizer follows `config` (default: DEFAULT_CONFIG)."""
        config = config or DEFAULT_CONFIG
        return cls(backend, synthesizer=config.build_synthesizer())

    async def resolve(
        self,
        target: str | TableInfo | SeedRow,
        config: ResolutionConfig | None = None,
    ) -> SeedRow | list[SeedRow]:
        """
        Resolve a table (creating rows) or an existing row.

        Args:
            target: Table name, TableInfo, or an already persisted row
            config: Resolution options (default: one row, no overrides). The
                config itself is not modified; each call runs on a fresh copy

        Returns:
            The root row, or a list of root rows when config.count > 1

        Raises:
            GraphSeedError: On configuration errors
            Exception: Backend failures propagate unchanged; rows created
                before the failure are not removed
        """
        config = (config or ResolutionConfig()).for_call()

        if isinstance(target, SeedRow):
            rows = [target]
        else:
            table_info = target if isinstance(target, TableInfo) else (
                await self.backend.get_table_info(target)
            )
            rows = await self._materialize(table_info, config)

        if len(rows) == 1:
            return await self._resolve_row(rows[0], config, path=())

        # One branch per row, each pinned to its own root
        roots = []
        for row in rows:
            roots.append(await self._resolve_row(row, config.branch(), path=()))
        return roots

    async def _materialize(self, table_info: TableInfo, config: ResolutionConfig) -> list[SeedRow]:
        """Create config.count rows of the top-level table."""
        attribute_rows = config.take_attributes(table_info.name, config.count)
        rows = [
            self._synthesize(
                table_info, attributes, config.strategy, config.next_instance(table_info.name)
            )
            for attributes in attribute_rows
        ]
        created = await self.backend.insert_rows(table_info, rows)
        logger.debug(f"Created {len(created)} row(s) of '{table_info.name}'")
        return created

    def _synthesize(
        self,
        table_info: TableInfo,
        attributes: dict[str, Any],
        strategy: str,
        instance: int = 1,
    ) -> dict[str, Any]:
        return self.synthesizer.synthesize(
            table_info.columns,
            attributes,
            table_info.foreign_key_columns,
            strategy=strategy,
            instance=instance,
            table_info=table_info,
        )

    async def _resolve_row(
        self,
        row: SeedRow,
        config: ResolutionConfig,
        path: tuple[str, ...],
    ) -> SeedRow:
        """Resolve the BELONGS_TO associations of `row`, then descend into the targets."""
        # Pin before the first suspension point
        if config.root_instance is None:
            config.root_instance = row

        if config.is_resolved(row):
            return config.root_instance
        config.mark_resolved(row)

        table_info = await self.backend.get_table_info(row.table)
        path = (*path, row.table)

        associations = []
        for association in table_info.belongs_to:
            if association.target in path:
                logger.debug(
                    f"Not resolving '{row.table}.{association.name}': "
                    f"'{association.target}' is already on the path {' -> '.join(path)}"
                )
                continue
            associations.append(association)

        targets = await self._gather_associations(row, associations, config)

        for association, target in zip(associations, targets):
            if target is not None:
                row.generator[association.name] = [target] if association.plural else target

        # One recursive resolution in flight at a time
        for target in targets:
            if target is None:
                continue
            target_info = await self.backend.get_table_info(target.table)
            if target_info.associations:
                await self._resolve_row(target, config, path)

        return config.root_instance

    async def _gather_associations(
        self,
        owner: SeedRow,
        associations: list[AssociationInfo],
        config: ResolutionConfig,
    ) -> list[SeedRow | None]:
        """
        Resolve associations concurrently.

        When one of them fails the others are cancelled and awaited before
        the error propagates, so nothing keeps writing after the call fails.
        """
        tasks = [
            asyncio.ensure_future(self._resolve_association(owner, association, config))
            for association in associations
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _resolve_association(
        self,
        owner: SeedRow,
        association: AssociationInfo,
        config: ResolutionConfig,
    ) -> SeedRow | None:
        mode = config.mode_for(association.target)
        if mode is ResolutionMode.SKIP:
            logger.debug(f"Skipping '{owner.table}.{association.name}' as configured")
            return None

        target_info = await self.backend.get_table_info(association.target)

        if mode is ResolutionMode.SHARED:
            target = await self._shared_row(target_info, config)
        elif mode is ResolutionMode.ANY:
            target = await self._any_row(target_info)
        else:
            target = await self._keyed_row(owner, association, target_info, config)

        await self.backend.set_related(
            owner, association, [target] if association.plural else target
        )
        return target

    async def _shared_row(self, target_info: TableInfo, config: ResolutionConfig) -> SeedRow:
        """First existing row of the table, created once when there is none."""
        lock = self._shared_locks.setdefault(target_info.name, asyncio.Lock())
        async with lock:
            row = await self.backend.find_or_create(
                target_info,
                where={},
                defaults=self._synthesize(
                    target_info, {}, config.strategy, config.next_instance(target_info.name)
                ),
            )
        logger.info(f"Using shared row {row.pk!r} of '{target_info.name}'")
        return row

    async def _any_row(self, target_info: TableInfo) -> SeedRow:
        rows = await self.backend.fetch_all(target_info)
        if not rows:
            raise NoExistingRowsError(target_info.name)
        row = random.choice(rows)
        logger.info(f"Reusing existing row {row.pk!r} of '{target_info.name}'")
        return row

    async def _keyed_row(
        self,
        owner: SeedRow,
        association: AssociationInfo,
        target_info: TableInfo,
        config: ResolutionConfig,
    ) -> SeedRow:
        """Row named by the owner's foreign key; a new row when there is none."""
        key = owner.get(association.foreign_key)
        if key is not None:
            existing = await self.backend.fetch_by_key(
                target_info, association.referenced_column, key
            )
            if existing is not None:
                return existing
            logger.warning(
                f"'{owner.table}.{association.foreign_key}' = {key!r} matches no row of "
                f"'{target_info.name}'; creating a new one"
            )

        nested = config.nested_for(target_info.name)
        if nested is not None:
            attributes = nested.take_attributes(target_info.name, 1)[0]
            strategy = nested.strategy
        else:
            attributes, strategy = {}, config.strategy

        instance = config.next_instance(target_info.name)
        created = await self.backend.insert_rows(
            target_info, [self._synthesize(target_info, attributes, strategy, instance)]
        )
        return created[0]


async def generate(
    backend: Backend,
    target: str | TableInfo | SeedRow,
    *,
    synthesizer: AttributeSynthesizer | None = None,
    **options: Any,
) -> SeedRow | list[SeedRow]:
    """
    Resolve `target` with keyword options.

    Options `attributes`, `count` and `strategy` configure the top-level
    table; every other keyword is a per-table override.

    Example:
        >>> child = await generate(backend, "ModelChild", ModelGrandParent=None)
        >>> children = await generate(
        ...     backend, "ModelChild", count=2, attributes={"name": ["A", "B"]}
        ... )
    """
    config = ResolutionConfig.from_options(**options)
    return await GraphResolver(backend, synthesizer).resolve(target, config)
