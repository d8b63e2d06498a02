"""
Schema generation pipeline.

Wires the fragment merger, resolver differ and compiler, assembler,
disabled-field filter and federation adapter together. Every call builds
fresh fragments, tables and schemas from its arguments.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from graphql import GraphQLSchema, print_schema
from pydantic import BaseModel, ConfigDict, field_validator

from ..config import Settings
from ..logging import get_logger
from .assembler import assemble_schema, empty_schema
from .builtins import BuiltinFragments, default_builtins
from .compiler import ResolverCompiler
from .entities import EntityRegistry, Policy
from .federation import federate_schema
from .filtering import filter_disabled_fields
from .fragments import FragmentProvider, SchemaFragment, collect_fragments, default_fragment, merge_fragments
from .resolvers import ResolverTable, coerce_table, diff_resolvers, merge_resolver_tables

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineConfig:
    is_federated: bool = False
    shadow_crud: bool = True
    production: bool = False
    amount_limit: int | None = 100
    artifact_path: str = "exports/graphql/schema.graphql"
    app_dir: str = "."

    @classmethod
    def from_settings(cls, settings: Settings) -> PipelineConfig:
        return cls(
            is_federated=settings.is_federated,
            shadow_crud=settings.shadow_crud,
            production=settings.is_production,
            amount_limit=settings.amount_limit,
            artifact_path=settings.artifact_path,
            app_dir=settings.app_dir,
        )


class CustomSchemaConfig(BaseModel):
    """Hand-written part of the schema.

    Attributes:
        definition: Type definitions (SDL)
        query: Extra Query fields (SDL field definitions)
        mutation: Extra Mutation fields (SDL field definitions)
        resolver: Resolver table; raw values are coerced into resolver entries
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    definition: str = ""
    query: str = ""
    mutation: str = ""
    resolver: dict[str, Any] = {}

    @field_validator("definition", "query", "mutation", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or ""

    @field_validator("resolver", mode="before")
    @classmethod
    def _coerce_resolver(cls, value: Any) -> ResolverTable:
        return coerce_table(value)

    def as_fragment(self) -> SchemaFragment:
        return SchemaFragment(
            type_sdl=self.definition,
            query_fields_sdl=self.query,
            mutation_fields_sdl=self.mutation,
            resolvers=self.resolver,
        )


def write_schema_artifact(schema: GraphQLSchema, path: Path) -> bool:
    """Write the printed schema to ``path``.

    Best effort: failures are logged and reported through the return value,
    never raised.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(print_schema(schema), encoding="utf-8")
    except OSError as e:
        logger.warning("Failed to write GraphQL schema artifact", path=str(path), error=str(e))
        return False

    logger.debug("Wrote GraphQL schema artifact", path=str(path))
    return True


def generate_schema(
    fragments: Sequence[SchemaFragment],
    custom: CustomSchemaConfig,
    config: PipelineConfig,
    entities: EntityRegistry | None = None,
    policies: Mapping[str, Policy] | None = None,
) -> GraphQLSchema:
    """Compose the executable schema.

    Args:
        fragments: Model-derived fragments, in order
        custom: Hand-written definition and resolvers
        config: Pipeline options
        entities: Entities declarative resolvers may target
        policies: Access policies declarative resolvers may name

    Returns:
        The executable (or federated) schema, or :func:`empty_schema` when
        neither the models nor the custom definition declare any type

    Raises:
        SchemaBuildError: The assembled SDL does not compile
        ResolverSpecError: A custom resolver cannot be compiled
        FederationBuildError: The federated recompilation fails
    """
    models = merge_fragments(fragments) if config.shadow_crud else default_fragment()
    custom_fragment = custom.as_fragment()

    if models.is_empty and custom_fragment.is_empty:
        logger.info("No models and no custom definition, returning empty schema")
        return empty_schema()

    builtins: BuiltinFragments = default_builtins(f"{custom.definition}\n{models.type_sdl}")

    generated = merge_resolver_tables(models.resolvers, builtins.polymorphic_union.resolvers)
    diff = diff_resolvers(custom_fragment.resolvers, generated)

    compiler = ResolverCompiler(entities, policies, config.amount_limit)
    extra = compiler.compile(diff)

    resolvers = merge_resolver_tables(
        generated,
        builtins.publication_state.resolvers,
        builtins.scalars,
        extra,
    )

    schema = assemble_schema(
        models,
        custom_fragment,
        resolvers,
        builtins=builtins,
        is_federated=config.is_federated,
    )
    generated_schema = filter_disabled_fields(schema, diff)

    if config.is_federated:
        generated_schema = federate_schema(generated_schema, resolvers)

    if not config.production:
        write_schema_artifact(generated_schema, Path(config.app_dir) / config.artifact_path)

    return generated_schema


def generate_schema_from_providers(
    providers: Iterable[FragmentProvider],
    custom: CustomSchemaConfig,
    config: PipelineConfig,
    entities: EntityRegistry | None = None,
    policies: Mapping[str, Policy] | None = None,
) -> GraphQLSchema:
    """Collect fragments from ``providers`` once, then run :func:`generate_schema`."""
    fragments = collect_fragments(providers) if config.shadow_crud else []
    return generate_schema(fragments, custom, config, entities, policies)
