"""
Schema assembler: concatenates every SDL source and compiles it together with
the resolver table into an executable schema.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ariadne import InterfaceType, ObjectType, UnionType, make_executable_schema
from ariadne.contrib.federation import FederatedObjectType
from ariadne.types import SchemaBindable
from ariadne.utils import type_get_extension
from graphql import (
    GraphQLError,
    GraphQLInterfaceType,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLUnionType,
    validate_schema,
)

from ..errors import SchemaBuildError
from ..logging import get_logger
from .builtins import FEDERATION_SDL, BuiltinFragments
from .definitions import annotate_root_fields
from .fragments import SchemaFragment
from .resolvers import (
    IS_TYPE_OF_KEY,
    MUTATION_TYPE,
    QUERY_TYPE,
    RESOLVE_REFERENCE_KEY,
    RESOLVE_TYPE_KEY,
    DeclarativeSpec,
    Disabled,
    ExecutableBinding,
    ResolverTable,
    is_field_map,
)

logger = get_logger(__name__)

# Type extension read by ariadne's federation `_entities` resolver
REFERENCE_HOOK_ATTR = "__resolve_reference__"


def empty_schema() -> GraphQLSchema:
    """Schema value returned when there is nothing to compose."""
    return GraphQLSchema()


def is_empty_schema(schema: GraphQLSchema) -> bool:
    return schema.query_type is None and schema.mutation_type is None


def get_reference_hook(graphql_type: GraphQLNamedType | None) -> Callable[..., Any] | None:
    if graphql_type is None:
        return None
    return type_get_extension(graphql_type, REFERENCE_HOOK_ATTR)


def _callable(type_name: str, field_name: str, entry: Any) -> Any:
    if isinstance(entry, ExecutableBinding):
        return entry.resolve
    if isinstance(entry, DeclarativeSpec):
        raise ValueError(f"{type_name}.{field_name} is a declarative resolver that was never compiled")
    if callable(entry):
        return entry
    raise ValueError(f"Unsupported resolver for {type_name}.{field_name}: {entry!r}")


class ResolverTableBindable(SchemaBindable):
    """Binds a whole resolver table to a schema.

    Field maps are bound through ariadne's object, interface and union
    bindables depending on the kind of the schema type; scalar and enum
    entries are already ariadne bindables and bind themselves. Disabled
    entries are skipped since the field is removed afterwards.
    """

    def __init__(self, resolvers: ResolverTable):
        self.resolvers = resolvers

    def bind_to_schema(self, schema: GraphQLSchema) -> None:
        for type_name, entry in self.resolvers.items():
            if not is_field_map(entry):
                entry.bind_to_schema(schema)
                continue

            graphql_type = schema.type_map.get(type_name)
            if graphql_type is None:
                raise ValueError(f"Type {type_name} has resolvers but is not defined in the schema")

            fields = {
                name: _callable(type_name, name, value)
                for name, value in entry.items()
                if not isinstance(value, Disabled)
            }

            if isinstance(graphql_type, GraphQLUnionType):
                UnionType(type_name, fields.pop(RESOLVE_TYPE_KEY, None)).bind_to_schema(schema)
            elif isinstance(graphql_type, GraphQLInterfaceType):
                bindable = InterfaceType(type_name, fields.pop(RESOLVE_TYPE_KEY, None))
                for name, resolver in fields.items():
                    bindable.set_field(name, resolver)
                bindable.bind_to_schema(schema)
            elif isinstance(graphql_type, GraphQLObjectType):
                reference_hook = fields.pop(RESOLVE_REFERENCE_KEY, None)
                is_type_of = fields.pop(IS_TYPE_OF_KEY, None)
                if reference_hook is not None:
                    bindable = FederatedObjectType(type_name)
                    bindable.reference_resolver(reference_hook)
                else:
                    bindable = ObjectType(type_name)
                for name, resolver in fields.items():
                    bindable.set_field(name, resolver)
                bindable.bind_to_schema(schema)
                if is_type_of is not None:
                    graphql_type.is_type_of = is_type_of
            else:
                raise ValueError(f"Cannot bind field resolvers to {type_name}")


def _root_block(name: str, *field_sdls: str) -> str:
    body = "\n".join(sdl.strip() for sdl in field_sdls if sdl and sdl.strip())
    if not body:
        return ""
    return f"type {name} {{\n{body}\n}}"


def build_type_defs(
    models: SchemaFragment,
    custom: SchemaFragment,
    builtins: BuiltinFragments,
    is_federated: bool = False,
) -> str:
    """Concatenate every SDL source in a fixed order."""
    configurations: Mapping[str, Any] = custom.resolvers
    query_fields = annotate_root_fields(
        models.query_fields_sdl, QUERY_TYPE, configurations.get(QUERY_TYPE)
    )
    mutation_fields = annotate_root_fields(
        models.mutation_fields_sdl, MUTATION_TYPE, configurations.get(MUTATION_TYPE)
    )

    parts = [
        custom.type_sdl,
        models.type_sdl,
        builtins.polymorphic_union.type_sdl,
        builtins.input_types,
        builtins.publication_state.type_sdl,
        builtins.admin_types,
        _root_block(QUERY_TYPE, query_fields, custom.query_fields_sdl),
        _root_block(MUTATION_TYPE, mutation_fields, custom.mutation_fields_sdl),
        builtins.scalars_sdl,
    ]
    if is_federated:
        # Declared up front so types can carry @key before the federation pass
        parts.append(FEDERATION_SDL)
    return "\n\n".join(part.strip() for part in parts if part and part.strip()) + "\n"


def compile_schema(type_defs: str, resolvers: ResolverTable) -> GraphQLSchema:
    try:
        schema = make_executable_schema(type_defs, ResolverTableBindable(resolvers))
    except (GraphQLError, TypeError, ValueError) as e:
        logger.error("GraphQL schema build failed", error=str(e))
        raise SchemaBuildError(f"GraphQL schema build failed: {e}") from e

    errors = validate_schema(schema)
    if errors:
        message = "; ".join(error.message for error in errors)
        logger.error("GraphQL schema is invalid", errors=message)
        raise SchemaBuildError(f"GraphQL schema is invalid: {message}")
    return schema


def assemble_schema(
    models: SchemaFragment,
    custom: SchemaFragment,
    resolvers: ResolverTable,
    *,
    builtins: BuiltinFragments,
    is_federated: bool = False,
) -> GraphQLSchema:
    """Assemble and compile the schema.

    Returns :func:`empty_schema` without compiling anything when neither the
    models nor the custom definition declare any type.

    Raises:
        SchemaBuildError: If the SDL does not parse, references unknown
            types, declares a type twice or a resolver cannot be bound
    """
    if models.is_empty and custom.is_empty:
        logger.info("No type definitions to compose, returning empty schema")
        return empty_schema()

    type_defs = build_type_defs(models, custom, builtins, is_federated)
    schema = compile_schema(type_defs, resolvers)
    logger.info(
        "Assembled GraphQL schema",
        types=len(schema.type_map),
        federated=is_federated,
    )
    return schema
