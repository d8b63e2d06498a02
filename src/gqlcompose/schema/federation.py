"""
Federation adapter.

The filtered schema is printed back to SDL and recompiled with ariadne's
federation support, which adds ``_service``, ``_entities`` and the federation
directives. Recompiling builds new type objects, so reference-resolution
hooks attached to the old ones are copied over by an explicit repair pass.
"""

from __future__ import annotations

from copy import copy

from ariadne.contrib.federation import make_federated_schema
from ariadne.utils import type_get_extension, type_set_extension
from graphql import (
    GraphQLError,
    GraphQLNamedType,
    GraphQLSchema,
    is_introspection_type,
    is_specified_directive,
    is_specified_scalar_type,
    print_ast,
)
from graphql.utilities.print_schema import print_directive, print_type

from ..errors import FederationBuildError
from ..logging import get_logger
from .assembler import REFERENCE_HOOK_ATTR, ResolverTableBindable
from .resolvers import SPECIAL_KEYS, ResolverTable, is_field_map

logger = get_logger(__name__)

# Declarations supplied by the federation compiler itself
FEDERATION_SCALARS = frozenset({"_Any", "_FieldSet", "FieldSet"})
FEDERATION_DIRECTIVES = frozenset({"key", "extends", "external", "requires", "provides"})


def _print_named_type(named_type: GraphQLNamedType) -> str:
    node = named_type.ast_node
    if node is None:
        return print_type(named_type)

    nodes = [node, *named_type.extension_ast_nodes]
    fields = getattr(named_type, "fields", None)
    printed = []
    for type_node in nodes:
        # Roots rebuilt by the filter keep their original AST node
        if fields is not None and getattr(type_node, "fields", None):
            type_node = copy(type_node)
            type_node.fields = tuple(f for f in type_node.fields if f.name.value in fields)
        printed.append(print_ast(type_node))
    return "\n\n".join(printed)


def print_schema_with_directives(
    schema: GraphQLSchema,
    skip_types: frozenset[str] = frozenset(),
    skip_directives: frozenset[str] = frozenset(),
) -> str:
    """Print a schema as SDL, keeping directives applied to its types.

    ``graphql.print_schema`` drops applied directives such as ``@key``, which
    the federation compiler needs to find entity types.
    """
    definitions = [
        print_ast(directive.ast_node) if directive.ast_node else print_directive(directive)
        for directive in schema.directives
        if not is_specified_directive(directive) and directive.name not in skip_directives
    ]
    definitions.extend(
        _print_named_type(named_type)
        for name, named_type in schema.type_map.items()
        if name not in skip_types
        and not is_introspection_type(named_type)
        and not is_specified_scalar_type(named_type)
    )
    return "\n\n".join(definitions) + "\n"


def repair_reference_hooks(before: GraphQLSchema, after: GraphQLSchema) -> list[str]:
    """Copy reference-resolution hooks from ``before`` onto ``after``.

    Types are paired by name; types missing from either schema are skipped.
    Returns the names of the repaired types.
    """
    repaired = []
    for name, graphql_type in after.type_map.items():
        origin = before.type_map.get(name)
        hook = type_get_extension(origin, REFERENCE_HOOK_ATTR) if origin is not None else None
        if hook is not None:
            type_set_extension(graphql_type, REFERENCE_HOOK_ATTR, hook)
            repaired.append(name)
    return repaired


def prune_resolvers(resolvers: ResolverTable, schema: GraphQLSchema) -> ResolverTable:
    """Keep only the resolver entries whose type and field exist in ``schema``.

    Root fields removed by the disabled-field filter still have generated
    resolvers in the table; binding those to the re-printed schema fails.
    """
    pruned: ResolverTable = {}
    dropped = []
    for type_name, entry in resolvers.items():
        graphql_type = schema.type_map.get(type_name)
        if not is_field_map(entry):
            pruned[type_name] = entry
            continue
        if graphql_type is None:
            dropped.append(type_name)
            continue

        fields = getattr(graphql_type, "fields", None)
        kept = {}
        for name, value in entry.items():
            if name in SPECIAL_KEYS or fields is None or name in fields:
                kept[name] = value
            else:
                dropped.append(f"{type_name}.{name}")
        if kept:
            pruned[type_name] = kept

    if dropped:
        logger.debug("Skipping resolvers missing from the schema", resolvers=dropped)
    return pruned


def federate_schema(schema: GraphQLSchema, resolvers: ResolverTable) -> GraphQLSchema:
    """Reshape ``schema`` into a federated subgraph schema.

    Raises:
        FederationBuildError: If the federation-aware compilation fails
    """
    type_defs = print_schema_with_directives(
        schema,
        skip_types=FEDERATION_SCALARS,
        skip_directives=FEDERATION_DIRECTIVES,
    )
    bindable = ResolverTableBindable(prune_resolvers(resolvers, schema))
    try:
        federated = make_federated_schema(type_defs, bindable)
    except (GraphQLError, TypeError, ValueError) as e:
        logger.error("Federated schema build failed", error=str(e))
        raise FederationBuildError(f"Federated schema build failed: {e}") from e

    repaired = repair_reference_hooks(schema, federated)
    logger.info("Built federated schema", repaired_reference_hooks=repaired)
    return federated
