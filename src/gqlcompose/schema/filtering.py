"""
Removal of disabled root fields from a compiled schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from graphql import GraphQLObjectType, GraphQLSchema, is_introspection_type

from ..logging import get_logger
from .resolvers import is_disabled

logger = get_logger(__name__)


def _filter_root(root: GraphQLObjectType | None, diff: Mapping[str, Any]) -> GraphQLObjectType | None:
    if root is None:
        return None

    removed = [name for name in root.fields if is_disabled(diff, root.name, name)]
    if not removed:
        return root

    fields = {name: f for name, f in root.fields.items() if name not in removed}
    logger.info("Removing disabled fields", type=root.name, fields=removed)
    if not fields:
        return None
    return GraphQLObjectType(**{**root.to_kwargs(), "fields": fields})


def filter_disabled_fields(schema: GraphQLSchema, diff: Mapping[str, Any]) -> GraphQLSchema:
    """Return a schema without the root fields disabled in ``diff``.

    Only Query and Mutation fields are considered. Every other type is kept
    as the same object, so hooks attached to it after compilation survive;
    types only reachable through a removed field stay in the type map. A
    root type left without fields is dropped.
    """
    query = _filter_root(schema.query_type, diff)
    mutation = _filter_root(schema.mutation_type, diff)
    if query is schema.query_type and mutation is schema.mutation_type:
        return schema

    roots = {
        t.name
        for t in (schema.query_type, schema.mutation_type, schema.subscription_type)
        if t is not None
    }
    types = [
        t
        for name, t in schema.type_map.items()
        if name not in roots and not is_introspection_type(t)
    ]

    return GraphQLSchema(
        query=query,
        mutation=mutation,
        subscription=schema.subscription_type,
        types=types,
        directives=schema.directives,
        description=schema.description,
        extensions=schema.extensions,
        ast_node=schema.ast_node,
        extension_ast_nodes=schema.extension_ast_nodes,
    )
