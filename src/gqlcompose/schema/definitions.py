"""
Rendering of generated root fields.
"""

from __future__ import annotations

from collections.abc import Mapping
from copy import copy
from typing import Any

from graphql import (
    ArgumentNode,
    DirectiveNode,
    FieldDefinitionNode,
    GraphQLSyntaxError,
    NameNode,
    ObjectTypeDefinitionNode,
    StringValueNode,
    parse,
    print_ast,
)

from ..errors import SchemaBuildError
from .resolvers import DeclarativeSpec, is_field_map


def _deprecated_directive(reason: str) -> DirectiveNode:
    return DirectiveNode(
        name=NameNode(value="deprecated"),
        arguments=(ArgumentNode(name=NameNode(value="reason"), value=StringValueNode(value=reason)),),
    )


def _annotate(node: FieldDefinitionNode, spec: DeclarativeSpec) -> FieldDefinitionNode:
    annotated = copy(node)
    if spec.description:
        annotated.description = StringValueNode(value=spec.description, block=True)
    directives = tuple(node.directives or ())
    if spec.deprecated and not any(d.name.value == "deprecated" for d in directives):
        directives += (_deprecated_directive(spec.deprecated),)
    annotated.directives = directives
    return annotated


def annotate_root_fields(fields_sdl: str, operation: str, configurations: Mapping[str, Any] | None) -> str:
    """Render root field SDL with descriptions and deprecations.

    ``configurations`` is the custom field map of the ``operation`` root;
    declarative entries contribute their ``description`` and ``deprecated``
    hints to the generated field of the same name.
    """
    if not fields_sdl.strip() or not is_field_map(configurations):
        return fields_sdl

    try:
        document = parse(f"type {operation} {{\n{fields_sdl}\n}}")
    except GraphQLSyntaxError as e:
        raise SchemaBuildError(f"Invalid {operation} fields: {e.message}") from e

    definitions = document.definitions
    if len(definitions) != 1 or not isinstance(definitions[0], ObjectTypeDefinitionNode):
        raise SchemaBuildError(f"Invalid {operation} fields: expected field definitions only")
    definition = definitions[0]

    rendered = []
    for node in definition.fields or ():
        spec = configurations.get(node.name.value)
        if isinstance(spec, DeclarativeSpec):
            node = _annotate(node, spec)
        rendered.append(print_ast(node))
    return "\n".join(rendered)
