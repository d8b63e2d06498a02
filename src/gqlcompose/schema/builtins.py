"""
Built-in fragments added to every generated schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any

from ariadne import EnumType, ScalarType, upload_scalar
from graphql import GraphQLError, GraphQLSyntaxError, ObjectTypeDefinitionNode, parse, value_from_ast_untyped

from ..errors import SchemaBuildError
from .fragments import SchemaFragment
from .resolvers import RESOLVE_TYPE_KEY, ROOT_TYPES, ExecutableBinding

MORPH_TYPE = "Morph"

INPUT_TYPES_SDL = """
input InputID {
  id: ID!
}

input FileInput {
  name: String!
  alternativeText: String
  caption: String
  width: Int
  height: Int
  formats: JSON
  hash: String!
  ext: String
  mime: String!
  size: Float!
  url: String!
  previewUrl: String
  provider: String!
  provider_metadata: JSON
  related: [ID]
}
"""

ADMIN_USER_SDL = """
type AdminUser {
  id: ID!
  username: String
  firstname: String!
  lastname: String!
}
"""

FEDERATION_SDL = """
scalar _FieldSet
directive @key(fields: _FieldSet!) on OBJECT | INTERFACE
"""


# Scalars

json_scalar = ScalarType("JSON")


@json_scalar.serializer
def serialize_json(value: Any) -> Any:
    return value


@json_scalar.value_parser
def parse_json_value(value: Any) -> Any:
    return value


@json_scalar.literal_parser
def parse_json_literal(ast: Any, variable_values: dict[str, Any] | None = None) -> Any:
    return value_from_ast_untyped(ast, variable_values)


def _iso_format(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (date, time)):
        return value.isoformat()
    raise GraphQLError(f"Cannot serialize {value!r} as an ISO 8601 value")


datetime_scalar = ScalarType("DateTime")


@datetime_scalar.serializer
def serialize_datetime(value: Any) -> str:
    return _iso_format(value)


@datetime_scalar.value_parser
def parse_datetime_value(value: Any) -> datetime:
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise GraphQLError(f"Invalid DateTime: {value!r}") from e


date_scalar = ScalarType("Date")


@date_scalar.serializer
def serialize_date(value: Any) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return _iso_format(value)


@date_scalar.value_parser
def parse_date_value(value: Any) -> date:
    try:
        return date.fromisoformat(str(value))
    except ValueError as e:
        raise GraphQLError(f"Invalid Date: {value!r}") from e


time_scalar = ScalarType("Time")


@time_scalar.serializer
def serialize_time(value: Any) -> str:
    if isinstance(value, datetime):
        value = value.time()
    return _iso_format(value)


@time_scalar.value_parser
def parse_time_value(value: Any) -> time:
    try:
        return time.fromisoformat(str(value))
    except ValueError as e:
        raise GraphQLError(f"Invalid Time: {value!r}") from e


LONG_MIN = -(2**63)
LONG_MAX = 2**63 - 1

long_scalar = ScalarType("Long")


@long_scalar.serializer
@long_scalar.value_parser
def coerce_long(value: Any) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise GraphQLError(f"Long cannot represent value: {value!r}") from e
    if not LONG_MIN <= number <= LONG_MAX:
        raise GraphQLError(f"Long cannot represent out-of-range value: {value!r}")
    return number


def get_scalars() -> dict[str, ScalarType]:
    """Return the registered scalars by name."""
    scalars = [json_scalar, datetime_scalar, date_scalar, time_scalar, long_scalar, upload_scalar]
    return {scalar.name: scalar for scalar in scalars}


# Publication state


class PublicationState(Enum):
    LIVE = "live"
    PREVIEW = "preview"


def publication_state_fragment() -> SchemaFragment:
    return SchemaFragment(
        type_sdl="enum PublicationState {\n  LIVE\n  PREVIEW\n}",
        resolvers={"PublicationState": EnumType("PublicationState", PublicationState)},
    )


# Polymorphic union


def resolve_morph_type(obj: Any, *_: Any) -> str | None:
    """Resolve a Morph member from its ``kind`` or ``__contentType`` marker."""
    if isinstance(obj, dict):
        return obj.get("kind") or obj.get("__contentType")
    return getattr(obj, "kind", None) or getattr(obj, "__contentType", None)


def polymorphic_union_fragment(definition: str) -> SchemaFragment:
    """Build a ``Morph`` union of every object type declared in ``definition``.

    Root types are left out. Returns an empty fragment when there is nothing
    to unite.
    """
    if not definition.strip():
        return SchemaFragment()

    try:
        document = parse(definition)
    except GraphQLSyntaxError as e:
        raise SchemaBuildError(f"Invalid type definitions: {e.message}") from e

    members = [
        node.name.value
        for node in document.definitions
        if isinstance(node, ObjectTypeDefinitionNode) and node.name.value not in ROOT_TYPES
    ]
    if not members:
        return SchemaFragment()

    return SchemaFragment(
        type_sdl=f"union {MORPH_TYPE} = {' | '.join(members)}",
        resolvers={MORPH_TYPE: {RESOLVE_TYPE_KEY: ExecutableBinding(resolve_morph_type)}},
    )


@dataclass(frozen=True)
class BuiltinFragments:
    """Fragments the assembler adds around the model and custom SDL."""

    polymorphic_union: SchemaFragment = field(default_factory=SchemaFragment)
    scalars: dict[str, ScalarType] = field(default_factory=get_scalars)
    publication_state: SchemaFragment = field(default_factory=publication_state_fragment)
    input_types: str = INPUT_TYPES_SDL
    admin_types: str = ADMIN_USER_SDL

    @property
    def scalars_sdl(self) -> str:
        return "\n".join(f"scalar {name}" for name in self.scalars)


def default_builtins(definition: str = "") -> BuiltinFragments:
    """Built-ins for a schema whose object types are declared in ``definition``."""
    return BuiltinFragments(polymorphic_union=polymorphic_union_fragment(definition))
