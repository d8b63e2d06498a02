"""
Resolver entries and resolver tables.

A resolver table maps a type name either to a field map (field name to
resolver entry) or to an ariadne bindable for scalars and enums. Field map
entries are one of three variants:

- ``Disabled``: the field is removed from the final schema
- ``ExecutableBinding``: a callable bound as-is
- ``DeclarativeSpec``: a configuration compiled into a binding later
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from ariadne import EnumType, ScalarType
from graphql import GraphQLScalarType
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..errors import ResolverSpecError

QUERY_TYPE = "Query"
MUTATION_TYPE = "Mutation"
ROOT_TYPES = (QUERY_TYPE, MUTATION_TYPE)

RESOLVE_TYPE_KEY = "__resolveType"
IS_TYPE_OF_KEY = "__isTypeOf"
RESOLVE_REFERENCE_KEY = "__resolveReference"
SPECIAL_KEYS = (RESOLVE_TYPE_KEY, IS_TYPE_OF_KEY, RESOLVE_REFERENCE_KEY)


@dataclass(frozen=True)
class Disabled:
    """Marks a field for removal from the schema."""

    def __repr__(self) -> str:
        return "DISABLED"


DISABLED = Disabled()


@dataclass(frozen=True)
class ExecutableBinding:
    """A resolver callable bound to a field without further processing."""

    resolve: Callable[..., Any]


class DeclarativeSpec(BaseModel):
    """Declarative resolver configuration.

    Attributes:
        entity: Name of the target entity in the entity registry
        action: Service action to call; inferred when omitted
        policies: Names of access policies that must all pass
        description: Description rendered on the root field
        deprecated: Deprecation reason rendered on the root field
        payload_key: Mutation results are wrapped as ``{payload_key: result}``
        transform_output: Applied to the service result before returning
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entity: str
    action: str | None = None
    policies: tuple[str, ...] = ()
    description: str | None = None
    deprecated: str | None = None
    payload_key: str | None = None
    transform_output: Callable[[Any], Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _expand_resolver_shorthand(cls, data: Any) -> Any:
        # "resolver: User.find" is shorthand for entity + action
        if isinstance(data, Mapping) and "resolver" in data:
            data = dict(data)
            shorthand = data.pop("resolver")
            if not isinstance(shorthand, str) or "." not in shorthand:
                raise ValueError(f"resolver must look like 'Entity.action', got {shorthand!r}")
            entity, action = shorthand.rsplit(".", 1)
            data.setdefault("entity", entity)
            data.setdefault("action", action)
        return data

    @field_validator("policies", mode="before")
    @classmethod
    def _policies_as_tuple(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (value,)
        return value


ResolverEntry = Union[Disabled, ExecutableBinding, DeclarativeSpec]
FieldMap = dict[str, ResolverEntry]
TypeBindable = Union[ScalarType, EnumType]
ResolverTable = dict[str, Union[FieldMap, TypeBindable]]


def is_field_map(value: Any) -> bool:
    return isinstance(value, Mapping)


def coerce_entry(value: Any, path: str = "") -> ResolverEntry:
    """Turn a raw resolver value into a tagged resolver entry.

    ``False`` disables the field, callables become executable bindings and
    mappings are parsed as declarative specs. A plain string is rejected:
    a root field description is the ``description`` of a declarative spec.
    """
    if isinstance(value, (Disabled, ExecutableBinding, DeclarativeSpec)):
        return value
    if value is False:
        return DISABLED
    if callable(value):
        return ExecutableBinding(value)
    if isinstance(value, Mapping):
        try:
            return DeclarativeSpec.model_validate(dict(value))
        except ValidationError as e:
            raise ResolverSpecError(f"Invalid resolver configuration for {path}: {e}") from e
    if isinstance(value, str):
        raise ResolverSpecError(
            f"Unsupported resolver value for {path}: plain strings are not resolvers, "
            "set 'description' on a declarative resolver instead"
        )
    raise ResolverSpecError(f"Unsupported resolver value for {path}: {value!r}")


def coerce_bindable(type_name: str, value: Any) -> TypeBindable | None:
    """Return an ariadne bindable for scalar and enum entries, None otherwise."""
    if isinstance(value, (ScalarType, EnumType)):
        return value
    if isinstance(value, GraphQLScalarType):
        return ScalarType(
            type_name,
            serializer=value.serialize,
            value_parser=value.parse_value,
            literal_parser=value.parse_literal,
        )
    if isinstance(value, type) and issubclass(value, Enum):
        return EnumType(type_name, value)
    return None


def coerce_table(raw: Mapping[str, Any] | None) -> ResolverTable:
    """Coerce a raw, loosely typed resolver table."""
    table: ResolverTable = {}
    for type_name, value in (raw or {}).items():
        bindable = coerce_bindable(type_name, value)
        if bindable is not None:
            table[type_name] = bindable
        elif isinstance(value, Mapping):
            table[type_name] = {
                field_name: coerce_entry(entry, f"{type_name}.{field_name}")
                for field_name, entry in value.items()
            }
        else:
            raise ResolverSpecError(f"Unsupported resolver table entry for {type_name}: {value!r}")
    return table


def merge_resolver_tables(*tables: Mapping[str, Any]) -> ResolverTable:
    """Deep-merge resolver tables into a new table.

    Field maps of the same type are combined and, for a field present in
    several tables, the entry of the later table wins. Any other value
    (scalar or enum bindable) replaces the earlier one.
    """
    merged: ResolverTable = {}
    for table in tables:
        for type_name, value in table.items():
            current = merged.get(type_name)
            if is_field_map(value) and is_field_map(current):
                merged[type_name] = {**current, **value}
            elif is_field_map(value):
                merged[type_name] = dict(value)
            else:
                merged[type_name] = value
    return merged


def _as_entry(entry: Any) -> Any:
    # A raw callable is the same entry as its executable binding
    if callable(entry) and not isinstance(entry, (Disabled, ExecutableBinding, DeclarativeSpec)):
        return ExecutableBinding(entry)
    return entry


def diff_resolvers(custom: Mapping[str, Any], generated: Mapping[str, Any]) -> ResolverTable:
    """Return the custom entries that add to or change the generated table.

    An entry is left out only when the generated table holds an equal entry
    at the same (type, field) key. Disabled entries are always kept. Scalar
    and enum entries are carried over without comparison.
    """
    diff: ResolverTable = {}
    for type_name, fields in custom.items():
        if not is_field_map(fields):
            diff[type_name] = fields
            continue

        base = generated.get(type_name)
        base = base if is_field_map(base) else {}
        changed = {
            field_name: _as_entry(entry)
            for field_name, entry in fields.items()
            if isinstance(entry, Disabled)
            or field_name not in base
            or _as_entry(base[field_name]) != _as_entry(entry)
        }
        if changed:
            diff[type_name] = changed
    return diff


def is_disabled(table: Mapping[str, Any], type_name: str, field_name: str) -> bool:
    fields = table.get(type_name)
    if not is_field_map(fields):
        return False
    return isinstance(fields.get(field_name), Disabled)
