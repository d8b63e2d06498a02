"""
Compiles resolver diffs into executable bindings.

Declarative specs under the Mutation root become mutation-shaped bindings
(side-effecting, input validated against the entity model); specs under any
other type become query-shaped bindings (read-only, filtering, sorting and
pagination arguments). Everything else is identical between the two shapes.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from typing import Any

from graphql import GraphQLError, GraphQLResolveInfo
from pydantic import TypeAdapter, ValidationError

from ..errors import ResolverSpecError
from ..logging import get_logger
from .entities import Entity, EntityRegistry, Policy, QueryParams
from .resolvers import (
    MUTATION_TYPE,
    SPECIAL_KEYS,
    DeclarativeSpec,
    Disabled,
    ExecutableBinding,
    ResolverTable,
    is_field_map,
)

logger = get_logger(__name__)

QUERY_ACTIONS = ("find", "find_one", "count")
MUTATION_ACTIONS = ("create", "update", "delete")


def _finalize(result: Any, transform: Callable[[Any], Any] | None) -> Any:
    if transform is None:
        return result
    if inspect.isawaitable(result):

        async def _await_and_transform() -> Any:
            return transform(await result)

        return _await_and_transform()
    return transform(result)


def _wrap_payload(payload_key: str | None) -> Callable[[Any], Any] | None:
    if payload_key is None:
        return None
    return lambda result: {payload_key: result}


def _chain(*transforms: Callable[[Any], Any] | None) -> Callable[[Any], Any] | None:
    steps = [t for t in transforms if t is not None]
    if not steps:
        return None

    def apply(value: Any) -> Any:
        for step in steps:
            value = step(value)
        return value

    return apply


def _service_method(entity: Entity, action: str, allowed: tuple[str, ...], path: str) -> Callable:
    if action not in allowed:
        raise ResolverSpecError(f"Action '{action}' is not allowed for {path}; expected one of {allowed}")
    method = getattr(entity.service, action, None)
    if not callable(method):
        raise ResolverSpecError(f"Entity '{entity.name}' does not implement '{action}' required by {path}")
    return method


def _infer_mutation_action(field_name: str) -> str | None:
    for action in MUTATION_ACTIONS:
        if field_name.startswith(action):
            return action
    return None


def _validate_input(entity: Entity, data: Any, partial: bool) -> dict[str, Any]:
    """Validate mutation data against the entity model.

    Updates only validate the supplied fields.
    """
    if data is None:
        data = {}
    if not partial:
        return entity.schema.model_validate(data).model_dump(exclude_unset=True)

    fields = entity.schema.model_fields
    unknown = sorted(set(data) - set(fields))
    if unknown:
        raise GraphQLError(
            f"Unknown fields for {entity.name}: {', '.join(unknown)}",
            extensions={"code": "BAD_USER_INPUT"},
        )
    return {
        name: TypeAdapter(fields[name].annotation).validate_python(value)
        for name, value in data.items()
    }


class ResolverCompiler:
    """Turns a resolver diff into a table of executable bindings."""

    def __init__(
        self,
        entities: EntityRegistry | None = None,
        policies: Mapping[str, Policy] | None = None,
        amount_limit: int | None = None,
    ):
        self.entities = entities or EntityRegistry()
        self.policies = dict(policies or {})
        self.amount_limit = amount_limit

    def compile(self, diff: ResolverTable) -> ResolverTable:
        """Compile every entry of ``diff``.

        Bindings pass through, disabled entries are dropped and scalar or enum
        entries are copied verbatim.
        """
        compiled: ResolverTable = {}
        for type_name, fields in diff.items():
            if not is_field_map(fields):
                compiled[type_name] = fields
                continue

            for field_name, entry in fields.items():
                if isinstance(entry, Disabled):
                    continue
                if isinstance(entry, ExecutableBinding):
                    binding = entry
                elif type_name == MUTATION_TYPE:
                    binding = self.build_mutation(type_name, field_name, entry)
                else:
                    binding = self.build_query(type_name, field_name, entry)
                compiled.setdefault(type_name, {})[field_name] = binding

        logger.debug(
            "Compiled resolvers",
            types=sorted(compiled),
            fields=sum(len(v) for v in compiled.values() if is_field_map(v)),
        )
        return compiled

    def build_query(self, type_name: str, field_name: str, spec: DeclarativeSpec) -> ExecutableBinding:
        path = f"{type_name}.{field_name}"
        entity = self._entity(spec, path)
        method = _service_method(entity, spec.action or "find", QUERY_ACTIONS, path)
        checks = self._policies(spec, path)
        amount_limit = self.amount_limit

        def resolve(_obj: Any, info: GraphQLResolveInfo, **kwargs: Any) -> Any:
            self._enforce(checks, info, path)
            params = QueryParams.from_arguments(kwargs, amount_limit)
            return _finalize(method(params), spec.transform_output)

        resolve.__name__ = f"resolve_{field_name}"
        return ExecutableBinding(resolve)

    def build_mutation(self, type_name: str, field_name: str, spec: DeclarativeSpec) -> ExecutableBinding:
        path = f"{type_name}.{field_name}"
        entity = self._entity(spec, path)
        action = spec.action or _infer_mutation_action(field_name)
        if action is None:
            raise ResolverSpecError(f"Cannot infer the mutation action for {path}; set 'action'")
        method = _service_method(entity, action, MUTATION_ACTIONS, path)
        checks = self._policies(spec, path)
        transform = _chain(spec.transform_output, _wrap_payload(spec.payload_key))

        def resolve(_obj: Any, info: GraphQLResolveInfo, **kwargs: Any) -> Any:
            self._enforce(checks, info, path)
            payload = kwargs.get("input") or {}
            where = dict(payload.get("where") or {})

            try:
                if action == "create":
                    result = method(_validate_input(entity, payload.get("data"), partial=False))
                elif action == "update":
                    result = method(where, _validate_input(entity, payload.get("data"), partial=True))
                else:
                    result = method(where)
            except ValidationError as e:
                raise GraphQLError(
                    f"Invalid input for {entity.name}",
                    extensions={
                        "code": "BAD_USER_INPUT",
                        "errors": e.errors(include_url=False, include_context=False),
                    },
                ) from e

            return _finalize(result, transform)

        resolve.__name__ = f"resolve_{field_name}"
        return ExecutableBinding(resolve)

    def _entity(self, spec: DeclarativeSpec, path: str) -> Entity:
        field_name = path.rsplit(".", 1)[-1]
        if field_name in SPECIAL_KEYS:
            raise ResolverSpecError(f"{path} must be a callable, not a declarative resolver")
        entity = self.entities.get(spec.entity)
        if entity is None:
            logger.error("Unknown resolver entity", path=path, entity=spec.entity)
            raise ResolverSpecError(f"{path} references unknown entity '{spec.entity}'")
        return entity

    def _policies(self, spec: DeclarativeSpec, path: str) -> list[tuple[str, Policy]]:
        checks = []
        for name in spec.policies:
            policy = self.policies.get(name)
            if policy is None:
                raise ResolverSpecError(f"{path} references unknown policy '{name}'")
            checks.append((name, policy))
        return checks

    @staticmethod
    def _enforce(checks: list[tuple[str, Policy]], info: GraphQLResolveInfo, path: str) -> None:
        for name, policy in checks:
            if not policy(info):
                logger.warning("Policy denied resolver", path=path, policy=name)
                raise GraphQLError("Forbidden", extensions={"code": "FORBIDDEN"})
