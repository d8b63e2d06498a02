"""
Entities targeted by declarative resolvers.

An entity pairs a pydantic model (used to validate mutation input) with a
service that performs the actual reads and writes. Persistence itself lives
outside this package.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from graphql import GraphQLResolveInfo
from pydantic import BaseModel, Field, field_validator

from ..logging import get_logger

logger = get_logger(__name__)

Policy = Callable[[GraphQLResolveInfo], bool]


class QueryParams(BaseModel):
    """Normalized filtering, sorting and pagination arguments."""

    where: dict[str, Any] = Field(default_factory=dict)
    sort: list[tuple[str, str]] = Field(default_factory=list)
    limit: int | None = None
    start: int = Field(default=0, ge=0)
    publication_state: str = "live"

    @field_validator("sort", mode="before")
    @classmethod
    def _parse_sort(cls, value: Any) -> Any:
        # "title:desc,id" -> [("title", "desc"), ("id", "asc")]
        if value is None:
            return []
        if isinstance(value, str):
            value = [part for part in value.split(",") if part.strip()]
        parsed = []
        for item in value:
            if isinstance(item, str):
                name, _, order = item.strip().partition(":")
                item = (name.strip(), (order.strip() or "asc").lower())
            parsed.append(item)
        return parsed

    @field_validator("publication_state", mode="before")
    @classmethod
    def _enum_value(cls, value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        return value or "live"

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any], amount_limit: int | None) -> QueryParams:
        """Build params from GraphQL field arguments.

        A missing or negative limit means "as many as allowed"; any limit is
        capped by ``amount_limit`` when one is configured.
        """
        where = dict(arguments.get("where") or {})
        if arguments.get("id") is not None:
            where["id"] = arguments["id"]

        limit = arguments.get("limit")
        if limit is None or limit < 0:
            limit = amount_limit
        elif amount_limit is not None:
            limit = min(limit, amount_limit)

        return cls(
            where=where,
            sort=arguments.get("sort"),
            limit=limit,
            start=arguments.get("start") or 0,
            publication_state=arguments.get("publicationState"),
        )


class EntityService(Protocol):
    """Actions a declarative resolver can call on an entity.

    Services may implement any subset; compiling a spec that names a missing
    action fails. Methods may be sync or async.
    """

    def find(self, params: QueryParams) -> Any: ...

    def find_one(self, params: QueryParams) -> Any: ...

    def count(self, params: QueryParams) -> Any: ...

    def create(self, data: dict[str, Any]) -> Any: ...

    def update(self, where: dict[str, Any], data: dict[str, Any]) -> Any: ...

    def delete(self, where: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class Entity:
    name: str
    schema: type[BaseModel]
    service: Any

    def __repr__(self) -> str:
        return f"<Entity(name='{self.name}', schema='{self.schema.__name__}')>"


class EntityRegistry:
    """
    Registry of the entities declarative resolvers may target.
    """

    def __init__(self, entities: list[Entity] | None = None):
        self._entities: dict[str, Entity] = {}
        for entity in entities or []:
            self.register(entity)

    def register(self, entity: Entity) -> None:
        """
        Register an entity.

        Args:
            entity: Entity to register

        Raises:
            ValueError: If an entity with the same name is already registered
        """
        logger.debug("Registering entity", name=entity.name)
        if entity.name in self._entities:
            raise ValueError(f"Entity '{entity.name}' is already registered")

        self._entities[entity.name] = entity

    def get(self, name: str) -> Entity | None:
        return self._entities.get(name)

    def list_names(self) -> list[str]:
        return list(self._entities.keys())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, name: str) -> bool:
        return name in self._entities
