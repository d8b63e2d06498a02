"""
Shared pytest fixtures and configuration for all tests.
"""

from typing import Any

import pytest
from pydantic import BaseModel

from gqlcompose.schema.entities import Entity, EntityRegistry, QueryParams
from gqlcompose.schema.fragments import SchemaFragment
from gqlcompose.schema.generator import PipelineConfig
from gqlcompose.schema.resolvers import ExecutableBinding


class UserModel(BaseModel):
    """Input model for the user entity."""

    username: str
    email: str | None = None


class InMemoryUserService:
    """Tiny user service keeping rows in a list."""

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self.rows = rows if rows is not None else [
            {"id": "1", "username": "ada", "email": "ada@example.com"},
            {"id": "2", "username": "grace", "email": None},
            {"id": "3", "username": "linus", "email": "linus@example.com"},
        ]
        self.calls: list[tuple[str, Any]] = []

    def _matching(self, params: QueryParams) -> list[dict[str, Any]]:
        rows = [r for r in self.rows if all(r.get(k) == v for k, v in params.where.items())]
        for name, order in reversed(params.sort):
            rows = sorted(rows, key=lambda r: r.get(name) or "", reverse=order == "desc")
        return rows

    def find(self, params: QueryParams) -> list[dict[str, Any]]:
        self.calls.append(("find", params))
        rows = self._matching(params)[params.start :]
        return rows if params.limit is None else rows[: params.limit]

    def find_one(self, params: QueryParams) -> dict[str, Any] | None:
        self.calls.append(("find_one", params))
        rows = self._matching(params)
        return rows[0] if rows else None

    def count(self, params: QueryParams) -> int:
        self.calls.append(("count", params))
        return len(self._matching(params))

    def create(self, data: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", data))
        row = {"id": str(len(self.rows) + 1), "email": None, **data}
        self.rows.append(row)
        return row

    def update(self, where: dict[str, Any], data: dict[str, Any]) -> dict[str, Any] | None:
        self.calls.append(("update", (where, data)))
        for row in self.rows:
            if all(row.get(k) == v for k, v in where.items()):
                row.update(data)
                return row
        return None

    def delete(self, where: dict[str, Any]) -> dict[str, Any] | None:
        self.calls.append(("delete", where))
        for row in self.rows:
            if all(row.get(k) == v for k, v in where.items()):
                self.rows.remove(row)
                return row
        return None


def resolve_generated_users(*_args: Any, **_kwargs: Any) -> list[dict[str, Any]]:
    return [{"id": "g1", "username": "generated"}]


def resolve_generated_user(*_args: Any, **_kwargs: Any) -> dict[str, Any]:
    return {"id": "g1", "username": "generated"}


def resolve_generated_create_user(*_args: Any, **_kwargs: Any) -> dict[str, Any]:
    return {"id": "g2", "username": "created"}


USER_TYPE_SDL = """
type User {
  id: ID!
  username: String!
  email: String
}
"""

USER_QUERY_SDL = """
users(where: JSON, sort: String, limit: Int, start: Int, publicationState: PublicationState): [User]
user(id: ID!): User
"""

USER_MUTATION_SDL = """
createUser(input: JSON): User
updateUser(input: JSON): User
deleteUser(input: JSON): User
"""


@pytest.fixture
def user_service() -> InMemoryUserService:
    return InMemoryUserService()


@pytest.fixture
def entities(user_service: InMemoryUserService) -> EntityRegistry:
    return EntityRegistry([Entity(name="User", schema=UserModel, service=user_service)])


@pytest.fixture
def user_fragment() -> SchemaFragment:
    """Model-derived fragment for the User model with generated resolvers."""
    return SchemaFragment(
        type_sdl=USER_TYPE_SDL,
        query_fields_sdl=USER_QUERY_SDL,
        mutation_fields_sdl=USER_MUTATION_SDL,
        resolvers={
            "Query": {
                "users": ExecutableBinding(resolve_generated_users),
                "user": ExecutableBinding(resolve_generated_user),
            },
            "Mutation": {
                "createUser": ExecutableBinding(resolve_generated_create_user),
            },
        },
    )


@pytest.fixture
def post_fragment() -> SchemaFragment:
    return SchemaFragment(
        type_sdl="type Post {\n  id: ID!\n  title: String\n}",
        query_fields_sdl="posts: [Post]",
        resolvers={"Query": {"posts": ExecutableBinding(lambda *_: [{"id": "p1", "title": "Hello"}])}},
    )


@pytest.fixture
def pipeline_config(tmp_path) -> PipelineConfig:
    """Non-federated config writing artifacts under a temporary directory."""
    return PipelineConfig(app_dir=str(tmp_path), amount_limit=100)


@pytest.fixture
def user_model() -> type[UserModel]:
    return UserModel
