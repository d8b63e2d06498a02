"""Configuration-driven custom schema loader.

Reads the hand-written part of the schema from a YAML file:

    definition: |
      type Product @key(fields: "id") { id: ID! name: String }
    query: |
      product(id: ID!): Product
    mutation: ""
    resolver:
      Query:
        product:
          resolver: Product.find_one
          policies: [is_authenticated]
      Product:
        __resolveReference: "myapp.products:resolve_reference"
      Mutation:
        createUser: false
      JSON: "myapp.scalars:json_scalar"

Resolver values are ``false``, a mapping (declarative resolver) or an import
string pointing at a callable, a scalar or an enum.
"""

from __future__ import annotations

from collections.abc import Mapping
from importlib import import_module
from pathlib import Path
from typing import Any

import yaml

from ..errors import ResolverSpecError
from ..logging import get_logger
from .generator import CustomSchemaConfig

logger = get_logger(__name__)


def resolve_import(qualified_name: str) -> Any:
    if ":" in qualified_name:
        module_name, attr = qualified_name.split(":", 1)
    elif "." not in qualified_name:
        raise ResolverSpecError(f"Expected 'module:attribute', got '{qualified_name}'")
    else:
        # Split on last dot for module path
        module_name, attr = qualified_name.rsplit(".", 1)

    try:
        module = import_module(module_name)
        return getattr(module, attr)
    except (ImportError, AttributeError) as e:
        raise ResolverSpecError(f"Cannot import '{qualified_name}': {e}") from e


def _resolve_value(value: Any) -> Any:
    if isinstance(value, str):
        return resolve_import(value)
    return value


def _resolve_imports(resolver: Mapping[str, Any]) -> dict[str, Any]:
    table: dict[str, Any] = {}
    for type_name, value in resolver.items():
        if isinstance(value, Mapping):
            table[type_name] = {name: _resolve_value(entry) for name, entry in value.items()}
        else:
            table[type_name] = _resolve_value(value)
    return table


def load_custom_config(path: str | Path) -> CustomSchemaConfig:
    """Load a custom schema configuration file.

    Raises:
        FileNotFoundError: If the file does not exist
        ResolverSpecError: If the document is malformed or an import fails
    """
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, Mapping):
        raise ResolverSpecError(f"Custom schema config must be a mapping: {path}")

    resolver = data.get("resolver") or {}
    if not isinstance(resolver, Mapping):
        raise ResolverSpecError(f"'resolver' must be a mapping of types: {path}")

    config = CustomSchemaConfig(
        definition=data.get("definition") or "",
        query=data.get("query") or "",
        mutation=data.get("mutation") or "",
        resolver=_resolve_imports(resolver),
    )
    logger.info("Loaded custom schema config", path=str(path), resolver_types=sorted(config.resolver))
    return config
