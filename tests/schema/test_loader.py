"""
Tests for the custom schema loader.
"""

import textwrap

import pytest
from ariadne import EnumType, ScalarType

from gqlcompose.errors import ResolverSpecError
from gqlcompose.schema.loader import load_custom_config, resolve_import
from gqlcompose.schema.resolvers import DISABLED, DeclarativeSpec, ExecutableBinding

HELPERS = '''
from enum import Enum

from ariadne import ScalarType


class Color(Enum):
    RED = "red"


money_scalar = ScalarType("Money")


def resolve_reference(_obj, _info, representation):
    return representation
'''


@pytest.fixture
def helpers_module(tmp_path, monkeypatch):
    (tmp_path / "gqlcompose_loader_helpers.py").write_text(HELPERS)
    monkeypatch.syspath_prepend(str(tmp_path))
    return "gqlcompose_loader_helpers"


@pytest.fixture
def write_config(tmp_path):
    def _write(content: str):
        path = tmp_path / "custom.yaml"
        path.write_text(textwrap.dedent(content))
        return path

    return _write


class TestResolveImport:
    """Tests for resolve_import."""

    def test_colon_and_dot_notation(self, helpers_module):
        by_colon = resolve_import(f"{helpers_module}:resolve_reference")
        by_dot = resolve_import(f"{helpers_module}.resolve_reference")

        assert by_colon is by_dot
        assert callable(by_colon)

    def test_missing_module(self):
        with pytest.raises(ResolverSpecError, match="Cannot import"):
            resolve_import("gqlcompose_no_such_module:thing")

    def test_missing_attribute(self, helpers_module):
        with pytest.raises(ResolverSpecError, match="Cannot import"):
            resolve_import(f"{helpers_module}:nothing_here")

    def test_bare_name(self):
        with pytest.raises(ResolverSpecError, match="module:attribute"):
            resolve_import("resolve_reference")


class TestLoadCustomConfig:
    """Tests for load_custom_config."""

    def test_full_document(self, helpers_module, write_config):
        path = write_config(
            f"""
            definition: |
              type Product @key(fields: "id") {{ id: ID! name: String }}
              scalar Money
              enum Color {{ RED }}
            query: |
              products: [Product]
            resolver:
              Query:
                products:
                  resolver: Product.find
                  policies: is_authenticated
                  description: All products
              Product:
                __resolveReference: "{helpers_module}:resolve_reference"
              Mutation:
                createUser: false
              Money: "{helpers_module}:money_scalar"
              Color: "{helpers_module}:Color"
            """
        )

        config = load_custom_config(path)

        assert "type Product" in config.definition
        assert config.query.strip() == "products: [Product]"
        assert config.mutation == ""
        assert config.resolver["Query"]["products"] == DeclarativeSpec(
            entity="Product",
            action="find",
            policies=("is_authenticated",),
            description="All products",
        )
        assert isinstance(config.resolver["Product"]["__resolveReference"], ExecutableBinding)
        assert config.resolver["Mutation"]["createUser"] is DISABLED
        assert isinstance(config.resolver["Money"], ScalarType)
        assert isinstance(config.resolver["Color"], EnumType)

    def test_empty_document(self, write_config):
        config = load_custom_config(write_config(""))

        assert config.as_fragment().is_empty
        assert config.resolver == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_custom_config(tmp_path / "missing.yaml")

    def test_document_must_be_mapping(self, write_config):
        with pytest.raises(ResolverSpecError, match="must be a mapping"):
            load_custom_config(write_config("- a\n- b\n"))

    def test_resolver_must_be_mapping(self, write_config):
        with pytest.raises(ResolverSpecError, match="'resolver' must be a mapping"):
            load_custom_config(write_config("resolver: nope\n"))

    def test_invalid_declarative_resolver(self, write_config):
        path = write_config(
            """
            resolver:
              Query:
                products:
                  resolver: Product.find
                  color: blue
            """
        )

        with pytest.raises(ResolverSpecError, match="Query.products"):
            load_custom_config(path)
