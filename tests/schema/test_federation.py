"""
Tests for the federation adapter.
"""

import pytest
from ariadne.utils import type_set_extension
from graphql import GraphQLError, build_schema, graphql_sync

from gqlcompose.errors import FederationBuildError
from gqlcompose.schema.assembler import REFERENCE_HOOK_ATTR, assemble_schema, get_reference_hook
from gqlcompose.schema.builtins import default_builtins, get_scalars
from gqlcompose.schema.federation import (
    FEDERATION_DIRECTIVES,
    FEDERATION_SCALARS,
    federate_schema,
    print_schema_with_directives,
    prune_resolvers,
    repair_reference_hooks,
)
from gqlcompose.schema.filtering import filter_disabled_fields
from gqlcompose.schema.fragments import SchemaFragment
from gqlcompose.schema.resolvers import DISABLED, ExecutableBinding, merge_resolver_tables

PRODUCT_SDL = """
type Product @key(fields: "id") {
  id: ID!
  name: String
}

type Review {
  body: String
}
"""

ENTITIES_QUERY = """
query ($representations: [_Any!]!) {
  _entities(representations: $representations) {
    ... on Product { id name }
  }
}
"""


def resolve_product_reference(_obj, _info, representation):
    return {"id": representation["id"], "name": "Widget"}


@pytest.fixture
def resolvers():
    return merge_resolver_tables(
        {
            "Query": {
                "products": ExecutableBinding(lambda *_: [{"id": "1", "name": "Lamp"}]),
                "reviews": ExecutableBinding(lambda *_: []),
            },
            "Mutation": {"archiveProduct": ExecutableBinding(lambda *_: None)},
            "Product": {"__resolveReference": ExecutableBinding(resolve_product_reference)},
        },
        get_scalars(),
    )


@pytest.fixture
def schema(resolvers):
    custom = SchemaFragment(
        type_sdl=PRODUCT_SDL,
        query_fields_sdl="products: [Product]\nreviews: [Review]",
        mutation_fields_sdl="archiveProduct(id: ID!): Product",
    )
    assembled = assemble_schema(
        SchemaFragment(),
        custom,
        resolvers,
        builtins=default_builtins(),
        is_federated=True,
    )
    diff = {"Query": {"reviews": DISABLED}, "Mutation": {"archiveProduct": DISABLED}}
    return filter_disabled_fields(assembled, diff)


class TestPrintSchemaWithDirectives:
    """Tests for print_schema_with_directives."""

    def test_applied_directives_are_kept(self, schema):
        sdl = print_schema_with_directives(schema)

        assert 'type Product @key(fields: "id")' in sdl

    def test_filtered_root_fields_are_not_printed(self, schema):
        sdl = print_schema_with_directives(schema)

        assert "products: [Product]" in sdl
        assert "reviews" not in sdl
        assert "type Mutation" not in sdl
        assert "type Review" in sdl

    def test_federation_declarations_can_be_skipped(self, schema):
        sdl = print_schema_with_directives(
            schema, skip_types=FEDERATION_SCALARS, skip_directives=FEDERATION_DIRECTIVES
        )

        assert "_FieldSet" not in sdl
        assert "directive @key" not in sdl

    def test_printed_sdl_builds(self, schema):
        rebuilt = build_schema(print_schema_with_directives(schema))

        assert set(rebuilt.query_type.fields) == {"products"}


class TestPruneResolvers:
    """Tests for prune_resolvers."""

    def test_removed_fields_and_types_are_skipped(self, schema, resolvers):
        pruned = prune_resolvers(resolvers, schema)

        assert set(pruned["Query"]) == {"products"}
        assert "Mutation" not in pruned
        assert set(pruned["Product"]) == {"__resolveReference"}
        assert pruned["JSON"] is resolvers["JSON"]

    def test_input_table_is_not_modified(self, schema, resolvers):
        prune_resolvers(resolvers, schema)

        assert set(resolvers["Query"]) == {"products", "reviews"}
        assert "Mutation" in resolvers


class TestFederateSchema:
    """Tests for federate_schema."""

    def test_adds_federation_fields(self, schema, resolvers):
        federated = federate_schema(schema, resolvers)

        assert "_service" in federated.query_type.fields
        assert "_entities" in federated.query_type.fields
        assert "reviews" not in federated.query_type.fields
        assert federated.mutation_type is None

    def test_reference_hook_is_preserved(self, schema, resolvers):
        federated = federate_schema(schema, resolvers)

        hook = get_reference_hook(federated.type_map["Product"])
        assert hook is resolve_product_reference
        assert hook is get_reference_hook(schema.type_map["Product"])

    def test_entities_resolve_through_hook(self, schema, resolvers):
        federated = federate_schema(schema, resolvers)

        result = graphql_sync(
            federated,
            ENTITIES_QUERY,
            variable_values={"representations": [{"__typename": "Product", "id": "7"}]},
        )

        assert result.errors is None
        assert result.data == {"_entities": [{"id": "7", "name": "Widget"}]}

    def test_hook_outside_the_resolver_table_is_repaired(self, schema, resolvers):
        def late_hook(_obj, _info, representation):
            return representation

        type_set_extension(schema.type_map["Review"], REFERENCE_HOOK_ATTR, late_hook)

        federated = federate_schema(schema, resolvers)

        assert get_reference_hook(federated.type_map["Review"]) is late_hook

    def test_resolvers_are_rebound(self, schema, resolvers):
        federated = federate_schema(schema, resolvers)

        result = graphql_sync(federated, "{ products { name } }")

        assert result.data == {"products": [{"name": "Lamp"}]}

    def test_compilation_failure(self, schema, resolvers, monkeypatch):
        def fail(*_args, **_kwargs):
            raise GraphQLError("Unknown directive '@shareable'.")

        monkeypatch.setattr("gqlcompose.schema.federation.make_federated_schema", fail)

        with pytest.raises(FederationBuildError, match="shareable"):
            federate_schema(schema, resolvers)


class TestRepairReferenceHooks:
    """Tests for repair_reference_hooks."""

    def test_copies_hooks_by_type_name(self):
        before = build_schema("type Query { a: A }\ntype A { id: ID }\ntype B { id: ID }")
        after = build_schema("type Query { a: A }\ntype A { id: ID }")
        type_set_extension(before.type_map["A"], REFERENCE_HOOK_ATTR, resolve_product_reference)
        type_set_extension(before.type_map["B"], REFERENCE_HOOK_ATTR, resolve_product_reference)

        repaired = repair_reference_hooks(before, after)

        assert repaired == ["A"]
        assert get_reference_hook(after.type_map["A"]) is resolve_product_reference
