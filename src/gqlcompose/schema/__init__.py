"""
Schema composition: fragments, resolver tables, assembly, filtering and federation
"""

from .assembler import assemble_schema, empty_schema, get_reference_hook, is_empty_schema
from .builtins import BuiltinFragments, default_builtins
from .compiler import ResolverCompiler
from .entities import Entity, EntityRegistry, QueryParams
from .federation import federate_schema, prune_resolvers, repair_reference_hooks
from .filtering import filter_disabled_fields
from .fragments import FragmentProvider, SchemaFragment, StaticFragmentProvider, merge_fragments
from .generator import CustomSchemaConfig, PipelineConfig, generate_schema, generate_schema_from_providers
from .loader import load_custom_config
from .resolvers import (
    DISABLED,
    DeclarativeSpec,
    Disabled,
    ExecutableBinding,
    coerce_table,
    diff_resolvers,
    merge_resolver_tables,
)

__all__ = [
    "DISABLED",
    "BuiltinFragments",
    "CustomSchemaConfig",
    "DeclarativeSpec",
    "Disabled",
    "Entity",
    "EntityRegistry",
    "ExecutableBinding",
    "FragmentProvider",
    "PipelineConfig",
    "QueryParams",
    "ResolverCompiler",
    "SchemaFragment",
    "StaticFragmentProvider",
    "assemble_schema",
    "coerce_table",
    "default_builtins",
    "diff_resolvers",
    "empty_schema",
    "federate_schema",
    "filter_disabled_fields",
    "generate_schema",
    "generate_schema_from_providers",
    "get_reference_hook",
    "is_empty_schema",
    "load_custom_config",
    "merge_fragments",
    "merge_resolver_tables",
    "prune_resolvers",
    "repair_reference_hooks",
]
