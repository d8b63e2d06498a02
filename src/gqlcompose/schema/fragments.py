"""
Schema fragments and the fragment merger.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from ..logging import get_logger
from .resolvers import ResolverTable, merge_resolver_tables

logger = get_logger(__name__)


@dataclass(frozen=True)
class SchemaFragment:
    """A slice of a type system: type SDL, root field SDL and resolvers."""

    type_sdl: str = ""
    query_fields_sdl: str = ""
    mutation_fields_sdl: str = ""
    resolvers: ResolverTable = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.type_sdl.strip()


@runtime_checkable
class FragmentProvider(Protocol):
    """Produces schema fragments, e.g. the CRUD fragments of data models."""

    def provide(self) -> list[SchemaFragment]: ...


class StaticFragmentProvider:
    """Provider returning a fixed list of fragments."""

    def __init__(self, fragments: Iterable[SchemaFragment] = ()):
        self._fragments = list(fragments)

    def provide(self) -> list[SchemaFragment]:
        return list(self._fragments)

    def __repr__(self) -> str:
        return f"<StaticFragmentProvider(fragments={len(self._fragments)})>"


def default_fragment() -> SchemaFragment:
    return SchemaFragment()


def _join_sdl(pieces: Iterable[str]) -> str:
    return "\n".join(piece for piece in pieces if piece and piece.strip())


def merge_fragments(fragments: Sequence[SchemaFragment]) -> SchemaFragment:
    """Merge fragments into one, in order.

    SDL texts are concatenated without deduplication; name collisions are
    reported by schema compilation. Resolver tables are deep-merged and the
    later fragment wins for a field defined more than once.
    """
    if not fragments:
        return default_fragment()

    merged = SchemaFragment(
        type_sdl=_join_sdl(f.type_sdl for f in fragments),
        query_fields_sdl=_join_sdl(f.query_fields_sdl for f in fragments),
        mutation_fields_sdl=_join_sdl(f.mutation_fields_sdl for f in fragments),
        resolvers=merge_resolver_tables(*(f.resolvers for f in fragments)),
    )
    logger.debug(
        "Merged schema fragments",
        fragments=len(fragments),
        resolver_types=sorted(merged.resolvers),
    )
    return merged


def collect_fragments(providers: Iterable[FragmentProvider]) -> list[SchemaFragment]:
    """Call every provider once and return their fragments in order."""
    fragments: list[SchemaFragment] = []
    for provider in providers:
        provided = provider.provide()
        logger.debug("Collected fragments", provider=repr(provider), count=len(provided))
        fragments.extend(provided)
    return fragments
