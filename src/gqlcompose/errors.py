"""
Exceptions raised while composing a schema.

All of them are construction-time failures: the same inputs always fail the
same way, so callers are expected to abort startup rather than retry.
"""


class CompositionError(Exception):
    """Base class for schema composition failures."""

    pass


class SchemaBuildError(CompositionError):
    """Raised when the assembled SDL cannot be compiled into a schema."""

    pass


class ResolverSpecError(CompositionError):
    """Raised when a resolver entry cannot be turned into a binding."""

    pass


class FederationBuildError(CompositionError):
    """Raised when the federation-aware recompilation fails."""

    pass
