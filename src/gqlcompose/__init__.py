"""
gqlcompose
Composes GraphQL schema fragments and resolver tables into one executable schema
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
