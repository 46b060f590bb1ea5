"""
typeforge - declarative GraphQL schema construction with inheritance-aware
field overrides.

Example:
    >>> from typeforge import interface_type, object_type, make_schema
    >>> Node = interface_type(
    ...     "Node",
    ...     lambda t: t.id("id", description="Node ID"),
    ...     resolve_type=lambda value: value["__typename"],
    ... )
    >>> User = object_type(
    ...     "User",
    ...     lambda t: (t.implements("Node"), t.modify("id", description="User ID")),
    ... )
    >>> built = make_schema([Node, User], emit_sdl=True)
"""

from .config import AbstractTypeStrategy, SchemaSettings
from .schema import *  # noqa: F401,F403
from .schema import __all__ as _schema_all

__version__ = "0.4.0"

__all__ = ["AbstractTypeStrategy", "SchemaSettings", *_schema_all]
