"""
Schema build entry points.

A build is one synchronous pass:

    register -> freeze -> resolve hierarchy (merging patches)
    -> plan abstract type resolution -> assemble (+ SDL)

Any build-time error aborts the pass and no schema is returned. The
registry used for a build stays frozen afterwards.

Example:
    >>> built = make_schema(
    ...     [node, user, query_field("node", "Node", resolve=...)],
    ...     options={"abstractTypeStrategy": "resolveType"},
    ... )
    >>> graphql_sync(built.schema, "{ node { id } }")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from graphql import GraphQLSchema

from ..config import SchemaSettings
from .assembler import SchemaAssembler, render_sdl
from .hierarchy import HierarchyResolver, ResolvedType, possible_types
from .registry import ROOT_TYPE_NAMES, TypeRegistry, get_registry
from .strategy import AbstractTypePlan, plan_abstract_types

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuiltSchema:
    """Result of a successful build.

    Attributes:
        schema: Executable graphql-core schema
        types: Resolved types (effective field sets) by name
        abstract_types: Runtime type resolution plan
        fingerprint: Fingerprint of the registered definitions
        settings: Settings the build ran with
        sdl: SDL artifact, when requested
    """

    schema: GraphQLSchema
    types: Mapping[str, ResolvedType]
    abstract_types: AbstractTypePlan
    fingerprint: str
    settings: SchemaSettings
    sdl: Optional[str] = None


def _settings(
    settings: Optional[SchemaSettings],
    options: Optional[Mapping[str, Any]],
) -> SchemaSettings:
    if settings is not None and options is not None:
        raise ValueError("Pass either settings or options, not both")
    if options is not None:
        return SchemaSettings.from_options(options)
    return settings or SchemaSettings()


def make_schema(
    types: Optional[Iterable[Any]] = None,
    *,
    settings: Optional[SchemaSettings] = None,
    options: Optional[Mapping[str, Any]] = None,
    registry: Optional[TypeRegistry] = None,
    emit_sdl: bool = False,
) -> BuiltSchema:
    """Build an executable schema.

    Args:
        types: Type definitions and extensions, possibly nested in lists.
            When omitted, the process-wide registry is built.
        settings: Build settings
        options: camelCase options mapping, alternative to ``settings``
        registry: Registry to register ``types`` into (default: a new one)
        emit_sdl: Whether to render the SDL artifact

    Returns:
        BuiltSchema

    Raises:
        SchemaBuildError: Any build-time error (ModifyError, CycleError,
            ConflictError, TypeReferenceError, ConformanceError, ...)
    """
    settings = _settings(settings, options)
    if registry is None:
        registry = TypeRegistry() if types is not None else get_registry()
    if types is not None:
        registry.register_all(types)

    fingerprint = registry.freeze()
    resolved = HierarchyResolver(registry.definitions()).resolve()
    possible = possible_types(resolved)
    plan = plan_abstract_types(resolved, possible, ROOT_TYPE_NAMES, settings)
    schema = SchemaAssembler(resolved, plan).assemble()
    sdl = render_sdl(schema, header=settings.emit_sdl_header) if emit_sdl else None

    logger.info(
        f"Built schema with {len(resolved)} types using "
        f"{settings.abstract_type_strategy.value} resolution, fingerprint={fingerprint}"
    )
    return BuiltSchema(
        schema=schema,
        types=resolved,
        abstract_types=plan,
        fingerprint=fingerprint,
        settings=settings,
        sdl=sdl,
    )


def generate_sdl(
    types: Iterable[Any],
    *,
    settings: Optional[SchemaSettings] = None,
    options: Optional[Mapping[str, Any]] = None,
) -> str:
    """Build the schema and return only its SDL artifact."""
    built = make_schema(types, settings=settings, options=options, emit_sdl=True)
    return built.sdl
