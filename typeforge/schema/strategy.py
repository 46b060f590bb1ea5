"""
Abstract type strategy selection.

Decides, once per build, how values returned for interface and union
fields are mapped to concrete object types during execution. The set of
strategies is closed:

- ExplicitResolverStrategy: the abstract type's ``resolve_type(value)``
  returns the concrete type name
- RuntimeShapeCheckStrategy: each possible object type's
  ``is_type_of(value)`` is tried in declaration order, first match wins

Mixing the two within one abstract type group is a build error. Abstract
types reachable from a root type that lack resolution info fail the build
under strict validation; otherwise they fail per field at query time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from ..config import AbstractTypeStrategy, SchemaSettings
from .errors import AbstractTypeStrategyError, MissingTypeResolutionError, TypeResolutionError
from .hierarchy import ResolvedType
from .types import TypeDef, TypeKind, named_type

logger = logging.getLogger(__name__)

# graphql-core signature: resolve_type(value, info, abstract_type) -> type name
TypeResolver = Callable[[Any, Any, Any], str]
IsTypeOf = Callable[[Any, Any], bool]


class ExplicitResolverStrategy:
    """Resolve abstract values with the abstract type's ``resolve_type``."""

    kind = AbstractTypeStrategy.RESOLVE_TYPE

    def check(self, abstract: TypeDef, members: List[TypeDef]) -> Optional[str]:
        """Return a problem if resolution info is missing.

        Raises:
            AbstractTypeStrategyError: If a possible type declares is_type_of
        """
        for member in members:
            if member.is_type_of is not None:
                raise AbstractTypeStrategyError(
                    f"Object type '{member.name}' declares is_type_of, but abstract "
                    f"type '{abstract.name}' is resolved with resolve_type",
                    member.name,
                )
        if abstract.resolve_type is None:
            return f"{abstract.kind.value} '{abstract.name}' has no resolve_type"
        return None

    def type_resolver(self, abstract: TypeDef, members: List[TypeDef]) -> Optional[TypeResolver]:
        resolve = abstract.resolve_type
        if resolve is None:
            return None
        names = [m.name for m in members]

        def resolve_type(value: Any, info: Any, abstract_type: Any) -> str:
            # exceptions raised by the user resolver propagate unchanged
            type_name = resolve(value)
            if type_name not in names:
                raise TypeResolutionError(
                    abstract.name,
                    f"resolve_type of '{abstract.name}' returned {type_name!r}, "
                    f"which is not one of its possible types {names}",
                )
            return type_name

        return resolve_type

    def is_type_of(self, object_def: TypeDef) -> Optional[IsTypeOf]:
        return None


class RuntimeShapeCheckStrategy:
    """Resolve abstract values with the possible types' ``is_type_of``."""

    kind = AbstractTypeStrategy.IS_TYPE_OF

    def check(self, abstract: TypeDef, members: List[TypeDef]) -> Optional[str]:
        """Return a problem if resolution info is missing.

        Raises:
            AbstractTypeStrategyError: If the abstract type declares resolve_type
        """
        if abstract.resolve_type is not None:
            raise AbstractTypeStrategyError(
                f"{abstract.kind.value} '{abstract.name}' declares resolve_type, but "
                f"abstract types are resolved with is_type_of",
                abstract.name,
            )
        missing = [m.name for m in members if m.is_type_of is None]
        if missing:
            return f"possible types of '{abstract.name}' have no is_type_of: {', '.join(missing)}"
        return None

    def type_resolver(self, abstract: TypeDef, members: List[TypeDef]) -> Optional[TypeResolver]:
        checks = [(m.name, m.is_type_of) for m in members if m.is_type_of is not None]
        if not checks:
            return None

        def resolve_type(value: Any, info: Any, abstract_type: Any) -> str:
            for name, predicate in checks:
                if predicate(value):
                    return name
            raise TypeResolutionError(
                abstract.name,
                f"Value of type {type(value).__name__} matches no possible type "
                f"of '{abstract.name}'",
            )

        return resolve_type

    def is_type_of(self, object_def: TypeDef) -> Optional[IsTypeOf]:
        predicate = object_def.is_type_of
        if predicate is None:
            return None
        return lambda value, info: bool(predicate(value))


_STRATEGIES = {
    AbstractTypeStrategy.RESOLVE_TYPE: ExplicitResolverStrategy(),
    AbstractTypeStrategy.IS_TYPE_OF: RuntimeShapeCheckStrategy(),
}


def select_strategy(
    kind: AbstractTypeStrategy,
) -> Union[ExplicitResolverStrategy, RuntimeShapeCheckStrategy]:
    """Return the strategy implementation for a configured strategy kind."""
    return _STRATEGIES[AbstractTypeStrategy(kind)]


def _unresolvable(abstract: TypeDef, problem: str) -> TypeResolver:
    def resolve_type(value: Any, info: Any, abstract_type: Any) -> str:
        raise TypeResolutionError(
            abstract.name, f"Cannot resolve abstract type '{abstract.name}': {problem}"
        )

    return resolve_type


def reachable_types(
    resolved: Mapping[str, ResolvedType],
    possible: Mapping[str, List[str]],
    roots: Iterable[str],
) -> Set[str]:
    """Names of all types reachable from the root types.

    Walks effective (post-merge) field types, so a field narrowed by
    ``modify`` only reaches the narrowed type. Abstract types reach their
    possible types.
    """
    seen: Set[str] = set()
    stack = [r for r in roots if r in resolved]
    while stack:
        name = stack.pop()
        if name in seen or name not in resolved:
            continue
        seen.add(name)
        rt = resolved[name]
        for field_def in rt.fields.values():
            stack.append(named_type(field_def.type))
        stack.extend(possible.get(name, ()))
    return seen


@dataclass(frozen=True)
class AbstractTypePlan:
    """Runtime type resolution for one build.

    Attributes:
        strategy: The strategy in effect
        type_resolvers: Abstract type name to graphql-core resolve_type
        is_type_of: Object type name to graphql-core is_type_of
        deferred: Abstract types whose resolution always fails at query time
    """

    strategy: AbstractTypeStrategy
    type_resolvers: Dict[str, TypeResolver] = field(default_factory=dict)
    is_type_of: Dict[str, IsTypeOf] = field(default_factory=dict)
    deferred: Tuple[str, ...] = ()


def plan_abstract_types(
    resolved: Mapping[str, ResolvedType],
    possible: Mapping[str, List[str]],
    roots: Iterable[str],
    settings: SchemaSettings,
) -> AbstractTypePlan:
    """Select the configured strategy and prepare resolution for every abstract type.

    Raises:
        AbstractTypeStrategyError: If type resolution info mixes strategies
        MissingTypeResolutionError: If strict validation is on and a
            reachable abstract type cannot be resolved
    """
    strategy = select_strategy(settings.abstract_type_strategy)
    reachable = reachable_types(resolved, possible, roots)

    type_resolvers: Dict[str, TypeResolver] = {}
    deferred: List[str] = []
    missing: List[str] = []
    for name, rt in resolved.items():
        if not rt.kind.is_abstract:
            continue
        members = [resolved[m].definition for m in possible.get(name, ()) if m in resolved]
        problem = strategy.check(rt.definition, members)
        resolver = strategy.type_resolver(rt.definition, members)
        if problem is not None and name in reachable:
            missing.append(problem)
        if resolver is None:
            deferred.append(name)
            resolver = _unresolvable(rt.definition, problem or "no type resolution")
        type_resolvers[name] = resolver

    if missing:
        if settings.strict_abstract_type_validation:
            raise MissingTypeResolutionError(missing)
        for problem in missing:
            logger.warning(f"Abstract type resolution deferred to query time: {problem}")

    is_type_of = {}
    for name, rt in resolved.items():
        if rt.kind == TypeKind.OBJECT:
            check = strategy.is_type_of(rt.definition)
            if check is not None:
                is_type_of[name] = check

    return AbstractTypePlan(
        strategy=strategy.kind,
        type_resolvers=type_resolvers,
        is_type_of=is_type_of,
        deferred=tuple(deferred),
    )
