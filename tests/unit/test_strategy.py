"""
Unit tests for abstract type strategy selection.

Tests cover:
- Explicit resolve_type resolution
- Runtime is_type_of shape checks
- Strategy mixing errors
- Missing resolution under strict and permissive validation
- Reachability from root types
"""

import logging

import pytest
from typeforge.config import AbstractTypeStrategy, SchemaSettings
from typeforge.schema.builder import interface_type, object_type, query_field, union_type
from typeforge.schema.errors import (
    AbstractTypeStrategyError,
    MissingTypeResolutionError,
    TypeResolutionError,
)
from typeforge.schema.hierarchy import HierarchyResolver, possible_types
from typeforge.schema.registry import ROOT_TYPE_NAMES, TypeRegistry
from typeforge.schema.strategy import (
    ExplicitResolverStrategy,
    RuntimeShapeCheckStrategy,
    plan_abstract_types,
    reachable_types,
    select_strategy,
)


def _plan(types, **settings):
    registry = TypeRegistry()
    registry.register_all(types)
    registry.freeze()
    resolved = HierarchyResolver(registry.definitions()).resolve()
    return plan_abstract_types(
        resolved, possible_types(resolved), ROOT_TYPE_NAMES, SchemaSettings(**settings)
    )


class Horse:
    pass


class Donkey:
    pass


def _equines(resolve_type=None, horse_check=None, donkey_check=None):
    return [
        interface_type("Equine", lambda t: t.string("name"), resolve_type=resolve_type),
        object_type("Horse", lambda t: t.implements("Equine"), is_type_of=horse_check),
        object_type("Donkey", lambda t: t.implements("Equine"), is_type_of=donkey_check),
        query_field("equine", "Equine"),
    ]


class TestSelectStrategy:
    """Tests for select_strategy."""

    def test_strategies(self):
        """Each configured kind maps to its strategy."""
        assert isinstance(select_strategy(AbstractTypeStrategy.RESOLVE_TYPE), ExplicitResolverStrategy)
        assert isinstance(select_strategy("isTypeOf"), RuntimeShapeCheckStrategy)

    def test_unknown_strategy(self):
        """Unknown strategy names are rejected."""
        with pytest.raises(ValueError):
            select_strategy("guess")


class TestExplicitResolver:
    """Tests for the resolve_type strategy."""

    def test_resolves_by_name(self):
        """The abstract type's resolve_type picks the concrete type."""
        plan = _plan(_equines(resolve_type=lambda v: type(v).__name__))

        resolver = plan.type_resolvers["Equine"]
        assert resolver(Donkey(), None, None) == "Donkey"
        assert plan.strategy == AbstractTypeStrategy.RESOLVE_TYPE
        assert plan.deferred == ()

    def test_unknown_name_fails(self):
        """Returning a name that is not a possible type fails."""
        plan = _plan(_equines(resolve_type=lambda v: "Zebra"))

        with pytest.raises(TypeResolutionError, match="'Zebra'"):
            plan.type_resolvers["Equine"](Horse(), None, None)

    def test_resolver_exceptions_propagate(self):
        """Exceptions raised by resolve_type propagate unchanged."""

        def resolve_type(value):
            raise KeyError("__typename")

        plan = _plan(_equines(resolve_type=resolve_type))

        with pytest.raises(KeyError):
            plan.type_resolvers["Equine"](Horse(), None, None)

    def test_is_type_of_is_mixing(self):
        """An object declaring is_type_of cannot join a resolve_type build."""
        with pytest.raises(AbstractTypeStrategyError, match="Horse"):
            _plan(
                _equines(
                    resolve_type=lambda v: "Horse",
                    horse_check=lambda v: isinstance(v, Horse),
                )
            )

    def test_no_is_type_of_installed(self):
        """The explicit strategy installs no is_type_of checks."""
        plan = _plan(_equines(resolve_type=lambda v: "Horse"))
        assert plan.is_type_of == {}


class TestRuntimeShapeCheck:
    """Tests for the is_type_of strategy."""

    def test_first_match_wins(self):
        """Possible types are checked in declaration order."""
        plan = _plan(
            _equines(horse_check=lambda v: True, donkey_check=lambda v: True),
            abstract_type_strategy="isTypeOf",
        )

        assert plan.type_resolvers["Equine"](Donkey(), None, None) == "Horse"

    def test_shape_check(self):
        """The matching predicate picks the concrete type."""
        plan = _plan(
            _equines(
                horse_check=lambda v: isinstance(v, Horse),
                donkey_check=lambda v: isinstance(v, Donkey),
            ),
            abstract_type_strategy="isTypeOf",
        )

        assert plan.type_resolvers["Equine"](Donkey(), None, None) == "Donkey"
        assert plan.is_type_of["Horse"](Horse(), None) is True
        assert plan.is_type_of["Horse"](Donkey(), None) is False

    def test_no_match_fails(self):
        """A value matching no predicate fails with a TypeResolutionError."""
        plan = _plan(
            _equines(
                horse_check=lambda v: isinstance(v, Horse),
                donkey_check=lambda v: isinstance(v, Donkey),
            ),
            abstract_type_strategy="isTypeOf",
        )

        with pytest.raises(TypeResolutionError, match="Value of type dict matches no possible type"):
            plan.type_resolvers["Equine"]({}, None, None)

    def test_resolve_type_is_mixing(self):
        """An abstract type declaring resolve_type cannot join an is_type_of build."""
        with pytest.raises(AbstractTypeStrategyError, match="Equine"):
            _plan(_equines(resolve_type=lambda v: "Horse"), abstract_type_strategy="isTypeOf")


class TestMissingResolution:
    """Tests for abstract types without resolution info."""

    def test_strict_reachable_fails(self):
        """Strict validation fails the build for reachable abstract types."""
        with pytest.raises(MissingTypeResolutionError, match="'Equine' has no resolve_type"):
            _plan(_equines(), strict_abstract_type_validation=True)

    def test_strict_partial_is_type_of(self):
        """Every possible type needs is_type_of under strict validation."""
        with pytest.raises(MissingTypeResolutionError, match="Donkey"):
            _plan(
                _equines(horse_check=lambda v: True),
                abstract_type_strategy="isTypeOf",
                strict_abstract_type_validation=True,
            )

    def test_strict_unreachable_passes(self):
        """Abstract types not reachable from a root type are not checked."""
        types = _equines()[:3]
        plan = _plan(types, strict_abstract_type_validation=True)
        assert plan.deferred == ("Equine",)

    def test_permissive_defers_with_warning(self, caplog):
        """Without strict validation the failure moves to query time."""
        with caplog.at_level(logging.WARNING, logger="typeforge.schema.strategy"):
            plan = _plan(_equines())

        assert plan.deferred == ("Equine",)
        assert "Equine" in caplog.text
        with pytest.raises(TypeResolutionError, match="Cannot resolve abstract type 'Equine'"):
            plan.type_resolvers["Equine"](Horse(), None, None)


class TestReachability:
    """Tests for reachable_types."""

    def test_narrowed_fields_limit_reach(self):
        """Only the effective (narrowed) field types are followed."""
        types = [
            interface_type("Node", lambda t: (t.id("id"), t.field("subNode", "Node"))),
            object_type("User", lambda t: (t.implements("Node"), t.field("subNode", "User"))),
            union_type("Orphan", lambda t: t.members("User")),
            query_field("user", "User"),
        ]
        registry = TypeRegistry()
        registry.register_all(types)
        registry.freeze()
        resolved = HierarchyResolver(registry.definitions()).resolve()

        reachable = reachable_types(resolved, possible_types(resolved), ROOT_TYPE_NAMES)

        assert reachable == {"Query", "User"}

    def test_abstract_types_reach_possible_types(self):
        """Abstract types reach their possible types."""
        types = _equines()
        registry = TypeRegistry()
        registry.register_all(types)
        registry.freeze()
        resolved = HierarchyResolver(registry.definitions()).resolve()

        reachable = reachable_types(resolved, possible_types(resolved), ROOT_TYPE_NAMES)

        assert reachable == {"Query", "Equine", "Horse", "Donkey"}
