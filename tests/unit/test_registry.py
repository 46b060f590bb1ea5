"""
Unit tests for the type registry.

Tests cover:
- Type registration
- Registry freezing
- Fingerprint generation
- Duplicate detection
- Extension folding
"""

import pytest
from typeforge.schema.builder import extend_type, interface_type, object_type, query_field
from typeforge.schema.errors import DuplicateTypeError, RegistryFrozenError, TypeReferenceError
from typeforge.schema.registry import TypeRegistry, get_registry, reset_registry
from typeforge.schema.types import TypeKind


class TestTypeRegistry:
    """Tests for TypeRegistry."""

    def test_register_type(self):
        """Can register a type."""
        registry = TypeRegistry()
        user = object_type("User", lambda t: t.id("id"))

        registry.register(user)

        assert registry.get_type("User") == user
        assert registry.get_type("Missing") is None

    def test_duplicate_name_raises(self):
        """Registering a duplicate name raises error."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.id("id")))

        with pytest.raises(DuplicateTypeError, match="'User' already registered"):
            registry.register(interface_type("User", lambda t: t.id("id")))

    def test_register_all_flattens(self):
        """Nested lists of definitions are registered in order."""
        registry = TypeRegistry()
        registry.register_all(
            [
                object_type("A", lambda t: t.id("id")),
                [object_type("B", lambda t: t.id("id")), (object_type("C", lambda t: t.id("id")),)],
            ]
        )
        assert [t.name for t in registry.types()] == ["A", "B", "C"]

    def test_register_rejects_other_values(self):
        """Only definitions and extensions can be registered."""
        with pytest.raises(TypeError, match="expected TypeDef or TypeExtension"):
            TypeRegistry().register("User")

    def test_freeze_registry(self):
        """Can freeze registry."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.id("id")))

        fingerprint = registry.freeze()

        assert registry.frozen is True
        assert fingerprint.startswith("sha256:")
        assert registry.fingerprint == fingerprint

    def test_cannot_register_after_freeze(self):
        """Cannot register types after freeze."""
        registry = TypeRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.register(object_type("User", lambda t: t.id("id")))
        with pytest.raises(RegistryFrozenError):
            registry.register(query_field("ok", "Boolean"))

    def test_cannot_freeze_twice(self):
        """Freezing twice raises error."""
        registry = TypeRegistry()
        registry.freeze()

        with pytest.raises(RegistryFrozenError, match="already frozen"):
            registry.freeze()

    def test_fingerprint_deterministic(self):
        """Same definitions produce the same fingerprint."""

        def build():
            registry = TypeRegistry()
            registry.register(object_type("User", lambda t: (t.id("id"), t.string("email"))))
            registry.register(object_type("Post", lambda t: t.string("title")))
            return registry.freeze()

        assert build() == build()

    def test_fingerprint_changes_with_definitions(self):
        """Different definitions produce different fingerprints."""
        r1 = TypeRegistry()
        r1.register(object_type("User", lambda t: t.id("id")))
        r2 = TypeRegistry()
        r2.register(object_type("User", lambda t: (t.id("id"), t.modify("id", description="x"))))

        assert r1.freeze() != r2.freeze()

    def test_to_json(self):
        """Registry serializes to JSON sorted by type name."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.id("id")))
        registry.register(object_type("Post", lambda t: t.string("title")))

        data = registry.to_dict()
        assert [t["name"] for t in data["types"]] == ["Post", "User"]
        assert '"name": "Post"' in registry.to_json()


class TestExtensions:
    """Tests for folding extensions into types on freeze."""

    def test_extension_adds_fields(self):
        """Extensions append fields to the target type."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.id("id")))
        registry.register(extend_type("User", lambda t: t.string("nickname")))

        registry.freeze()

        assert registry.get_type("User").get_field_names() == ["id", "nickname"]

    def test_root_types_created_implicitly(self):
        """Query is created from query fields alone."""
        registry = TypeRegistry()
        registry.register(query_field("a", "String"))
        registry.register(query_field("b", "Int"))

        registry.freeze()

        query = registry.get_type("Query")
        assert query.kind == TypeKind.OBJECT
        assert query.get_field_names() == ["a", "b"]

    def test_extension_order_independent_of_declaration(self):
        """Extensions registered before their target still apply."""
        registry = TypeRegistry()
        registry.register(extend_type("User", lambda t: t.string("nickname")))
        registry.register(object_type("User", lambda t: t.id("id")))

        registry.freeze()

        assert registry.get_type("User").get_field_names() == ["id", "nickname"]

    def test_unknown_target_raises(self):
        """Extending an unknown non-root type is an error."""
        registry = TypeRegistry()
        registry.register(extend_type("Ghost", lambda t: t.id("id")))

        with pytest.raises(TypeReferenceError, match="unknown type 'Ghost'"):
            registry.freeze()

    def test_failed_freeze_leaves_types_untouched(self):
        """A failing extension applies none of the extensions."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.id("id")))
        registry.register(extend_type("User", lambda t: t.string("nickname")))
        registry.register(extend_type("Ghost", lambda t: t.id("id")))

        with pytest.raises(TypeReferenceError):
            registry.freeze()

        assert registry.frozen is False
        assert registry.get_type("User").get_field_names() == ["id"]
        with pytest.raises(TypeReferenceError):
            registry.freeze()
        assert registry.get_type("User").get_field_names() == ["id"]

    def test_extension_patch_overrides(self):
        """An extension's modify replaces the type's pending patch."""
        registry = TypeRegistry()
        registry.register(
            object_type("User", lambda t: (t.id("id"), t.modify("id", description="First")))
        )
        registry.register(extend_type("User", lambda t: t.modify("id", description="Second")))

        registry.freeze()

        assert registry.get_type("User").get_patch("id").description == "Second"

    def test_extension_adds_interfaces(self):
        """Extensions add interfaces without duplicates."""
        registry = TypeRegistry()
        registry.register(object_type("User", lambda t: t.implements("Node")))
        registry.register(extend_type("User", lambda t: t.implements("Node", "Entity")))

        registry.freeze()

        assert registry.get_type("User").interfaces == ("Node", "Entity")


class TestGlobalRegistry:
    """Tests for the process-wide registry."""

    def test_get_registry_is_shared(self):
        """get_registry returns one instance until reset."""
        reset_registry()
        try:
            assert get_registry() is get_registry()
            first = get_registry()
            reset_registry()
            assert get_registry() is not first
        finally:
            reset_registry()
