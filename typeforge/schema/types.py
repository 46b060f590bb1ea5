"""
Core type definitions for the typeforge schema system.

This module defines the declarative building blocks of a schema:
- TypeRef wrappers (NonNull, ListOf) around type names
- ArgumentDef: a field argument
- FieldDef: a field declared on an object or interface type
- FieldPatch: a partial redefinition of an inherited (or own) field
- TypeDef: a named object, interface, union, enum or scalar type
- TypeExtension: fields added to a type declared elsewhere

Invariants:
    - Type references are names, resolved lazily at assembly, so a field
      may reference its own type or one that is declared later
    - Field names are unique within a type, argument names within a field
    - A FieldPatch distinguishes "not supplied" (UNSET) from "supplied as
      None or empty"; only supplied attributes override the base field
    - All definitions are frozen once built

Example:
    >>> Node = TypeDef(
    ...     name="Node",
    ...     kind=TypeKind.INTERFACE,
    ...     fields=(FieldDef(name="id", type=non_null("ID")),),
    ... )
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Union


class _Unset(Enum):
    """Marker for an attribute that was not supplied."""

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset.UNSET

BUILTIN_SCALARS = ("String", "Int", "Float", "Boolean", "ID")

_NAME_RE = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")

Resolver = Callable[..., Any]


def _check_name(name: str, what: str) -> None:
    if not name:
        raise ValueError(f"{what} name cannot be empty")
    if not _NAME_RE.match(name):
        raise ValueError(f"{what} name '{name}' is not a valid GraphQL name")
    if name.startswith("__"):
        raise ValueError(f"{what} name '{name}' must not begin with '__' (reserved)")


class TypeKind(Enum):
    """Kinds of named types."""

    OBJECT = "object"
    INTERFACE = "interface"
    UNION = "union"
    SCALAR = "scalar"
    ENUM = "enum"

    @property
    def is_abstract(self) -> bool:
        """Whether values of this kind need runtime type resolution."""
        return self in (TypeKind.INTERFACE, TypeKind.UNION)

    @property
    def has_fields(self) -> bool:
        """Whether this kind declares output fields."""
        return self in (TypeKind.OBJECT, TypeKind.INTERFACE)


@dataclass(frozen=True)
class NonNull:
    """Non-null wrapper around a type reference."""

    of_type: TypeRef

    def __post_init__(self) -> None:
        if isinstance(self.of_type, NonNull):
            raise ValueError("Cannot wrap a non-null type in non_null() again")


@dataclass(frozen=True)
class ListOf:
    """List wrapper around a type reference."""

    of_type: TypeRef


TypeRef = Union[str, NonNull, ListOf]


def as_type_ref(value: Any) -> TypeRef:
    """Normalize a type reference given as a name, wrapper or TypeDef."""
    if isinstance(value, TypeDef):
        return value.name
    if isinstance(value, (str, NonNull, ListOf)):
        return value
    raise TypeError(f"Expected a type name, TypeDef, non_null() or list_of(), got {value!r}")


def non_null(of_type: Any) -> NonNull:
    """Mark a type reference as non-null.

    Example:
        >>> non_null("ID")
        NonNull(of_type='ID')
    """
    return NonNull(as_type_ref(of_type))


def list_of(of_type: Any) -> ListOf:
    """Wrap a type reference in a list."""
    return ListOf(as_type_ref(of_type))


def named_type(ref: TypeRef) -> str:
    """Strip all wrappers and return the referenced type name."""
    while isinstance(ref, (NonNull, ListOf)):
        ref = ref.of_type
    return ref


def format_type_ref(ref: TypeRef) -> str:
    """Render a type reference in SDL notation, e.g. ``[User!]!``."""
    if isinstance(ref, NonNull):
        return f"{format_type_ref(ref.of_type)}!"
    if isinstance(ref, ListOf):
        return f"[{format_type_ref(ref.of_type)}]"
    return ref


@dataclass(frozen=True)
class ArgumentDef:
    """Definition of a field argument.

    Arguments are usually declared without a name through the arg helpers
    and named by the key they are given in a field's ``args`` mapping.

    Attributes:
        type: Declared input type reference
        name: Argument name (set when attached to a field)
        description: Human-readable description
        default: Default value, UNSET when the argument has none
    """

    type: TypeRef
    name: str = ""
    description: Optional[str] = None
    default: Any = UNSET

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", as_type_ref(self.type))
        if self.name:
            _check_name(self.name, "Argument")

    @property
    def has_default(self) -> bool:
        return self.default is not UNSET

    @property
    def required(self) -> bool:
        """Non-null without a default: callers must always pass it."""
        return isinstance(self.type, NonNull) and not self.has_default

    def named(self, name: str) -> ArgumentDef:
        """Return a copy carrying the given name."""
        return replace(self, name=name)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "type": format_type_ref(self.type),
        }
        if self.description:
            result["description"] = self.description
        if self.has_default:
            result["default"] = repr(self.default)
        return result


def arg(
    type: Any,
    *,
    description: Optional[str] = None,
    default: Any = UNSET,
) -> ArgumentDef:
    """Declare an argument of any input type."""
    return ArgumentDef(type=as_type_ref(type), description=description, default=default)


def string_arg(*, description: Optional[str] = None, default: Any = UNSET) -> ArgumentDef:
    return arg("String", description=description, default=default)


def int_arg(*, description: Optional[str] = None, default: Any = UNSET) -> ArgumentDef:
    return arg("Int", description=description, default=default)


def float_arg(*, description: Optional[str] = None, default: Any = UNSET) -> ArgumentDef:
    return arg("Float", description=description, default=default)


def boolean_arg(*, description: Optional[str] = None, default: Any = UNSET) -> ArgumentDef:
    return arg("Boolean", description=description, default=default)


def id_arg(*, description: Optional[str] = None, default: Any = UNSET) -> ArgumentDef:
    return arg("ID", description=description, default=default)


def _check_args(args: tuple[ArgumentDef, ...], owner: str) -> None:
    names = []
    for a in args:
        if not isinstance(a, ArgumentDef):
            raise TypeError(f"Arguments of {owner} must be ArgumentDef, got {a!r}")
        if not a.name:
            raise ValueError(f"Unnamed argument on {owner}")
        names.append(a.name)
    if len(names) != len(set(names)):
        raise ValueError(f"Duplicate argument name on {owner}")


@dataclass(frozen=True)
class FieldDef:
    """Definition of a single output field.

    Attributes:
        name: Field name, unique within the owning type
        type: Declared return type reference
        description: Human-readable description
        resolve: Resolver called as ``resolve(parent, args, context, info)``;
            None uses the execution engine's default (key/attribute lookup)
        args: Ordered argument definitions
        deprecation_reason: Set when the field is deprecated

    Example:
        >>> FieldDef(name="mother", type="Pet", description="Dam of the animal")
    """

    name: str
    type: TypeRef
    description: Optional[str] = None
    resolve: Optional[Resolver] = None
    args: tuple[ArgumentDef, ...] = ()
    deprecation_reason: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate field definition."""
        _check_name(self.name, "Field")
        object.__setattr__(self, "type", as_type_ref(self.type))
        _check_args(self.args, f"field '{self.name}'")

    @property
    def deprecated(self) -> bool:
        return self.deprecation_reason is not None

    def get_arg(self, name: str) -> Optional[ArgumentDef]:
        for a in self.args:
            if a.name == name:
                return a
        return None

    def to_dict(self) -> dict[str, Any]:
        """Structural representation (resolvers are reported, not serialized)."""
        result: dict[str, Any] = {
            "name": self.name,
            "type": format_type_ref(self.type),
        }
        if self.description:
            result["description"] = self.description
        if self.args:
            result["args"] = [a.to_dict() for a in self.args]
        if self.resolve is not None:
            result["resolver"] = True
        if self.deprecated:
            result["deprecation_reason"] = self.deprecation_reason
        return result


PATCHABLE_ATTRIBUTES = ("type", "description", "resolve", "args", "deprecation_reason")


@dataclass(frozen=True)
class FieldPatch:
    """Partial redefinition of a field, created by ``modify``.

    Every attribute defaults to UNSET. An attribute explicitly set to None
    is still supplied: ``FieldPatch("id", description=None)`` clears the
    description, while ``FieldPatch("id")`` changes nothing.

    Attributes:
        field_name: Name of the field being modified
        type: Replacement return type (may narrow the inherited one)
        description: Replacement description
        resolve: Replacement resolver
        args: Arguments merged into the base arguments by name
        deprecation_reason: Replacement deprecation reason
    """

    field_name: str
    type: Any = UNSET
    description: Any = UNSET
    resolve: Any = UNSET
    args: Any = UNSET
    deprecation_reason: Any = UNSET

    def __post_init__(self) -> None:
        _check_name(self.field_name, "Field")
        if self.type is not UNSET:
            object.__setattr__(self, "type", as_type_ref(self.type))
        if self.args is not UNSET:
            if not isinstance(self.args, tuple):
                raise TypeError(f"Patch args for '{self.field_name}' must be a tuple")
            _check_args(self.args, f"patch of field '{self.field_name}'")

    def is_set(self, attribute: str) -> bool:
        """Whether the patch supplies the given attribute."""
        return getattr(self, attribute) is not UNSET

    def supplied(self) -> tuple[str, ...]:
        """Names of the attributes this patch supplies."""
        return tuple(a for a in PATCHABLE_ATTRIBUTES if self.is_set(a))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"field": self.field_name}
        if self.is_set("type"):
            result["type"] = format_type_ref(self.type)
        if self.is_set("description"):
            result["description"] = self.description
        if self.is_set("resolve"):
            result["resolver"] = self.resolve is not None
        if self.is_set("args"):
            result["args"] = [a.to_dict() for a in self.args]
        if self.is_set("deprecation_reason"):
            result["deprecation_reason"] = self.deprecation_reason
        return result


@dataclass(frozen=True)
class EnumValueDef:
    """A single enum member."""

    name: str
    value: Any = None
    description: Optional[str] = None
    deprecation_reason: Optional[str] = None

    def __post_init__(self) -> None:
        _check_name(self.name, "Enum value")


@dataclass(frozen=True)
class TypeDef:
    """Definition of a named type.

    Which attributes are meaningful depends on ``kind``:
    - OBJECT: fields, patches, interfaces, is_type_of
    - INTERFACE: fields, patches, interfaces, resolve_type
    - UNION: members, resolve_type
    - ENUM: values
    - SCALAR: serialize, parse_value, parse_literal

    Attributes:
        name: Unique type name (canonical identity)
        kind: The kind of type
        fields: Own fields in declaration order
        patches: Pending ``modify`` patches, at most one per field
        interfaces: Names of directly implemented interfaces
        members: Union member type names
        values: Enum members
        description: Human-readable description
        resolve_type: ``resolve_type(value) -> type name`` for abstract types
        is_type_of: ``is_type_of(value) -> bool`` for object types
        serialize: Scalar output coercion
        parse_value: Scalar input coercion from variables
        parse_literal: Scalar input coercion from query literals

    Invariants:
        - Field names are unique
        - At most one patch per field name
        - Attributes that do not apply to ``kind`` stay empty
    """

    name: str
    kind: TypeKind
    fields: tuple[FieldDef, ...] = ()
    patches: tuple[FieldPatch, ...] = ()
    interfaces: tuple[str, ...] = ()
    members: tuple[str, ...] = ()
    values: tuple[EnumValueDef, ...] = ()
    description: Optional[str] = None
    resolve_type: Optional[Callable[[Any], Optional[str]]] = None
    is_type_of: Optional[Callable[[Any], bool]] = None
    serialize: Optional[Callable[[Any], Any]] = None
    parse_value: Optional[Callable[[Any], Any]] = None
    parse_literal: Optional[Callable[..., Any]] = None

    def __post_init__(self) -> None:
        """Validate type definition."""
        _check_name(self.name, "Type")
        if self.name in BUILTIN_SCALARS:
            raise ValueError(f"Type name '{self.name}' is reserved for a built-in scalar")

        field_names = [f.name for f in self.fields]
        if len(field_names) != len(set(field_names)):
            raise ValueError(f"Duplicate field name in type '{self.name}'")

        patch_names = [p.field_name for p in self.patches]
        if len(patch_names) != len(set(patch_names)):
            raise ValueError(f"Duplicate patch for one field in type '{self.name}'")

        if not self.kind.has_fields and (self.fields or self.patches or self.interfaces):
            raise ValueError(
                f"{self.kind.value} type '{self.name}' cannot declare fields or interfaces"
            )
        if self.kind != TypeKind.UNION and self.members:
            raise ValueError(f"Only union types have members, '{self.name}' is {self.kind.value}")
        if self.kind == TypeKind.UNION and not self.members:
            raise ValueError(f"Union type '{self.name}' must have at least one member")
        if self.kind == TypeKind.ENUM and not self.values:
            raise ValueError(f"Enum type '{self.name}' must have at least one value")
        if self.kind != TypeKind.ENUM and self.values:
            raise ValueError(f"Only enum types have values, '{self.name}' is {self.kind.value}")
        if self.resolve_type is not None and not self.kind.is_abstract:
            raise ValueError(f"resolve_type is only valid on interfaces and unions, not '{self.name}'")
        if self.is_type_of is not None and self.kind != TypeKind.OBJECT:
            raise ValueError(f"is_type_of is only valid on object types, not '{self.name}'")

    @property
    def is_abstract(self) -> bool:
        return self.kind.is_abstract

    def get_field(self, name: str) -> Optional[FieldDef]:
        """Get an own field by name."""
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def get_patch(self, field_name: str) -> Optional[FieldPatch]:
        """Get the pending patch for a field, if any."""
        for p in self.patches:
            if p.field_name == field_name:
                return p
        return None

    def get_field_names(self) -> list[str]:
        return [f.name for f in self.fields]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        result: dict[str, Any] = {
            "name": self.name,
            "kind": self.kind.value,
        }
        if self.description:
            result["description"] = self.description
        if self.fields:
            result["fields"] = [f.to_dict() for f in self.fields]
        if self.patches:
            result["patches"] = [p.to_dict() for p in self.patches]
        if self.interfaces:
            result["interfaces"] = list(self.interfaces)
        if self.members:
            result["members"] = list(self.members)
        if self.values:
            result["values"] = [v.name for v in self.values]
        if self.resolve_type is not None:
            result["resolve_type"] = True
        if self.is_type_of is not None:
            result["is_type_of"] = True
        return result

    def __hash__(self) -> int:
        """Hash based on name (stable identifier)."""
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        """Equality based on name."""
        if not isinstance(other, TypeDef):
            return NotImplemented
        return self.name == other.name


@dataclass(frozen=True)
class TypeExtension:
    """Fields, patches and interfaces added to a type declared elsewhere.

    Root types (Query, Mutation) that are only ever extended are created
    implicitly as object types.
    """

    name: str
    fields: tuple[FieldDef, ...] = ()
    patches: tuple[FieldPatch, ...] = ()
    interfaces: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_name(self.name, "Type")
