"""
Declarative builders for schema types.

Each factory runs its definition callback immediately against a block
that accumulates fields, ``modify`` patches and ``implements``
declarations, then freezes the result into a TypeDef (or TypeExtension).

Invariants:
    - ``field`` declares an own field; redeclaring an inherited name
      creates an independent field that replaces the inherited one
    - ``modify`` records a partial patch that is applied to the own or
      inherited field during hierarchy resolution; calling it twice for
      one field replaces the pending patch
    - Only attributes passed to ``modify`` are part of the patch

Example:
    >>> User = object_type(
    ...     "User",
    ...     lambda t: (
    ...         t.implements("Node"),
    ...         t.modify("id", description="User ID"),
    ...         t.string("email"),
    ...     ),
    ... )
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .types import (
    UNSET,
    ArgumentDef,
    EnumValueDef,
    FieldDef,
    FieldPatch,
    TypeDef,
    TypeExtension,
    TypeKind,
    as_type_ref,
)

logger = logging.getLogger(__name__)

ArgsConfig = Optional[Mapping[str, ArgumentDef]]


def _named_args(args: ArgsConfig) -> tuple[ArgumentDef, ...]:
    if not args:
        return ()
    named = []
    for name, argument in args.items():
        if not isinstance(argument, ArgumentDef):
            argument = ArgumentDef(type=as_type_ref(argument))
        named.append(argument.named(name))
    return tuple(named)


def _type_name(value: Union[str, TypeDef]) -> str:
    if isinstance(value, TypeDef):
        return value.name
    if isinstance(value, str):
        return value
    raise TypeError(f"Expected a type name or TypeDef, got {value!r}")


class DefinitionBlock:
    """Builder handed to object, interface and extension definitions."""

    def __init__(self, type_name: str, kind: TypeKind) -> None:
        self._type_name = type_name
        self._kind = kind
        self._fields: dict[str, FieldDef] = {}
        self._patches: dict[str, FieldPatch] = {}
        self._interfaces: list[str] = []

    @property
    def type_name(self) -> str:
        return self._type_name

    def field(
        self,
        name: str,
        type: Any,
        *,
        description: Optional[str] = None,
        resolve: Optional[Callable[..., Any]] = None,
        args: ArgsConfig = None,
        deprecation: Optional[str] = None,
    ) -> None:
        """Declare a field on this type.

        Args:
            name: Field name
            type: Return type name, TypeDef, or non_null()/list_of() wrapper
            description: Human-readable description
            resolve: ``resolve(parent, args, context, info)``
            args: Mapping of argument name to ArgumentDef
            deprecation: Deprecation reason; marks the field deprecated

        Raises:
            ValueError: If a field of that name is already declared here
        """
        if name in self._fields:
            raise ValueError(f"Field '{name}' already declared on type '{self._type_name}'")
        self._fields[name] = FieldDef(
            name=name,
            type=as_type_ref(type),
            description=description,
            resolve=resolve,
            args=_named_args(args),
            deprecation_reason=deprecation,
        )

    def id(self, name: str, **config: Any) -> None:
        self.field(name, "ID", **config)

    def string(self, name: str, **config: Any) -> None:
        self.field(name, "String", **config)

    def int(self, name: str, **config: Any) -> None:
        self.field(name, "Int", **config)

    def float(self, name: str, **config: Any) -> None:
        self.field(name, "Float", **config)

    def boolean(self, name: str, **config: Any) -> None:
        self.field(name, "Boolean", **config)

    def modify(
        self,
        name: str,
        *,
        type: Any = UNSET,
        description: Any = UNSET,
        resolve: Any = UNSET,
        args: Any = UNSET,
        deprecation: Any = UNSET,
    ) -> None:
        """Partially override an own or inherited field.

        Only the keyword arguments actually passed become part of the patch.
        Whether the field exists is checked when the hierarchy is resolved.

        Args:
            name: Name of the field to modify
            type: Replacement (usually narrowed) return type
            description: Replacement description
            resolve: Replacement resolver, same call contract as the base
            args: Arguments to add or replace by name
            deprecation: Replacement deprecation reason
        """
        if name in self._patches:
            logger.debug(
                f"Replacing pending modify of '{self._type_name}.{name}'"
            )
        self._patches[name] = FieldPatch(
            field_name=name,
            type=type if type is UNSET else as_type_ref(type),
            description=description,
            resolve=resolve,
            args=args if args is UNSET else _named_args(args),
            deprecation_reason=deprecation,
        )

    def implements(self, *interfaces: Union[str, TypeDef]) -> None:
        """Declare interfaces this type implements."""
        for interface in interfaces:
            name = _type_name(interface)
            if name not in self._interfaces:
                self._interfaces.append(name)

    def _fields_tuple(self) -> tuple[FieldDef, ...]:
        return tuple(self._fields.values())

    def _patches_tuple(self) -> tuple[FieldPatch, ...]:
        return tuple(self._patches.values())

    def _interfaces_tuple(self) -> tuple[str, ...]:
        return tuple(self._interfaces)


class UnionDefinitionBlock:
    """Builder handed to union definitions."""

    def __init__(self, type_name: str) -> None:
        self._type_name = type_name
        self._members: list[str] = []

    def members(self, *types: Union[str, TypeDef]) -> None:
        for member in types:
            name = _type_name(member)
            if name not in self._members:
                self._members.append(name)


def object_type(
    name: str,
    definition: Callable[[DefinitionBlock], Any],
    *,
    description: Optional[str] = None,
    is_type_of: Optional[Callable[[Any], bool]] = None,
) -> TypeDef:
    """Define an object type.

    Args:
        name: Type name
        definition: Callback receiving a DefinitionBlock
        description: Human-readable description
        is_type_of: Predicate used by the runtime shape-check strategy

    Returns:
        Frozen TypeDef
    """
    block = DefinitionBlock(name, TypeKind.OBJECT)
    definition(block)
    type_def = TypeDef(
        name=name,
        kind=TypeKind.OBJECT,
        fields=block._fields_tuple(),
        patches=block._patches_tuple(),
        interfaces=block._interfaces_tuple(),
        description=description,
        is_type_of=is_type_of,
    )
    logger.debug(
        f"Defined object type {name} ({len(type_def.fields)} fields, "
        f"{len(type_def.patches)} patches)"
    )
    return type_def


def interface_type(
    name: str,
    definition: Callable[[DefinitionBlock], Any],
    *,
    description: Optional[str] = None,
    resolve_type: Optional[Callable[[Any], Optional[str]]] = None,
) -> TypeDef:
    """Define an interface type.

    Interfaces may themselves implement interfaces and modify what they
    inherit; implementers then inherit the modified fields.
    """
    block = DefinitionBlock(name, TypeKind.INTERFACE)
    definition(block)
    type_def = TypeDef(
        name=name,
        kind=TypeKind.INTERFACE,
        fields=block._fields_tuple(),
        patches=block._patches_tuple(),
        interfaces=block._interfaces_tuple(),
        description=description,
        resolve_type=resolve_type,
    )
    logger.debug(
        f"Defined interface type {name} ({len(type_def.fields)} fields, "
        f"{len(type_def.patches)} patches)"
    )
    return type_def


def union_type(
    name: str,
    definition: Callable[[UnionDefinitionBlock], Any],
    *,
    description: Optional[str] = None,
    resolve_type: Optional[Callable[[Any], Optional[str]]] = None,
) -> TypeDef:
    """Define a union type from the members declared in ``definition``."""
    block = UnionDefinitionBlock(name)
    definition(block)
    return TypeDef(
        name=name,
        kind=TypeKind.UNION,
        members=tuple(block._members),
        description=description,
        resolve_type=resolve_type,
    )


def enum_type(
    name: str,
    values: Union[Mapping[str, Any], Iterable[Union[str, EnumValueDef]]],
    *,
    description: Optional[str] = None,
) -> TypeDef:
    """Define an enum type.

    ``values`` is either a mapping of member name to internal value, or a
    sequence of member names / EnumValueDef. Bare names map to themselves.
    """
    if isinstance(values, Mapping):
        members = tuple(EnumValueDef(name=k, value=v) for k, v in values.items())
    else:
        members = tuple(
            v if isinstance(v, EnumValueDef) else EnumValueDef(name=v, value=v)
            for v in values
        )
    return TypeDef(name=name, kind=TypeKind.ENUM, values=members, description=description)


def scalar_type(
    name: str,
    *,
    serialize: Optional[Callable[[Any], Any]] = None,
    parse_value: Optional[Callable[[Any], Any]] = None,
    parse_literal: Optional[Callable[..., Any]] = None,
    description: Optional[str] = None,
) -> TypeDef:
    """Define a custom scalar type."""
    return TypeDef(
        name=name,
        kind=TypeKind.SCALAR,
        description=description,
        serialize=serialize,
        parse_value=parse_value,
        parse_literal=parse_literal,
    )


def extend_type(name: str, definition: Callable[[DefinitionBlock], Any]) -> TypeExtension:
    """Add fields, patches or interfaces to a type declared elsewhere."""
    block = DefinitionBlock(name, TypeKind.OBJECT)
    definition(block)
    return TypeExtension(
        name=name,
        fields=block._fields_tuple(),
        patches=block._patches_tuple(),
        interfaces=block._interfaces_tuple(),
    )


def query_field(name: str, type: Any, **config: Any) -> TypeExtension:
    """Add a single field to the Query root type.

    Example:
        >>> query_field("node", "Node", args={"id": arg(non_null("ID"))})
    """
    return extend_type("Query", lambda t: t.field(name, type, **config))


def mutation_field(name: str, type: Any, **config: Any) -> TypeExtension:
    """Add a single field to the Mutation root type."""
    return extend_type("Mutation", lambda t: t.field(name, type, **config))
