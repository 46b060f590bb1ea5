"""
Schema assembly.

Turns resolved type definitions into an executable graphql-core schema
and, optionally, an SDL artifact.

Validation runs before any graphql-core type is built:
- every field and argument type reference names a declared type or a
  built-in scalar, and arguments use input types
- union members are object types
- every implementer conforms to each interface in its closure, using the
  merged fields: field types may be narrowed covariantly, interface
  arguments must be present with identical types, added arguments must
  be optional

graphql-core's own schema validation runs last as a safety net.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional

from graphql import (
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLEnumType,
    GraphQLEnumValue,
    GraphQLField,
    GraphQLFloat,
    GraphQLID,
    GraphQLInt,
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLString,
    GraphQLUnionType,
    Undefined,
    print_schema,
    validate_schema,
)

from .errors import ConformanceError, TypeReferenceError
from .hierarchy import ResolvedType
from .strategy import AbstractTypePlan
from .types import FieldDef, ListOf, NonNull, TypeKind, TypeRef, format_type_ref, named_type

logger = logging.getLogger(__name__)

BUILTIN_TYPES: Dict[str, GraphQLScalarType] = {
    "String": GraphQLString,
    "Int": GraphQLInt,
    "Float": GraphQLFloat,
    "Boolean": GraphQLBoolean,
    "ID": GraphQLID,
}

SDL_HEADER = (
    "### This file was generated by typeforge. ###\n"
    "### Do not make changes to this file directly. ###\n\n"
)


def wrap_resolver(resolve: Optional[Callable[..., Any]]) -> Optional[Callable[..., Any]]:
    """Adapt ``resolve(parent, args, context, info)`` to graphql-core's calling convention."""
    if resolve is None:
        return None

    # graphql-core passes field arguments as keywords; any name is legal
    def field_resolver(*positional: Any, **args: Any) -> Any:
        parent, info = positional
        return resolve(parent, args, info.context, info)

    return field_resolver


def render_sdl(schema: GraphQLSchema, header: bool = True) -> str:
    """Render the SDL artifact for an assembled schema."""
    sdl = print_schema(schema) + "\n"
    return SDL_HEADER + sdl if header else sdl


class SchemaAssembler:
    """Builds a GraphQLSchema from resolved types.

    Example:
        >>> schema = SchemaAssembler(resolved, plan).assemble()
    """

    def __init__(
        self,
        resolved: Mapping[str, ResolvedType],
        plan: AbstractTypePlan,
    ) -> None:
        self._resolved = dict(resolved)
        self._plan = plan
        self._named: Dict[str, GraphQLNamedType] = {}

    def validate(self) -> None:
        """Validate references and interface conformance.

        Raises:
            TypeReferenceError: On the first unknown or misused type reference
            ConformanceError: With every conformance problem found
        """
        self._check_references()
        problems = self._check_conformance()
        if problems:
            raise ConformanceError(problems)

    def assemble(self) -> GraphQLSchema:
        """Validate, then build the executable schema.

        Raises:
            TypeReferenceError: If a type reference is unknown or misused
            ConformanceError: If implementers do not conform, or graphql-core
                rejects the schema
        """
        self.validate()

        for name, rt in self._resolved.items():
            self._named[name] = self._build_named(rt)

        query = self._named.get("Query")
        if query is None:
            query = GraphQLObjectType(
                "Query",
                {"ok": GraphQLField(GraphQLNonNull(GraphQLBoolean), resolve=lambda *_: True)},
            )
            self._named["Query"] = query
            logger.debug("No Query type declared, added placeholder Query.ok")

        schema = GraphQLSchema(
            query=query,
            mutation=self._named.get("Mutation"),
            types=list(self._named.values()),
        )
        errors = validate_schema(schema)
        if errors:
            raise ConformanceError([e.message for e in errors])
        return schema

    def _check_references(self) -> None:
        for root in ("Query", "Mutation"):
            rt = self._resolved.get(root)
            if rt is not None and rt.kind != TypeKind.OBJECT:
                raise TypeReferenceError(
                    f"Root type '{root}' must be an object type, not {rt.kind.value}", root
                )

        for rt in self._resolved.values():
            for field_def in rt.fields.values():
                self._check_output_ref(rt.name, field_def)
                for argument in field_def.args:
                    arg_type = named_type(argument.type)
                    target = self._resolved.get(arg_type)
                    if arg_type in BUILTIN_TYPES:
                        continue
                    if target is None:
                        raise TypeReferenceError(
                            f"Argument '{rt.name}.{field_def.name}({argument.name}:)' "
                            f"references unknown type '{arg_type}'",
                            arg_type,
                        )
                    if target.kind not in (TypeKind.SCALAR, TypeKind.ENUM):
                        raise TypeReferenceError(
                            f"Argument '{rt.name}.{field_def.name}({argument.name}:)' must be "
                            f"an input type, but '{arg_type}' is a {target.kind.value} type",
                            arg_type,
                        )
            if rt.kind == TypeKind.UNION:
                for member in rt.definition.members:
                    target = self._resolved.get(member)
                    if target is None or target.kind != TypeKind.OBJECT:
                        raise TypeReferenceError(
                            f"Union '{rt.name}' member '{member}' must be a declared object type",
                            member,
                        )

    def _check_output_ref(self, type_name: str, field_def: FieldDef) -> None:
        target = named_type(field_def.type)
        if target not in BUILTIN_TYPES and target not in self._resolved:
            raise TypeReferenceError(
                f"Field '{type_name}.{field_def.name}' references unknown type '{target}'",
                target,
            )

    def _check_conformance(self) -> List[str]:
        problems: List[str] = []
        for rt in self._resolved.values():
            for interface in rt.interfaces:
                problems.extend(self._check_implementation(rt, self._resolved[interface]))
        return problems

    def _check_implementation(self, rt: ResolvedType, interface: ResolvedType) -> List[str]:
        problems: List[str] = []
        for field_name, expected in interface.fields.items():
            actual = rt.fields.get(field_name)
            if actual is None:
                problems.append(
                    f"Interface field {interface.name}.{field_name} expected but "
                    f"{rt.name} does not provide it"
                )
                continue
            if not self.is_subtype(actual.type, expected.type):
                problems.append(
                    f"Interface field {interface.name}.{field_name} expects type "
                    f"{format_type_ref(expected.type)} but {rt.name}.{field_name} "
                    f"is type {format_type_ref(actual.type)}"
                )
            for expected_arg in expected.args:
                actual_arg = actual.get_arg(expected_arg.name)
                if actual_arg is None:
                    problems.append(
                        f"Interface field argument {interface.name}.{field_name}"
                        f"({expected_arg.name}:) expected but {rt.name}.{field_name} "
                        f"does not provide it"
                    )
                elif actual_arg.type != expected_arg.type:
                    problems.append(
                        f"Interface field argument {interface.name}.{field_name}"
                        f"({expected_arg.name}:) expects type "
                        f"{format_type_ref(expected_arg.type)} but "
                        f"{rt.name}.{field_name}({expected_arg.name}:) is type "
                        f"{format_type_ref(actual_arg.type)}"
                    )
            for actual_arg in actual.args:
                if expected.get_arg(actual_arg.name) is None and actual_arg.required:
                    problems.append(
                        f"{rt.name}.{field_name} includes required argument "
                        f"{actual_arg.name} that is missing from the interface field "
                        f"{interface.name}.{field_name}"
                    )
        return problems

    def is_subtype(self, sub: TypeRef, sup: TypeRef) -> bool:
        """Whether a field of type ``sub`` may stand in for one of type ``sup``."""
        if isinstance(sup, NonNull):
            return isinstance(sub, NonNull) and self.is_subtype(sub.of_type, sup.of_type)
        if isinstance(sub, NonNull):
            return self.is_subtype(sub.of_type, sup)
        if isinstance(sup, ListOf):
            return isinstance(sub, ListOf) and self.is_subtype(sub.of_type, sup.of_type)
        if isinstance(sub, ListOf):
            return False
        if sub == sup:
            return True
        sub_rt = self._resolved.get(sub)
        sup_rt = self._resolved.get(sup)
        if sub_rt is None or sup_rt is None:
            return False
        if sup_rt.kind == TypeKind.INTERFACE:
            return sub_rt.implements(sup)
        if sup_rt.kind == TypeKind.UNION:
            return sub in sup_rt.definition.members
        return False

    def _build_named(self, rt: ResolvedType) -> GraphQLNamedType:
        d = rt.definition
        if rt.kind == TypeKind.OBJECT:
            return GraphQLObjectType(
                d.name,
                fields=partial(self._build_fields, rt),
                interfaces=partial(self._build_interfaces, rt),
                is_type_of=self._plan.is_type_of.get(d.name),
                description=d.description,
            )
        if rt.kind == TypeKind.INTERFACE:
            return GraphQLInterfaceType(
                d.name,
                fields=partial(self._build_fields, rt),
                interfaces=partial(self._build_interfaces, rt),
                resolve_type=self._plan.type_resolvers.get(d.name),
                description=d.description,
            )
        if rt.kind == TypeKind.UNION:
            return GraphQLUnionType(
                d.name,
                types=partial(self._build_members, rt),
                resolve_type=self._plan.type_resolvers.get(d.name),
                description=d.description,
            )
        if rt.kind == TypeKind.ENUM:
            return GraphQLEnumType(
                d.name,
                {
                    v.name: GraphQLEnumValue(
                        v.value,
                        description=v.description,
                        deprecation_reason=v.deprecation_reason,
                    )
                    for v in d.values
                },
                description=d.description,
            )
        return GraphQLScalarType(
            d.name,
            serialize=d.serialize,
            parse_value=d.parse_value,
            parse_literal=d.parse_literal,
            description=d.description,
        )

    def _build_fields(self, rt: ResolvedType) -> Dict[str, GraphQLField]:
        return {
            name: GraphQLField(
                self._graphql_type(f.type),
                args={
                    a.name: GraphQLArgument(
                        self._graphql_type(a.type),
                        default_value=a.default if a.has_default else Undefined,
                        description=a.description,
                    )
                    for a in f.args
                },
                resolve=wrap_resolver(f.resolve),
                description=f.description,
                deprecation_reason=f.deprecation_reason,
            )
            for name, f in rt.fields.items()
        }

    def _build_interfaces(self, rt: ResolvedType) -> List[GraphQLInterfaceType]:
        return [self._named[name] for name in rt.interfaces]

    def _build_members(self, rt: ResolvedType) -> List[GraphQLObjectType]:
        return [self._named[name] for name in rt.definition.members]

    def _graphql_type(self, ref: TypeRef) -> Any:
        if isinstance(ref, NonNull):
            return GraphQLNonNull(self._graphql_type(ref.of_type))
        if isinstance(ref, ListOf):
            return GraphQLList(self._graphql_type(ref.of_type))
        return BUILTIN_TYPES.get(ref) or self._named[ref]
