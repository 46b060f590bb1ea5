"""
Schema module for typeforge.

This module provides the schema definition engine, including:
- Type definitions and builders (object, interface, union, enum, scalar)
- The type registry for one schema build
- Interface hierarchy resolution with partial field overrides (modify)
- Abstract type strategy selection
- Assembly into an executable graphql-core schema and SDL artifact

Invariants:
    - All builder calls complete before resolution starts
    - Build-time errors are fatal; a failed build yields no schema
    - The assembled schema is immutable and safe to share across threads

How to change safely:
    - Override inherited fields with modify(), not a full field() redeclaration
    - Narrow inherited field types only to subtypes of the original type
    - Keep one abstract type strategy per build
"""

from .assembler import SchemaAssembler, render_sdl
from .build import BuiltSchema, generate_sdl, make_schema
from .builder import (
    DefinitionBlock,
    UnionDefinitionBlock,
    enum_type,
    extend_type,
    interface_type,
    mutation_field,
    object_type,
    query_field,
    scalar_type,
    union_type,
)
from .errors import (
    AbstractTypeStrategyError,
    ConflictError,
    ConformanceError,
    CycleError,
    DuplicateTypeError,
    MissingTypeResolutionError,
    ModifyError,
    RegistryFrozenError,
    SchemaBuildError,
    TypeReferenceError,
    TypeResolutionError,
)
from .hierarchy import HierarchyResolver, ResolvedType, possible_types
from .merge import merge_args, merge_field
from .registry import TypeRegistry, get_registry, reset_registry
from .strategy import (
    AbstractTypePlan,
    ExplicitResolverStrategy,
    RuntimeShapeCheckStrategy,
    plan_abstract_types,
    select_strategy,
)
from .types import (
    UNSET,
    ArgumentDef,
    EnumValueDef,
    FieldDef,
    FieldPatch,
    ListOf,
    NonNull,
    TypeDef,
    TypeExtension,
    TypeKind,
    arg,
    boolean_arg,
    float_arg,
    id_arg,
    int_arg,
    list_of,
    non_null,
    string_arg,
)

__all__ = [
    # Types
    "UNSET",
    "ArgumentDef",
    "EnumValueDef",
    "FieldDef",
    "FieldPatch",
    "ListOf",
    "NonNull",
    "TypeDef",
    "TypeExtension",
    "TypeKind",
    "arg",
    "boolean_arg",
    "float_arg",
    "id_arg",
    "int_arg",
    "list_of",
    "non_null",
    "string_arg",
    # Builders
    "DefinitionBlock",
    "UnionDefinitionBlock",
    "enum_type",
    "extend_type",
    "interface_type",
    "mutation_field",
    "object_type",
    "query_field",
    "scalar_type",
    "union_type",
    # Registry
    "TypeRegistry",
    "get_registry",
    "reset_registry",
    # Resolution
    "HierarchyResolver",
    "ResolvedType",
    "possible_types",
    "merge_args",
    "merge_field",
    "AbstractTypePlan",
    "ExplicitResolverStrategy",
    "RuntimeShapeCheckStrategy",
    "plan_abstract_types",
    "select_strategy",
    # Assembly
    "SchemaAssembler",
    "render_sdl",
    "BuiltSchema",
    "make_schema",
    "generate_sdl",
    # Errors
    "SchemaBuildError",
    "ModifyError",
    "CycleError",
    "ConflictError",
    "TypeReferenceError",
    "ConformanceError",
    "AbstractTypeStrategyError",
    "MissingTypeResolutionError",
    "DuplicateTypeError",
    "RegistryFrozenError",
    "TypeResolutionError",
]
