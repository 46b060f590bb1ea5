"""
Error types for the typeforge schema builder.

Build-time errors derive from SchemaBuildError and are fatal: once one is
raised the build returns no schema. TypeResolutionError is the only
runtime error; it is raised while a query executes and the execution
engine reports it against the single field being resolved.

Invariants:
    - All build-time errors inherit from SchemaBuildError
    - Errors carry enough context (type and field names) to find the
      offending definition
    - Error messages are actionable
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence


class SchemaBuildError(Exception):
    """Base exception for all schema build failures.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "SCHEMA_BUILD_ERROR"
        self.details = details or {}


class ModifyError(SchemaBuildError):
    """A `modify` call targets a field the type neither declares nor inherits.

    Usually a typo in the field name or a missing `implements`.
    """

    def __init__(
        self,
        type_name: str,
        field_name: str,
        available: Sequence[str] = (),
    ) -> None:
        message = (
            f"Cannot modify field '{field_name}' on type '{type_name}': "
            f"no such field is declared or inherited"
        )
        if available:
            message += f". Available fields: {sorted(available)}"
        super().__init__(
            message,
            code="MODIFY_ERROR",
            details={"type": type_name, "field": field_name},
        )
        self.type_name = type_name
        self.field_name = field_name


class CycleError(SchemaBuildError):
    """Interfaces implement each other, directly or transitively."""

    def __init__(self, type_names: Sequence[str]) -> None:
        names = sorted(type_names)
        super().__init__(
            f"Interface implements cycle detected between: {', '.join(names)}",
            code="CYCLE_ERROR",
            details={"types": names},
        )
        self.type_names = names


class ConflictError(SchemaBuildError):
    """Two interfaces contribute incompatible fields of the same name.

    Attributes:
        type_name: The implementing type
        field_name: The contested field
        interfaces: Interfaces contributing differing versions
        attributes: Field attributes on which the versions differ
    """

    def __init__(
        self,
        type_name: str,
        field_name: str,
        interfaces: Sequence[str],
        attributes: Sequence[str],
    ) -> None:
        super().__init__(
            f"Field '{field_name}' on type '{type_name}' is inherited from "
            f"{', '.join(interfaces)} with conflicting {', '.join(attributes)}; "
            f"add a modify('{field_name}', ...) on '{type_name}' that sets "
            f"{', '.join(attributes)} to resolve it",
            code="CONFLICT_ERROR",
            details={
                "type": type_name,
                "field": field_name,
                "interfaces": list(interfaces),
                "attributes": list(attributes),
            },
        )
        self.type_name = type_name
        self.field_name = field_name
        self.interfaces = list(interfaces)
        self.attributes = list(attributes)


class TypeReferenceError(SchemaBuildError):
    """A type reference names an unknown type, or a type of the wrong kind."""

    def __init__(self, message: str, type_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="TYPE_REFERENCE_ERROR",
            details={"type": type_name},
        )
        self.type_name = type_name


class ConformanceError(SchemaBuildError):
    """Implementers do not conform to their interfaces, or the schema is invalid.

    Attributes:
        problems: Every problem found, in discovery order
    """

    def __init__(self, problems: List[str]) -> None:
        self.problems = problems
        super().__init__(
            f"Schema validation failed with {len(problems)} problem(s):\n"
            + "\n".join(f"  - {p}" for p in problems),
            code="CONFORMANCE_ERROR",
            details={"problems": problems},
        )


class AbstractTypeStrategyError(SchemaBuildError):
    """Type resolution info contradicts the configured strategy."""

    def __init__(self, message: str, type_name: str) -> None:
        super().__init__(
            message,
            code="ABSTRACT_TYPE_STRATEGY_ERROR",
            details={"type": type_name},
        )
        self.type_name = type_name


class MissingTypeResolutionError(SchemaBuildError):
    """Reachable abstract types cannot be resolved (strict validation only)."""

    def __init__(self, problems: List[str]) -> None:
        self.problems = problems
        super().__init__(
            "Abstract type resolution is missing:\n"
            + "\n".join(f"  - {p}" for p in problems),
            code="MISSING_TYPE_RESOLUTION",
            details={"problems": problems},
        )


class DuplicateTypeError(SchemaBuildError):
    """A type name is registered twice."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Type name '{type_name}' already registered",
            code="DUPLICATE_TYPE",
            details={"type": type_name},
        )
        self.type_name = type_name


class RegistryFrozenError(SchemaBuildError):
    """Raised when attempting to modify a frozen registry."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="REGISTRY_FROZEN")


class TypeResolutionError(Exception):
    """An abstract value could not be mapped to a concrete object type.

    Raised at query time. The execution engine turns it into an error
    entry for the one field being resolved; sibling fields are unaffected.
    """

    def __init__(self, abstract_type: str, message: str) -> None:
        super().__init__(message)
        self.abstract_type = abstract_type
