"""
Type Registry for typeforge.

The TypeRegistry holds every type definition taking part in one schema
build. It provides:
- Registration of type definitions and extensions
- Lookup by name
- Folding of extensions into the types they extend
- Schema fingerprinting for consistency checks
- Freeze mechanism to prevent modification once the build starts

Invariants:
    - Registry is mutable while types are declared, frozen before resolution
    - Once frozen, nothing can be registered
    - Type names are globally unique, built-in scalar names are reserved
    - Fingerprint changes when any definition changes

Example:
    >>> registry = TypeRegistry()
    >>> registry.register(object_type("User", lambda t: t.id("id")))
    >>> registry.freeze()
    'sha256:...'
    >>> registry.get_type("User").kind
    <TypeKind.OBJECT: 'object'>
"""

from __future__ import annotations

import hashlib
import json
import threading
from dataclasses import replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union
import logging

from .errors import DuplicateTypeError, RegistryFrozenError, TypeReferenceError
from .types import TypeDef, TypeExtension, TypeKind

logger = logging.getLogger(__name__)

ROOT_TYPE_NAMES = ("Query", "Mutation")

# Global registry instance
_global_registry: Optional[TypeRegistry] = None
_registry_lock = threading.Lock()


class TypeRegistry:
    """Registry of the type definitions for one schema build.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Lookups after freeze are lock-free
        - Freeze is atomic and irreversible

    Attributes:
        frozen: Whether the registry is frozen (immutable)
        fingerprint: SHA-256 hash of the definitions (computed on freeze)
    """

    def __init__(self) -> None:
        """Initialize an empty, mutable registry."""
        self._types: Dict[str, TypeDef] = {}
        self._extensions: List[TypeExtension] = []
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def frozen(self) -> bool:
        """Whether the registry is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Schema fingerprint (available after freeze)."""
        return self._fingerprint

    def register(self, definition: Union[TypeDef, TypeExtension]) -> None:
        """Register a type definition or an extension.

        Raises:
            RegistryFrozenError: If registry is frozen
            DuplicateTypeError: If the type name is already registered
        """
        if isinstance(definition, TypeExtension):
            self.register_extension(definition)
        elif isinstance(definition, TypeDef):
            self.register_type(definition)
        else:
            raise TypeError(f"Cannot register {definition!r}: expected TypeDef or TypeExtension")

    def register_all(self, definitions: Iterable[Any]) -> None:
        """Register definitions from arbitrarily nested lists or tuples."""
        for definition in definitions:
            if isinstance(definition, (list, tuple)):
                self.register_all(definition)
            else:
                self.register(definition)

    def register_type(self, type_def: TypeDef) -> None:
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot register type '{type_def.name}': registry is frozen"
                )
            if type_def.name in self._types:
                raise DuplicateTypeError(type_def.name)

            self._types[type_def.name] = type_def
            logger.debug(f"Registered {type_def.kind.value} type: {type_def.name}")

    def register_extension(self, extension: TypeExtension) -> None:
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError(
                    f"Cannot extend type '{extension.name}': registry is frozen"
                )
            self._extensions.append(extension)
            logger.debug(
                f"Registered extension of {extension.name} "
                f"({len(extension.fields)} fields, {len(extension.patches)} patches)"
            )

    def get_type(self, name: str) -> Optional[TypeDef]:
        """Get a type by name, with extensions applied once frozen."""
        return self._types.get(name)

    def types(self) -> Iterator[TypeDef]:
        """Iterate over all registered types in registration order."""
        yield from self._types.values()

    def definitions(self) -> Dict[str, TypeDef]:
        """Snapshot of all types keyed by name, in registration order."""
        return dict(self._types)

    def freeze(self) -> str:
        """Fold extensions into their types, freeze, and compute fingerprint.

        Returns:
            Schema fingerprint string

        Raises:
            RegistryFrozenError: If already frozen
            TypeReferenceError: If an extension targets an unknown type
        """
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is already frozen")

            self._apply_extensions()
            self._fingerprint = self._compute_fingerprint()
            self._frozen = True
            logger.info(
                f"Type registry frozen with {len(self._types)} types, "
                f"fingerprint={self._fingerprint}"
            )
            return self._fingerprint

    def _apply_extensions(self) -> None:
        # Fold into a copy so a failing extension leaves the registry untouched
        types = dict(self._types)
        for extension in self._extensions:
            target = types.get(extension.name)
            if target is None:
                if extension.name not in ROOT_TYPE_NAMES:
                    raise TypeReferenceError(
                        f"Cannot extend unknown type '{extension.name}'", extension.name
                    )
                target = TypeDef(name=extension.name, kind=TypeKind.OBJECT)
            if not target.kind.has_fields:
                raise TypeReferenceError(
                    f"Cannot extend {target.kind.value} type '{extension.name}' with fields",
                    extension.name,
                )
            patches = {p.field_name: p for p in target.patches}
            patches.update({p.field_name: p for p in extension.patches})
            interfaces = list(target.interfaces)
            interfaces.extend(i for i in extension.interfaces if i not in interfaces)
            types[extension.name] = replace(
                target,
                fields=target.fields + extension.fields,
                patches=tuple(patches.values()),
                interfaces=tuple(interfaces),
            )
        self._types = types
        self._extensions.clear()

    def _compute_fingerprint(self) -> str:
        """Compute SHA-256 fingerprint of the definitions.

        The fingerprint is computed from a canonical JSON representation
        of all types, sorted by name for determinism.

        Returns:
            Fingerprint string in format 'sha256:<hash>'
        """
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(',', ':'))
        hash_bytes = hashlib.sha256(canonical.encode('utf-8')).hexdigest()
        return f"sha256:{hash_bytes}"

    def to_dict(self) -> dict:
        """Convert registry to dictionary representation, sorted by name."""
        return {
            "types": [self._types[name].to_dict() for name in sorted(self._types)],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)


def get_registry() -> TypeRegistry:
    """Get the process-wide type registry.

    Creates a new registry if none exists.
    """
    global _global_registry
    with _registry_lock:
        if _global_registry is None:
            _global_registry = TypeRegistry()
        return _global_registry


def reset_registry() -> None:
    """Discard the process-wide registry so the next build starts empty."""
    global _global_registry
    with _registry_lock:
        _global_registry = None
