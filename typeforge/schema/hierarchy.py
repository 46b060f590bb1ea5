"""
Interface hierarchy resolution.

Computes, for every object and interface type, the transitive set of
interfaces it implements and its effective field set: inherited fields
unioned across implemented interfaces, own fields, and finally the
type's ``modify`` patches applied through the merge engine.

Types are resolved in topological waves. A type is resolvable once every
interface it implements is resolved, so each interface's effective field
set (including what it inherited and modified itself) is computed exactly
once and then reused by all of its implementers.

Invariants:
    - The implements graph is acyclic
    - An inherited field appears on the implementer either unchanged or
      as the merge of the implementer's patch, never as the raw patch
    - A field redeclared with ``field`` on the implementer replaces the
      inherited one outright
    - Two interfaces contributing different versions of one field is a
      conflict unless the implementer's patch makes them agree
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple

from .errors import ConflictError, CycleError, ModifyError, TypeReferenceError
from .merge import differing_attributes, merge_field
from .types import FieldDef, TypeDef, TypeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedType:
    """A type with its interface closure and effective field set.

    Attributes:
        definition: The registered TypeDef
        interfaces: All implemented interfaces, direct ones first
        fields: Effective fields after inheritance and patches
        provenance: Field name to the type that originally declared it
        modified: Names of fields patched on this type
    """

    definition: TypeDef
    interfaces: Tuple[str, ...] = ()
    fields: Mapping[str, FieldDef] = field(default_factory=lambda: MappingProxyType({}))
    provenance: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    modified: frozenset = frozenset()

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def kind(self) -> TypeKind:
        return self.definition.kind

    def get_field(self, name: str) -> Optional[FieldDef]:
        return self.fields.get(name)

    def implements(self, interface: str) -> bool:
        return interface in self.interfaces


class _Candidate(NamedTuple):
    via: str
    origin: str
    field: FieldDef


class HierarchyResolver:
    """Resolves the implements hierarchy of a set of type definitions.

    Example:
        >>> resolved = HierarchyResolver(registry.definitions()).resolve()
        >>> resolved["User"].fields["id"].description
        'Some User ID Description'
    """

    def __init__(self, definitions: Mapping[str, TypeDef]) -> None:
        self._definitions: Dict[str, TypeDef] = dict(definitions)
        self._resolved: Dict[str, ResolvedType] = {}
        self._complete = False

    def resolve(self) -> Dict[str, ResolvedType]:
        """Resolve every type, in registration order.

        Raises:
            TypeReferenceError: If a type implements an unknown type or a
                type that is not an interface
            CycleError: If interfaces implement each other
            ConflictError: If inherited fields conflict
            ModifyError: If a patch targets a field that does not exist
        """
        if not self._complete:
            self._check_edges()
            for name in self._topological_order():
                self._resolved[name] = self._resolve_type(self._definitions[name])
            self._resolved = {
                name: self._resolved.get(name) or ResolvedType(definition=d)
                for name, d in self._definitions.items()
            }
            self._complete = True
        return dict(self._resolved)

    def _check_edges(self) -> None:
        for type_def in self._definitions.values():
            for interface in type_def.interfaces:
                if interface == type_def.name and type_def.kind == TypeKind.INTERFACE:
                    raise CycleError([type_def.name])
                target = self._definitions.get(interface)
                if target is None:
                    raise TypeReferenceError(
                        f"Type '{type_def.name}' implements unknown interface '{interface}'",
                        interface,
                    )
                if target.kind != TypeKind.INTERFACE:
                    raise TypeReferenceError(
                        f"Type '{type_def.name}' implements '{interface}', which is "
                        f"a {target.kind.value} type, not an interface",
                        interface,
                    )

    def _topological_order(self) -> List[str]:
        pending = [n for n, d in self._definitions.items() if d.kind.has_fields]
        done: set = set()
        order: List[str] = []
        while pending:
            ready = [
                n for n in pending
                if all(i in done for i in self._definitions[n].interfaces)
            ]
            if not ready:
                raise CycleError(self._cycle_members(pending))
            order.extend(ready)
            done.update(ready)
            pending = [n for n in pending if n not in done]
        return order

    def _cycle_members(self, pending: List[str]) -> List[str]:
        # Strip types that nothing pending implements until only cycles remain.
        remaining = set(pending)
        while True:
            implemented = {
                i for n in remaining for i in self._definitions[n].interfaces if i in remaining
            }
            trimmed = remaining & implemented
            if trimmed == remaining:
                return sorted(remaining)
            remaining = trimmed

    def _resolve_type(self, type_def: TypeDef) -> ResolvedType:
        closure: List[str] = []
        inherited: Dict[str, List[_Candidate]] = {}
        for interface in type_def.interfaces:
            parent = self._resolved[interface]
            for name in (interface, *parent.interfaces):
                if name not in closure:
                    closure.append(name)
            for field_name, field_def in parent.fields.items():
                inherited.setdefault(field_name, []).append(
                    _Candidate(interface, parent.provenance[field_name], field_def)
                )

        own = {f.name: f for f in type_def.fields}
        fields: Dict[str, FieldDef] = {}
        provenance: Dict[str, str] = {}
        for field_name, candidates in inherited.items():
            if field_name in own:
                fields[field_name] = own[field_name]
                provenance[field_name] = type_def.name
            else:
                chosen = self._select_inherited(type_def, field_name, candidates)
                fields[field_name] = chosen.field
                provenance[field_name] = chosen.origin
        for field_def in type_def.fields:
            if field_def.name not in fields:
                fields[field_def.name] = field_def
                provenance[field_def.name] = type_def.name

        modified = set()
        for patch in type_def.patches:
            base = fields.get(patch.field_name)
            if base is None:
                raise ModifyError(type_def.name, patch.field_name, list(fields))
            fields[patch.field_name] = merge_field(base, patch)
            modified.add(patch.field_name)
            logger.debug(
                f"Modified {type_def.name}.{patch.field_name} "
                f"(from {provenance[patch.field_name]}): {', '.join(patch.supplied())}"
            )

        return ResolvedType(
            definition=type_def,
            interfaces=tuple(closure),
            fields=MappingProxyType(fields),
            provenance=MappingProxyType(provenance),
            modified=frozenset(modified),
        )

    def _select_inherited(
        self,
        type_def: TypeDef,
        field_name: str,
        candidates: List[_Candidate],
    ) -> _Candidate:
        # A sub-interface's version of a field supersedes the version of
        # the interface it extends, whether it was modified or redeclared.
        survivors = [
            c for c in candidates
            if not any(
                c.via in self._resolved[other.via].interfaces
                for other in candidates
                if other is not c
            )
        ]
        distinct: List[_Candidate] = []
        for c in survivors:
            if all(c.field != d.field for d in distinct):
                distinct.append(c)
        if len(distinct) == 1:
            return distinct[0]

        patch = type_def.get_patch(field_name)
        if patch is not None:
            merged = [merge_field(c.field, patch) for c in distinct]
            if all(m == merged[0] for m in merged[1:]):
                return distinct[0]

        raise ConflictError(
            type_def.name,
            field_name,
            [c.via for c in distinct],
            differing_attributes([c.field for c in distinct]),
        )


def possible_types(resolved: Mapping[str, ResolvedType]) -> Dict[str, List[str]]:
    """Map each abstract type to its possible object types.

    Interfaces list every object type implementing them, directly or
    transitively, in registration order. Unions list their members.
    """
    result: Dict[str, List[str]] = {}
    for name, rt in resolved.items():
        if rt.kind == TypeKind.INTERFACE:
            result[name] = [
                o.name for o in resolved.values()
                if o.kind == TypeKind.OBJECT and o.implements(name)
            ]
        elif rt.kind == TypeKind.UNION:
            result[name] = list(rt.definition.members)
    return result
