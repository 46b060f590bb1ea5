"""
Field merge engine.

Applies a FieldPatch to a base FieldDef. Supplied attributes replace the
base value; everything else is kept verbatim. Arguments are merged by
name instead of replaced wholesale.

No subtype check happens here: a patch may narrow the field type to
anything, and the assembler validates the result against the interface.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Sequence

from .types import PATCHABLE_ATTRIBUTES, ArgumentDef, FieldDef, FieldPatch


def merge_args(
    base: Sequence[ArgumentDef],
    patch: Sequence[ArgumentDef],
) -> tuple[ArgumentDef, ...]:
    """Merge patch arguments into base arguments by name.

    Existing names are replaced in place, new names are appended, and
    arguments the patch does not mention are kept.

    Example:
        >>> merge_args((arg_a, arg_b), (arg_b2, arg_c))
        (arg_a, arg_b2, arg_c)
    """
    merged = {a.name: a for a in base}
    for a in patch:
        merged[a.name] = a
    return tuple(merged.values())


def merge_field(base: FieldDef, patch: FieldPatch) -> FieldDef:
    """Produce the field that results from applying ``patch`` to ``base``.

    Args:
        base: The own or inherited field
        patch: The modification recorded by ``modify``

    Returns:
        A new FieldDef; ``base`` is never mutated

    Raises:
        ValueError: If the patch targets a different field
    """
    if patch.field_name != base.name:
        raise ValueError(
            f"Patch for field '{patch.field_name}' cannot be applied to field '{base.name}'"
        )

    changes: dict[str, Any] = {}
    for attribute in patch.supplied():
        value = getattr(patch, attribute)
        if attribute == "args":
            value = merge_args(base.args, value)
        changes[attribute] = value

    if not changes:
        return base
    return replace(base, **changes)


def differing_attributes(candidates: Sequence[FieldDef]) -> list[str]:
    """Attributes on which same-named field candidates disagree."""
    first = candidates[0]
    differing = []
    for attribute in PATCHABLE_ATTRIBUTES:
        if any(getattr(c, attribute) != getattr(first, attribute) for c in candidates[1:]):
            differing.append(attribute)
    return differing
