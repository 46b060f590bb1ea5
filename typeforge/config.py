"""
Configuration for typeforge schema builds.

Settings come from keyword arguments, the camelCase options mapping
accepted by ``make_schema``, or environment variables prefixed with
``TYPEFORGE_``.

Invariants:
    - One abstract type strategy applies to the whole build
    - Defaults produce a permissive build: missing type resolution is
      reported at query time rather than failing the build
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from pydantic import Field
from pydantic_settings import BaseSettings


class AbstractTypeStrategy(str, Enum):
    """How abstract values are mapped to concrete object types at runtime."""

    RESOLVE_TYPE = "resolveType"  # abstract type declares resolve_type(value)
    IS_TYPE_OF = "isTypeOf"  # each object type declares is_type_of(value)


# camelCase option name -> settings field
_OPTION_NAMES = {
    "abstractTypeStrategy": "abstract_type_strategy",
    "strictAbstractTypeValidation": "strict_abstract_type_validation",
    "emitSdlHeader": "emit_sdl_header",
}


class SchemaSettings(BaseSettings):
    """Schema build configuration."""

    abstract_type_strategy: AbstractTypeStrategy = Field(
        default=AbstractTypeStrategy.RESOLVE_TYPE,
    )
    strict_abstract_type_validation: bool = Field(
        default=False,
        description="Fail the build when a reachable abstract type cannot be resolved",
    )
    emit_sdl_header: bool = Field(
        default=True,
        description="Prefix the SDL artifact with a generated-file notice",
    )

    model_config = {"env_prefix": "TYPEFORGE_"}

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> SchemaSettings:
        """Create settings from a camelCase (or snake_case) options mapping.

        Example:
            >>> SchemaSettings.from_options({"abstractTypeStrategy": "isTypeOf"})

        Raises:
            ValueError: If an option name is not recognized
        """
        known = set(_OPTION_NAMES) | set(_OPTION_NAMES.values())
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"Unknown schema options: {unknown}. Valid options: {sorted(_OPTION_NAMES)}")
        return cls(**{_OPTION_NAMES.get(k, k): v for k, v in options.items()})
