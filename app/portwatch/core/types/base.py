"""Defines the base model shared by all Portwatch data structures.

Every value that crosses a component boundary (parsed endpoints, probe results,
alert payload context) is a frozen pydantic model built on `CanonicalModel`.
"""

from pydantic import BaseModel, ConfigDict


# ═══════════════════════════════════════════════════════════════════════════
# BASE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

class CanonicalModel(BaseModel):
    """A base model providing shared configuration for all canonical data structures.

    This class enforces immutability (`frozen=True`) and prevents unknown fields
    (`extra='forbid'`), ensuring that all data structures are strict and predictable.

    Configuration:
        frozen: Prevents modification after creation.
        extra: Rejects unknown fields.
        str_strip_whitespace: Normalizes string inputs automatically.
    """
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        str_strip_whitespace=True,
    )
