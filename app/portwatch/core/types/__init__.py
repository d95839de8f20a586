# app/portwatch/core/types/__init__.py
"""
Public API for Portwatch's type system.

This module exposes the concrete types shared between the config loader, the
prober, the scheduler and the notifier.
"""

from .base import CanonicalModel
from .probe import (
    SUCCESS_MESSAGE,
    AlertContext,
    EndpointEntry,
    ProbeResult,
)

__all__ = [
    "CanonicalModel",
    "SUCCESS_MESSAGE",
    "AlertContext",
    "EndpointEntry",
    "ProbeResult",
]
