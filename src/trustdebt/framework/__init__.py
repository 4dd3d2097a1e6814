"""
trustdebt framework - pipeline infrastructure.

This module provides:
- Stage base classes and registration
- Structured logging with run/stage context
- Stage-indexed artifact storage
- Pipeline runner

The runner is imported from ``trustdebt.framework.runner`` directly; it
depends on the engine, which itself logs through this package.
"""

from trustdebt.framework.registry import clear_registry, get_stage, list_stages, register_stage

__all__ = [
    # Registry
    "register_stage",
    "get_stage",
    "list_stages",
    "clear_registry",
]
