"""Stage registry for registering and discovering pipeline stages.

Manifesto:
    A central registry lets the runner discover stages at runtime
    (by name or index) without import-time coupling.

Tags:
    trustdebt-core, framework, registry, stage-discovery, lookup

Doc-Types:
    api-reference
"""

import importlib
from collections.abc import Callable
from typing import TYPE_CHECKING

from trustdebt.core.errors import StageNotFoundError
from trustdebt.framework.logging import get_logger

if TYPE_CHECKING:
    from trustdebt.framework.stages import Stage

logger = get_logger(__name__)

BUILTIN_STAGES_MODULE = "trustdebt.pipeline.stages"

# Global stage registry
_registry: dict[str, type["Stage"]] = {}
_loaded: bool = False


def register_stage(name: str, index: int) -> Callable[[type["Stage"]], type["Stage"]]:
    """Decorator to register a stage class under ``name`` at position ``index``."""

    def decorator(cls: type["Stage"]) -> type["Stage"]:
        if name in _registry:
            raise ValueError(f"Stage '{name}' is already registered")
        taken = {s.index: s.name for s in _registry.values()}
        if index in taken:
            raise ValueError(f"Stage index {index} is already used by '{taken[index]}'")
        cls.name = name
        cls.index = index
        _registry[name] = cls
        logger.debug(
            "stage_registered",
            name=name,
            index=index,
            cls=cls.__name__,
            description=getattr(cls, "description", "") or "No description available",
        )
        return cls

    return decorator


def _ensure_loaded() -> None:
    """Ensure the built-in stages are loaded (lazy initialization)."""
    global _loaded
    if not _loaded:
        _load_stages()
        _loaded = True


def get_stage(name: str) -> type["Stage"]:
    """Get a stage class by name."""
    _ensure_loaded()
    if name not in _registry:
        raise StageNotFoundError(name, available=stage_names())
    return _registry[name]


def list_stages() -> list[type["Stage"]]:
    """All registered stage classes in index order."""
    _ensure_loaded()
    return sorted(_registry.values(), key=lambda cls: cls.index)


def stage_names() -> list[str]:
    """Registered stage names in index order."""
    return [cls.name for cls in sorted(_registry.values(), key=lambda cls: cls.index)]


def clear_registry() -> None:
    """Clear registry (for testing)."""
    global _loaded
    _registry.clear()
    _loaded = False


def _load_stages() -> None:
    """Import the built-in stage module to trigger registration."""
    importlib.import_module(BUILTIN_STAGES_MODULE)
    logger.debug("stage_registry_loaded", registered=len(_registry))
