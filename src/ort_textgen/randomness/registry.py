"""Random source registry with entry-point auto-discovery.

Built-in sources are registered at module import time via the
``@register_random_source`` decorator. Third-party sources from other
packages are discovered lazily on the first :meth:`RandomSourceRegistry.get`
call via the ``ort_textgen.random_sources`` entry-point group.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from ort_textgen.randomness.base import RandomSource

logger = logging.getLogger("ort_textgen")

_ENTRY_POINT_GROUP = "ort_textgen.random_sources"


class RandomSourceRegistry:
    """Registry for random source classes.

    Discovery chain:

    1. Built-in sources registered via ``@register_random_source``
    2. Third-party sources discovered via ``ort_textgen.random_sources``
       entry points (loaded lazily on first ``get()`` call)
    """

    _registry: ClassVar[dict[str, type[RandomSource]]] = {}
    _entry_points_loaded: ClassVar[bool] = False

    @classmethod
    def register(cls, name: str) -> Callable[[type[RandomSource]], type[RandomSource]]:
        """Decorator to register a source class under a string key.

        Args:
            name: Unique identifier for the source (e.g., ``'system'``).

        Returns:
            The original class, unmodified.
        """

        def decorator(source_cls: type[RandomSource]) -> type[RandomSource]:
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[RandomSource]:
        """Look up a source class by name.

        Loads entry points on the first call if not already loaded.

        Args:
            name: Registered identifier for the source.

        Returns:
            The random source class (not an instance).

        Raises:
            KeyError: If *name* is not found after loading entry points.
        """
        if name in cls._registry:
            return cls._registry[name]

        if not cls._entry_points_loaded:
            cls._load_entry_points()
            if name in cls._registry:
                return cls._registry[name]

        available = ", ".join(sorted(cls._registry.keys())) or "(none)"
        raise KeyError(f"Unknown random source: {name!r}. Available: {available}")

    @classmethod
    def build(cls, name: str, seed: int | None = None) -> RandomSource:
        """Instantiate the source registered under *name*.

        A *seed* is passed to sources whose constructor accepts one; it is
        ignored (with a warning) for sources that cannot be seeded.

        Args:
            name: Registered identifier for the source.
            seed: Optional seed for reproducible draws.

        Returns:
            A fresh RandomSource instance owned by the caller.
        """
        source_cls = cls.get(name)
        if seed is None:
            return source_cls()
        try:
            return source_cls(seed=seed)  # type: ignore[call-arg]
        except TypeError:
            logger.warning("Random source %r does not accept a seed; ignoring seed=%d", name, seed)
            return source_cls()

    @classmethod
    def list_available(cls) -> list[str]:
        """Return all registered source names.

        Triggers entry-point loading if not yet done.
        """
        if not cls._entry_points_loaded:
            cls._load_entry_points()
        return sorted(cls._registry.keys())

    @classmethod
    def _load_entry_points(cls) -> None:
        """Discover and register sources from the entry-point group.

        Errors during individual entry-point loading are logged as warnings
        but do not prevent other sources from loading.
        """
        cls._entry_points_loaded = True
        try:
            eps = importlib.metadata.entry_points(group=_ENTRY_POINT_GROUP)
        except Exception:  # Intentional: must not crash on broken metadata
            logger.warning("Failed to load entry points for %s", _ENTRY_POINT_GROUP, exc_info=True)
            return

        for ep in eps:
            if ep.name in cls._registry:
                # Built-in decorator registration takes precedence.
                continue
            try:
                cls._registry[ep.name] = ep.load()
                logger.debug("Loaded random source %r from entry point", ep.name)
            except Exception:  # Intentional: one bad plugin must not block others
                logger.warning(
                    "Failed to load random source entry point %r: %s",
                    ep.name,
                    ep.value,
                    exc_info=True,
                )

    @classmethod
    def _reset(cls) -> None:
        """Reset registry state. **Test-only**, not part of public API."""
        cls._registry.clear()
        cls._entry_points_loaded = False


register_random_source = RandomSourceRegistry.register
