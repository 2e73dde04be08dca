"""Registry for selection policy implementations.

Uses the same decorator pattern as the random source registry. Policies are
stateless, so ``build()`` just instantiates the class with no arguments.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

    from ort_textgen.selection.base import SelectionPolicy


class SelectionPolicyRegistry:
    """Registry mapping string names to SelectionPolicy classes."""

    _registry: ClassVar[dict[str, type[SelectionPolicy]]] = {}

    @classmethod
    def register(cls, name: str) -> Callable[[type[SelectionPolicy]], type[SelectionPolicy]]:
        """Decorator that registers a SelectionPolicy class under *name*.

        Args:
            name: Identifier used in config ``selection_policy``.

        Returns:
            Decorator that registers the class and returns it unchanged.

        Raises:
            ValueError: If *name* is already registered.
        """

        def decorator(klass: type[SelectionPolicy]) -> type[SelectionPolicy]:
            if name in cls._registry:
                raise ValueError(f"Selection policy '{name}' is already registered")
            cls._registry[name] = klass
            return klass

        return decorator

    @classmethod
    def get(cls, name: str) -> type[SelectionPolicy]:
        """Return the policy class registered under *name*.

        Raises:
            KeyError: If *name* is not registered.
        """
        if name not in cls._registry:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown selection policy '{name}'. Available: {available}")
        return cls._registry[name]

    @classmethod
    def build(cls, name: str) -> SelectionPolicy:
        """Instantiate the policy registered under *name*."""
        return cls.get(name)()

    @classmethod
    def list_registered(cls) -> list[str]:
        """Return sorted list of registered policy names."""
        return sorted(cls._registry)
