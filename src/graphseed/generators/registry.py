"""Generator registry for custom generation strategies."""

from graphseed.exceptions import UnknownStrategyError


class StrategyRegistry:
    """Generation strategies registered by name, on top of the built-in faker strategy."""

    def __init__(self):
        self._strategies: dict[str, type] = {}

    def register(self, name: str, generator_class: type) -> None:
        """
        Register a custom generator.

        Raises:
            ValueError: If generator class doesn't have generate method,
                or the name is the built-in 'faker' strategy
        """
        if name == "faker":
            raise ValueError("Strategy name 'faker' is reserved for the built-in generator.")
        if not callable(getattr(generator_class, "generate", None)):
            raise ValueError(
                f"Generator class must have 'generate' method. "
                f"Class {generator_class.__name__} is missing it."
            )
        self._strategies[name] = generator_class

    def get(self, name: str) -> type:
        """
        Get generator class by strategy name.

        Raises:
            UnknownStrategyError: If nothing is registered under `name`
        """
        if name not in self._strategies:
            raise UnknownStrategyError(name, self.list_generators())
        return self._strategies[name]

    def list_generators(self) -> list[str]:
        return list(self._strategies.keys())

    def clear(self) -> None:
        """Clear all registered generators (for testing)."""
        self._strategies.clear()


_registry = StrategyRegistry()


def register_generator(name: str, generator_class: type) -> None:
    """
    Register a custom generator (user-facing API).

    Example:
        >>> from graphseed import BaseGenerator, register_generator
        >>>
        >>> class SKUGenerator(BaseGenerator):
        ...     def generate(self, column_name, column_type, **context):
        ...         return f"SKU-{context['instance']:06d}"
        >>>
        >>> register_generator('sku', SKUGenerator)
    """
    _registry.register(name, generator_class)


def get_generator(name: str) -> type:
    return _registry.get(name)


def list_generators() -> list[str]:
    return _registry.list_generators()


def clear_generators() -> None:
    """Clear all registered generators (for testing)."""
    _registry.clear()
