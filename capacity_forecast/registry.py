import importlib
import pkgutil
from pathlib import Path
from typing import Generic, TypeVar

from capacity_forecast.models import BasePattern
from capacity_forecast.patterns import Pattern

T = TypeVar("T", bound=BasePattern)


class PatternRegistry(Generic[T]):
    """Light registry for analysis patterns"""

    _patterns: dict[str, type[Pattern[T]]] = {}

    @classmethod
    def register(cls, pattern_class: type[Pattern[T]]) -> None:
        """Register a pattern class under its name"""
        cls._patterns[pattern_class.name or pattern_class.__name__] = pattern_class

    @classmethod
    def get(cls, name: str) -> type[Pattern[T]] | None:
        """Get a pattern class by name"""
        return cls._patterns.get(name)

    @classmethod
    def create(cls, name: str) -> Pattern[T] | None:
        """Create a pattern instance"""
        pattern_class = cls.get(name)
        if pattern_class:
            return pattern_class()
        return None

    @classmethod
    def list_all(cls) -> list[str]:
        """List all registered patterns"""
        return list(cls._patterns.keys())


def autodiscover_patterns() -> None:
    """Import every module in the patterns package and register the Pattern subclasses found."""
    patterns_path = Path(__file__).parent / "patterns"
    for _, name, _ in pkgutil.iter_modules([str(patterns_path)]):
        if name != "base":
            importlib.import_module(f"capacity_forecast.patterns.{name}")

    for pattern_class in Pattern.__subclasses__():
        PatternRegistry.register(pattern_class)  # type: ignore
