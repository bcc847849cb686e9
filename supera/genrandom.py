"""Process-wide source of flat random numbers."""

from __future__ import annotations

from typing import ClassVar, Optional, Protocol


class FlatGenerator(Protocol):
    """Anything that draws uniformly from an interval, such as random.Random."""

    def uniform(self, a: float, b: float) -> float: ...


class GenRandom:
    """Singleton holding the flat random generator shared by all modules."""

    _instance: ClassVar[Optional["GenRandom"]] = None

    def __init__(self) -> None:
        self._generator: Optional[FlatGenerator] = None

    @classmethod
    def get(cls) -> "GenRandom":
        """Return the shared instance, creating it on first use."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def set_flat_gen(self, generator: Optional[FlatGenerator]) -> None:
        """Install the generator used by flat(); None removes it."""
        self._generator = generator

    def flat(self, low: float, high: float) -> float:
        """Draw a number uniformly between low and high."""
        if self._generator is None:
            raise RuntimeError("Flat random generator is not yet set!")
        return self._generator.uniform(low, high)