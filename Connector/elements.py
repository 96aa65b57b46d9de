"""Value types for the aspect recipe graph."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union


@dataclass(frozen=True, order=True)
class ElementHandle:
    """Name-keyed identifier for an element (aspect)."""
    name: str

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"EH({self.name})"


def handle(name: Union[str, ElementHandle]) -> ElementHandle:
    """Coerce a name or handle into an ElementHandle."""
    if isinstance(name, ElementHandle):
        return name
    return ElementHandle(str(name))


@dataclass
class Element:
    """A row of the elements relation."""
    name: str
    belongs_to_mod: Optional[str] = None
    base_value: float = 1.0

    @property
    def handle(self) -> ElementHandle:
        return ElementHandle(self.name)

    def pretty_print(self) -> str:
        mod = self.belongs_to_mod if self.belongs_to_mod is not None else "<>"
        return f"{self.name},{mod},{self.base_value}"


@dataclass(frozen=True)
class Recipe:
    """An element produced from exactly two ordered components."""
    product: ElementHandle
    component_a: ElementHandle
    component_b: ElementHandle

    def __str__(self) -> str:
        return f"{self.product} = {self.component_a} + {self.component_b}"


@dataclass(frozen=True)
class Decomposed:
    """``components()`` result for an element that has a recipe."""
    component_a: ElementHandle
    component_b: ElementHandle

    def __iter__(self) -> Iterator[ElementHandle]:
        yield self.component_a
        yield self.component_b


@dataclass(frozen=True)
class Primitive:
    """``components()`` result for an element with no recipe."""

    def __iter__(self) -> Iterator[ElementHandle]:
        return iter(())


PRIMITIVE = Primitive()

Decomposition = Union[Decomposed, Primitive]


@dataclass
class Path:
    """
    A chain ``start -> intermediates... -> end``.

    ``weight`` is attached by the ranker; it takes no part in equality or hashing.
    """
    start: ElementHandle
    end: ElementHandle
    intermediates: Tuple[ElementHandle, ...] = ()
    weight: Optional[float] = field(default=None, compare=False)

    def __hash__(self) -> int:
        return hash((self.start, self.intermediates, self.end))

    @property
    def steps_n(self) -> int:
        return len(self.intermediates)

    @property
    def chain(self) -> Tuple[ElementHandle, ...]:
        """Every element of the path in order, endpoints included."""
        return (self.start, *self.intermediates, self.end)

    def with_weight(self, weight: float) -> "Path":
        return Path(self.start, self.end, self.intermediates, weight)

    def render(self, include_weight: bool = True) -> str:
        text = "->".join(e.name for e in self.chain)
        if include_weight and self.weight is not None:
            text = f"{text}: weight {self.weight}"
        return text

    def __str__(self) -> str:
        return self.render()
