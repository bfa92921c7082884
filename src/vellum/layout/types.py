"""Data models for layout composition.

Immutable frozen dataclasses recording what happened while one view was
wrapped in its layout chain.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LayoutStep:
    """One substitution in a layout chain.

    Attributes:
        layout: Registered name of the layout that was applied.
        before: Content spliced into the layout's insertion point.
        after: The layout's content with the insertion point filled.
    """

    layout: str
    before: str
    after: str


@dataclass(frozen=True, slots=True)
class LayoutResult:
    """Outcome of composing a view with its layout chain.

    Attributes:
        result: Fully composed template source.
        history: Steps in the order they were applied, innermost first.
    """

    result: str
    history: tuple[LayoutStep, ...] = ()

    @property
    def names(self) -> list[str]:
        return [step.layout for step in self.history]
