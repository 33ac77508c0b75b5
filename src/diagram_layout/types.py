"""Shared type definitions for diagram-layout.

Enums used across the data model, layout pipeline, codec and CLI.
"""

from __future__ import annotations

from enum import Enum, auto


class LayoutDirection(Enum):
    TB = "TB"
    BT = "BT"
    LR = "LR"
    RL = "RL"

    @classmethod
    def default(cls) -> LayoutDirection:
        return cls.TB

    @classmethod
    def parse(cls, text: str) -> LayoutDirection:
        """Parse a direction code; ``TD`` is accepted as an alias of ``TB``."""
        key = text.strip().upper()
        if key == "TD":
            return cls.TB
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown direction '{text}'; use TB, BT, LR, or RL") from None

    @property
    def is_horizontal(self) -> bool:
        return self in (LayoutDirection.LR, LayoutDirection.RL)

    @property
    def is_reversed(self) -> bool:
        return self in (LayoutDirection.BT, LayoutDirection.RL)


class HandleSide(Enum):
    Top = "top"
    Bottom = "bottom"
    Left = "left"
    Right = "right"


class HandlePolicy(Enum):
    RESET = auto()  # sides follow the layout direction
    PRESERVE = auto()  # sides pass through from the input


class DiagramKind(Enum):
    Workflow = "workflow"
    State = "state"
    Erd = "erd"
    Sequence = "sequence"

    @classmethod
    def default(cls) -> DiagramKind:
        return cls.Workflow


def handle_sides(direction: LayoutDirection) -> tuple[HandleSide, HandleSide]:
    """Return (outgoing, incoming) handle sides for a layout direction."""
    if direction is LayoutDirection.LR:
        return HandleSide.Right, HandleSide.Left
    if direction is LayoutDirection.RL:
        return HandleSide.Left, HandleSide.Right
    if direction is LayoutDirection.BT:
        return HandleSide.Top, HandleSide.Bottom
    return HandleSide.Bottom, HandleSide.Top
