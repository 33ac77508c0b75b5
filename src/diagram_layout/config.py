"""Centralized configuration for diagram-layout."""

from __future__ import annotations

from dataclasses import dataclass, replace

from diagram_layout.types import DiagramKind

# Default footprints (width, height) per diagram kind, in pixels.
FOOTPRINTS: dict[DiagramKind, tuple[float, float]] = {
    DiagramKind.Workflow: (256.0, 120.0),
    DiagramKind.State: (140.0, 80.0),
    DiagramKind.Erd: (200.0, 120.0),
    DiagramKind.Sequence: (120.0, 60.0),
}


@dataclass
class LayoutConfig:
    """Spacing and tuning knobs for the layout pipeline."""

    node_sep: float = 50.0
    rank_sep: float = 80.0
    edge_sep: float = 10.0
    component_sep: float = 50.0
    margin_x: float = 50.0
    margin_y: float = 50.0
    node_width: float = FOOTPRINTS[DiagramKind.default()][0]
    node_height: float = FOOTPRINTS[DiagramKind.default()][1]
    min_node_size: float = 1.0
    max_passes: int = 8
    align_passes: int = 2
    # Vertex visits (real + dummy) allowed per sweep phase; passes shrink past it.
    sweep_budget: int = 40_000
    offload_threshold: int = 200

    def __post_init__(self) -> None:
        for name in ("node_sep", "rank_sep", "edge_sep", "component_sep", "margin_x", "margin_y"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.node_width <= 0 or self.node_height <= 0:
            raise ValueError("default node footprint must be positive")
        if self.min_node_size <= 0:
            raise ValueError(f"min_node_size must be positive, got {self.min_node_size}")
        if self.max_passes < 1:
            raise ValueError(f"max_passes must be at least 1, got {self.max_passes}")
        if self.align_passes < 0:
            raise ValueError(f"align_passes must be non-negative, got {self.align_passes}")
        if self.sweep_budget < 1:
            raise ValueError(f"sweep_budget must be at least 1, got {self.sweep_budget}")

    @classmethod
    def for_kind(cls, kind: DiagramKind, **overrides: float) -> LayoutConfig:
        """Build a config whose default footprint matches ``kind``."""
        width, height = FOOTPRINTS[kind]
        return cls(node_width=width, node_height=height, **overrides)

    def with_spacing(
        self,
        node_sep: float | None = None,
        rank_sep: float | None = None,
        margin: float | None = None,
    ) -> LayoutConfig:
        """Return a copy with the given spacing overrides; ``None`` keeps the current value."""
        changes: dict[str, float] = {}
        if node_sep is not None:
            changes["node_sep"] = node_sep
        if rank_sep is not None:
            changes["rank_sep"] = rank_sep
        if margin is not None:
            changes["margin_x"] = changes["margin_y"] = margin
        return replace(self, **changes)
