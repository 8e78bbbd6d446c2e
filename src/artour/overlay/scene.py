"""
Scene projection of engine state.

The renderer never decides what a building shows; it replays the commands this
module derives from `TransitionEvent`s. Each building has up to two nodes:
- a label node named by the building id,
- a detail-card node named `<id><detail_node_suffix>` (default `-detailsNode`).

`OverlayProjector` keeps only what is needed to turn events into commands (which
nodes currently exist) and answers hit-test lookups from node names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

from artour.config.settings import OverlaySettings
from artour.domain.models import DisplayState, TransitionEvent
from artour.engine.proximity import UpdateResult


class NodeOp(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    MOVE = "move"
    CROSSFADE = "crossfade"


@dataclass(frozen=True)
class NodeCommand:
    """One instruction for the renderer."""

    op: NodeOp
    building_id: str
    node: str
    position: tuple[float, float, float] | None = None
    opacity: float | None = None
    fade_out_node: str | None = None
    duration_seconds: float = 0.0


@dataclass
class _Nodes:
    label: bool = False
    detail: bool = False
    visible: DisplayState = DisplayState.HIDDEN


@dataclass
class OverlayProjector:
    settings: OverlaySettings = field(default_factory=OverlaySettings)
    _nodes: dict[str, _Nodes] = field(default_factory=dict, init=False, repr=False)

    def label_node(self, building_id: str) -> str:
        return building_id

    def detail_node(self, building_id: str) -> str:
        return f"{building_id}{self.settings.detail_node_suffix}"

    def building_for_node(self, node_name: str | None) -> str | None:
        """Resolve a hit-tested node name back to its building id."""
        if not node_name:
            return None
        suffix = self.settings.detail_node_suffix
        if node_name.endswith(suffix):
            candidate = node_name[: -len(suffix)]
            if candidate in self._nodes and self._nodes[candidate].detail:
                return candidate
        nodes = self._nodes.get(node_name)
        return node_name if nodes is not None and nodes.label else None

    def visible_state(self, building_id: str) -> DisplayState:
        nodes = self._nodes.get(building_id)
        return nodes.visible if nodes is not None else DisplayState.HIDDEN

    def _on_event(self, event: TransitionEvent) -> list[NodeCommand]:
        bid = event.building_id
        pos = event.anchor.position
        nodes = self._nodes.setdefault(bid, _Nodes())
        fade = self.settings.crossfade_seconds
        label, detail = self.label_node(bid), self.detail_node(bid)
        out: list[NodeCommand] = []

        if event.new_state is DisplayState.HIDDEN:
            if nodes.detail:
                out.append(NodeCommand(NodeOp.REMOVE, bid, detail))
            if nodes.label:
                out.append(NodeCommand(NodeOp.REMOVE, bid, label))
            self._nodes.pop(bid, None)
            return out

        if not nodes.label:
            # First appearance (or first sighting straight into DETAIL): the label
            # node anchors both representations.
            initial = 1.0 if event.new_state is DisplayState.LABEL else 0.0
            out.append(NodeCommand(NodeOp.ADD, bid, label, position=pos, opacity=initial))
            nodes.label = True

        if event.new_state is DisplayState.DETAIL:
            if not nodes.detail:
                out.append(NodeCommand(NodeOp.ADD, bid, detail, position=pos, opacity=0.0))
                nodes.detail = True
            if event.old_state is DisplayState.HIDDEN:
                out.append(
                    NodeCommand(NodeOp.CROSSFADE, bid, detail, opacity=self.settings.detail_opacity, duration_seconds=fade)
                )
            else:
                out.append(
                    NodeCommand(
                        NodeOp.CROSSFADE,
                        bid,
                        detail,
                        opacity=self.settings.detail_opacity,
                        fade_out_node=label,
                        duration_seconds=fade,
                    )
                )
        elif event.old_state is DisplayState.DETAIL:
            out.append(
                NodeCommand(
                    NodeOp.CROSSFADE,
                    bid,
                    label,
                    opacity=self.settings.detail_opacity,
                    fade_out_node=detail,
                    duration_seconds=fade,
                )
            )

        nodes.visible = event.new_state
        return out

    def apply(self, result: UpdateResult | Iterable[TransitionEvent]) -> list[NodeCommand]:
        """Translate one engine update into renderer commands.

        Transitions come first, in event order; then every other visible node is
        moved to its refreshed anchor.
        """
        events = list(result)
        commands: list[NodeCommand] = []
        changed: set[str] = set()
        for event in events:
            commands.extend(self._on_event(event))
            changed.add(event.building_id)

        anchors = result.anchors if isinstance(result, UpdateResult) else {}
        for bid, anchor in anchors.items():
            if bid in changed or bid not in self._nodes:
                continue
            nodes = self._nodes[bid]
            if nodes.label:
                commands.append(NodeCommand(NodeOp.MOVE, bid, self.label_node(bid), position=anchor.position))
            if nodes.detail:
                commands.append(NodeCommand(NodeOp.MOVE, bid, self.detail_node(bid), position=anchor.position))
        return commands
