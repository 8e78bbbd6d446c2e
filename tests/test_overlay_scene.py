from artour.config.settings import OverlaySettings
from artour.core.anchor import anchor_from_polar
from artour.domain.models import DisplayState, TransitionEvent
from artour.engine.proximity import ProximityEngine
from artour.overlay.scene import NodeOp, OverlayProjector

from conftest import BURRUSS, south_of

H, L, D = DisplayState.HIDDEN, DisplayState.LABEL, DisplayState.DETAIL


def _event(old, new, bid="burruss-hall", distance=0.15):
    return TransitionEvent(building_id=bid, old_state=old, new_state=new, anchor=anchor_from_polar(10.0, distance))


def _ops(commands):
    return [(c.op, c.node) for c in commands]


def test_label_then_detail_then_label_then_hidden():
    p = OverlayProjector(OverlaySettings())

    assert _ops(p.apply([_event(H, L)])) == [(NodeOp.ADD, "burruss-hall")]
    assert p.visible_state("burruss-hall") is L

    to_detail = p.apply([_event(L, D, distance=0.05)])
    assert _ops(to_detail) == [
        (NodeOp.ADD, "burruss-hall-detailsNode"),
        (NodeOp.CROSSFADE, "burruss-hall-detailsNode"),
    ]
    fade = to_detail[-1]
    assert fade.fade_out_node == "burruss-hall"
    assert fade.opacity == 0.92
    assert fade.duration_seconds == 1.0
    assert to_detail[0].opacity == 0.0

    back = p.apply([_event(D, L)])
    assert _ops(back) == [(NodeOp.CROSSFADE, "burruss-hall")]
    assert back[0].fade_out_node == "burruss-hall-detailsNode"

    gone = p.apply([_event(L, H, distance=0.3)])
    assert _ops(gone) == [(NodeOp.REMOVE, "burruss-hall-detailsNode"), (NodeOp.REMOVE, "burruss-hall")]
    assert p.visible_state("burruss-hall") is H


def test_first_sighting_in_detail_adds_both_nodes():
    p = OverlayProjector()
    ops = _ops(p.apply([_event(H, D, distance=0.02)]))
    assert ops == [
        (NodeOp.ADD, "burruss-hall"),
        (NodeOp.ADD, "burruss-hall-detailsNode"),
        (NodeOp.CROSSFADE, "burruss-hall-detailsNode"),
    ]


def test_hit_test_resolves_label_and_detail_nodes():
    p = OverlayProjector()
    p.apply([_event(H, D, distance=0.02)])
    assert p.building_for_node("burruss-hall") == "burruss-hall"
    assert p.building_for_node("burruss-hall-detailsNode") == "burruss-hall"
    assert p.building_for_node("unknown") is None
    assert p.building_for_node(None) is None


def test_unchanged_visible_buildings_are_repositioned(burruss):
    engine = ProximityEngine()
    p = OverlayProjector()
    p.apply(engine.update(south_of(BURRUSS, 0.2), 0.0, [burruss]))

    moved = p.apply(engine.update(south_of(BURRUSS, 0.18), 0.0, [burruss]))
    assert _ops(moved) == [(NodeOp.MOVE, "burruss-hall")]
    assert moved[0].position[2] < 0


def test_hidden_buildings_get_no_commands(burruss):
    engine = ProximityEngine()
    p = OverlayProjector()
    assert p.apply(engine.update(south_of(BURRUSS, 0.4), 0.0, [burruss])) == []
    assert p.apply(engine.update(south_of(BURRUSS, 0.35), 0.0, [burruss])) == []
