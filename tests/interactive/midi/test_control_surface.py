"""interactive.midi.control_surface をテスト（mido 依存無し）。"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest

from vjgrid.core.dispatch import EffectDispatchTable
from vjgrid.core.effects import DepthOfFieldController, PixelSortController
from vjgrid.core.runtime_config import ControlNotes
from vjgrid.core.snapshots.store import RecallState, SnapshotStore
from vjgrid.core.transitions import ParameterTransitionScheduler
from vjgrid.interactive.midi.control_surface import ControlSurface

NOTES = ControlNotes(save=0, modifier=1, next=2, previous=3, confirm=4)


@dataclass(frozen=True, slots=True)
class DummyNoteMsg:
    type: str
    note: int
    velocity: int


class DummyInPort:
    def __init__(self, messages: list[object]) -> None:
        self._messages = list(messages)

    def iter_pending(self):
        out = list(self._messages)
        self._messages.clear()
        return out


def _press(note: int) -> DummyNoteMsg:
    return DummyNoteMsg(type="note_on", note=note, velocity=127)


def _release(note: int) -> DummyNoteMsg:
    return DummyNoteMsg(type="note_off", note=note, velocity=0)


@pytest.fixture
def store(tmp_path: Path) -> SnapshotStore:
    scheduler = ParameterTransitionScheduler()
    dispatch = EffectDispatchTable(
        {2: DepthOfFieldController(scheduler), 3: PixelSortController(scheduler)}
    )
    return SnapshotStore(dispatch, path=tmp_path / "vj_presets.json")


def test_save_press_captures_once(store: SnapshotStore) -> None:
    surface = ControlSurface(store, notes=NOTES)

    assert surface.handle_message(_press(0)) is True
    assert surface.handle_message(_release(0)) is True

    assert len(store.records) == 1


def test_modifier_holds_browsing(store: SnapshotStore) -> None:
    surface = ControlSurface(store, notes=NOTES)

    surface.handle_message(_press(1))
    assert store.state is RecallState.BROWSING
    surface.handle_message(_release(1))
    assert store.state is RecallState.INACTIVE


def test_navigation_through_polled_messages(store: SnapshotStore) -> None:
    for i in range(3):
        store.capture(f"s{i}")
    inport = DummyInPort(
        [_press(1), _press(2), _release(2), _press(2), _press(2), _press(3), _press(4)]
    )
    surface = ControlSurface(store, notes=NOTES, port_name="Dummy", inport=inport)

    assert surface.poll() == 7
    assert store.cursor.index == 1
    assert store.state is RecallState.BROWSING
    assert surface.poll() == 0


def test_poll_respects_max_messages(store: SnapshotStore) -> None:
    surface = ControlSurface(
        store, notes=NOTES, inport=DummyInPort([_press(0), _press(0), _press(0)])
    )

    assert surface.poll(max_messages=2) == 2
    assert len(store.records) == 2


def test_unmapped_notes_are_ignored(store: SnapshotStore) -> None:
    surface = ControlSurface(store, notes=NOTES)

    assert surface.handle_message(_press(60)) is False
    assert surface.handle_message(_release(60)) is False
    assert store.records == ()


def test_without_inport_poll_is_empty(store: SnapshotStore) -> None:
    surface = ControlSurface(store, notes=NOTES)
    assert surface.poll() == 0
    surface.close()
