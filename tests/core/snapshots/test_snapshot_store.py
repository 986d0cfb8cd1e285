"""core.snapshots.store（キャプチャ保存とリコール状態機械）をテスト。"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from vjgrid.core.dispatch import EffectDispatchTable
from vjgrid.core.effects import (
    ChromaticDisplacementController,
    DepthOfFieldController,
    PixelSortController,
)
from vjgrid.core.snapshots.document import RuntimePresetRecord
from vjgrid.core.snapshots.persistence import load_snapshot_document
from vjgrid.core.snapshots.store import RecallState, SnapshotStore
from vjgrid.core.transitions import ParameterTransitionScheduler


def _fixed_clock() -> datetime:
    return datetime(2026, 3, 14, 21, 5, 9)


def _dispatch(scheduler: ParameterTransitionScheduler) -> EffectDispatchTable:
    return EffectDispatchTable(
        {
            2: DepthOfFieldController(scheduler, rng=0),
            3: PixelSortController(scheduler, rng=1),
            4: ChromaticDisplacementController(scheduler, rng=2),
        }
    )


def _store(tmp_path: Path, **kwargs) -> tuple[ParameterTransitionScheduler, EffectDispatchTable, SnapshotStore]:
    scheduler = ParameterTransitionScheduler()
    dispatch = _dispatch(scheduler)
    store = SnapshotStore(
        dispatch, path=tmp_path / "vj_presets.json", clock=_fixed_clock, **kwargs
    )
    store.load()
    return scheduler, dispatch, store


def _capture_n(store: SnapshotStore, n: int) -> None:
    for i in range(n):
        store.capture(f"s{i}")


def test_capture_appends_persists_and_notifies(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    saved: list[str] = []
    store.subscribe_saved(saved.append)

    record = store.capture()

    assert record is not None
    assert record.name == "Saved_21:05:09"
    assert record.effect_type == "DoF"
    assert record.saved_at == "2026-03-14T21:05:09"
    assert saved == ["Saved_21:05:09"]
    assert store.is_durable is True
    on_disk = load_snapshot_document(tmp_path / "vj_presets.json")
    assert on_disk.records == (record,)


def test_capture_uses_the_active_row(tmp_path: Path) -> None:
    _, dispatch, store = _store(tmp_path)
    dispatch.active_row = 3

    record = store.capture("ps")

    assert record is not None
    assert record.effect_type == "PixelSort"
    assert json.loads(record.payload)["preset_name"] == "ps"


def test_capture_without_active_controller_is_a_noop(tmp_path: Path) -> None:
    _, dispatch, store = _store(tmp_path)
    dispatch.active_row = 0
    saved: list[str] = []
    store.subscribe_saved(saved.append)

    assert store.capture() is None
    assert store.records == ()
    assert saved == []
    assert not (tmp_path / "vj_presets.json").exists()


def test_write_failure_keeps_record_in_memory(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    scheduler = ParameterTransitionScheduler()
    store = SnapshotStore(_dispatch(scheduler), path=blocker / "vj_presets.json")

    record = store.capture("kept")

    assert record is not None
    assert store.records == (record,)
    assert store.is_durable is False


def test_failing_saved_callback_does_not_break_capture(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    calls: list[str] = []

    def broken(name: str) -> None:
        raise RuntimeError(name)

    store.subscribe_saved(broken)
    store.subscribe_saved(calls.append)

    assert store.capture("a") is not None
    assert calls == ["a"]

    store.unsubscribe_saved(calls.append)
    store.capture("b")
    assert calls == ["a"]


def test_load_restores_previous_session(tmp_path: Path) -> None:
    _, _, first = _store(tmp_path)
    _capture_n(first, 2)

    _, _, second = _store(tmp_path)

    assert [r.name for r in second.records] == ["s0", "s1"]


def test_next_and_previous_clamp_at_both_ends(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    _capture_n(store, 3)

    store.set_modifier(True)
    assert store.cursor.active is True
    assert store.cursor.index == 0

    for _ in range(5):
        store.next()
    assert store.cursor.index == 2

    for _ in range(5):
        store.previous()
    assert store.cursor.index == 0


def test_navigation_outside_browsing_is_a_noop(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    _capture_n(store, 3)

    assert store.next() is False
    assert store.confirm() is False
    assert store.state is RecallState.INACTIVE


def test_empty_view_has_no_cursor(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)

    store.set_modifier(True)

    assert store.cursor.index is None
    assert store.next() is False
    assert store.confirm() is False


def test_browsing_filters_by_active_effect_type(tmp_path: Path) -> None:
    _, dispatch, store = _store(tmp_path)
    store.capture("dof1")
    dispatch.active_row = 3
    store.capture("ps1")
    dispatch.active_row = 2
    store.capture("dof2")

    store.set_modifier(True)
    assert [r.name for r in store.filtered_records] == ["dof1", "dof2"]
    store.set_modifier(False)

    dispatch.active_row = 3
    store.set_modifier(True)
    assert [r.name for r in store.filtered_records] == ["ps1"]


def test_confirm_restores_the_record_under_the_cursor(tmp_path: Path) -> None:
    scheduler, dispatch, store = _store(tmp_path)
    dof = dispatch.controller_for_row(2)

    dof.apply_preset(1)
    scheduler.advance(10.0)
    store.capture("portrait")
    dof.apply_preset(0)
    scheduler.advance(10.0)
    store.capture("deep")

    store.set_modifier(True)
    assert store.record_at_cursor().name == "portrait"
    assert store.confirm() is True
    scheduler.advance(10.0)

    portrait = dof.library.get(1)
    assert dof.value("mode") == portrait.values["mode"]
    assert dof.value("aperture") == pytest.approx(portrait.values["aperture"])


def test_confirm_with_undecodable_payload_returns_false(tmp_path: Path) -> None:
    path = tmp_path / "vj_presets.json"
    path.write_text(
        json.dumps(
            {"presets": [{"name": "x", "effectType": "DoF", "payload": "garbage", "savedAt": "t"}]}
        ),
        encoding="utf-8",
    )
    _, _, store = _store(tmp_path)

    store.set_modifier(True)

    assert store.record_at_cursor() is not None
    assert store.confirm() is False


def test_cursor_resets_to_zero_on_reentry_by_default(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    _capture_n(store, 3)

    store.set_modifier(True)
    store.next()
    store.next()
    store.set_modifier(False)
    assert store.cursor.active is False
    assert store.cursor.index == 2

    store.set_modifier(True)
    assert store.cursor.index == 0


def test_cursor_can_persist_across_reentry(tmp_path: Path) -> None:
    _, dispatch, store = _store(tmp_path, reset_cursor_on_enter=False)
    _capture_n(store, 3)

    store.set_modifier(True)
    store.next()
    store.next()
    store.set_modifier(False)
    store.set_modifier(True)
    assert store.cursor.index == 2

    store.set_modifier(False)
    dispatch.active_row = 3
    store.capture("ps")
    store.set_modifier(True)
    assert [r.name for r in store.filtered_records] == ["ps"]
    assert store.cursor.index == 0


def test_capture_while_browsing_refreshes_view(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    store.set_modifier(True)
    assert store.cursor.index is None

    store.capture("a")

    assert [r.name for r in store.filtered_records] == ["a"]
    assert store.cursor.index == 0


def test_repeated_modifier_press_keeps_cursor(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    _capture_n(store, 3)

    store.set_modifier(True)
    store.next()
    store.set_modifier(True)

    assert store.cursor.index == 1


def test_records_are_plain_runtime_preset_records(tmp_path: Path) -> None:
    _, _, store = _store(tmp_path)
    store.capture("a")
    assert all(isinstance(r, RuntimePresetRecord) for r in store.records)
