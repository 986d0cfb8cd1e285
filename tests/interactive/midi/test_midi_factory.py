"""interactive.midi.factory をテスト（mido 依存無し）。"""

from __future__ import annotations

import sys
import types

import pytest

import vjgrid.interactive.midi.factory as factory
from vjgrid.core.dispatch import EffectDispatchTable
from vjgrid.core.router import EventRouter
from vjgrid.core.runtime_config import ControlNotes
from vjgrid.core.snapshots.store import SnapshotStore
from vjgrid.interactive.runtime.work_queue import WorkQueue

NOTES = ControlNotes(save=0, modifier=1, next=2, previous=3, confirm=4)


class DummyGridInput:
    def __init__(self, port_name: str, *, router: EventRouter, work_queue: WorkQueue) -> None:
        self.port_name = port_name
        self.router = router
        self.work_queue = work_queue


class DummyInPort:
    def __init__(self, name: str) -> None:
        self.name = name

    def iter_pending(self):
        return []


def _grid(port_name: str | None):
    return factory.create_grid_input(
        port_name=port_name, router=EventRouter(), work_queue=WorkQueue()
    )


def _store() -> SnapshotStore:
    return SnapshotStore(EffectDispatchTable({}))


def test_none_port_disables_midi() -> None:
    assert _grid(None) is None
    assert factory.create_control_surface(port_name=None, store=_store(), notes=NOTES) is None


def test_auto_returns_none_when_mido_is_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "mido", None)
    assert _grid("auto") is None


def test_auto_returns_none_without_input_ports(monkeypatch: pytest.MonkeyPatch) -> None:
    mido = types.ModuleType("mido")
    mido.get_input_names = lambda: []  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "mido", mido)
    assert _grid("auto") is None


def test_explicit_port_raises_when_mido_is_missing(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setitem(sys.modules, "mido", None)
    with pytest.raises(RuntimeError):
        _grid("Launchpad Mini")


def test_auto_uses_first_input_name(monkeypatch: pytest.MonkeyPatch) -> None:
    mido = types.ModuleType("mido")
    mido.get_input_names = lambda: ["P1", "P2"]  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "mido", mido)
    monkeypatch.setattr(factory, "GridInput", DummyGridInput)

    grid = _grid("auto")
    assert grid is not None
    assert grid.port_name == "P1"


def test_explicit_port_creates_grid_input(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "mido", types.ModuleType("mido"))
    monkeypatch.setattr(factory, "GridInput", DummyGridInput)

    grid = _grid("My Grid")
    assert grid is not None
    assert grid.port_name == "My Grid"


def test_control_surface_opens_a_polled_port(monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[tuple[str, dict]] = []
    mido = types.ModuleType("mido")
    mido.get_input_names = lambda: ["Pads"]  # type: ignore[attr-defined]

    def open_input(name: str, **kwargs):
        opened.append((name, kwargs))
        return DummyInPort(name)

    mido.open_input = open_input  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "mido", mido)

    surface = factory.create_control_surface(port_name="Pads", store=_store(), notes=NOTES)

    assert surface is not None
    assert surface.port_name == "Pads"
    assert opened == [("Pads", {})]
    assert surface.poll() == 0


def test_control_surface_rejects_unknown_port(monkeypatch: pytest.MonkeyPatch) -> None:
    from vjgrid.interactive.midi.grid_input import InvalidPortError

    mido = types.ModuleType("mido")
    mido.get_input_names = lambda: ["Pads"]  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "mido", mido)

    with pytest.raises(InvalidPortError):
        factory.create_control_surface(port_name="Other", store=_store(), notes=NOTES)


def test_auto_control_surface_skips_excluded_ports(monkeypatch: pytest.MonkeyPatch) -> None:
    names = ["P1", "P2"]
    mido = types.ModuleType("mido")
    mido.get_input_names = lambda: list(names)  # type: ignore[attr-defined]
    mido.open_input = lambda name, **_kwargs: DummyInPort(name)  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "mido", mido)

    surface = factory.create_control_surface(
        port_name="auto", store=_store(), notes=NOTES, exclude=("P1",)
    )
    assert surface is not None
    assert surface.port_name == "P2"

    names[:] = ["P1"]
    assert (
        factory.create_control_surface(
            port_name="auto", store=_store(), notes=NOTES, exclude=("P1",)
        )
        is None
    )
