"""core.dispatch（row -> エフェクトコントローラ表とアクティブ行）をテスト。"""

from __future__ import annotations

import pytest

from vjgrid.core.dispatch import EffectDispatchTable
from vjgrid.core.effects import (
    ChromaticDisplacementController,
    DepthOfFieldController,
    PixelSortController,
)
from vjgrid.core.events import Edge, RawInput
from vjgrid.core.grid import code_from
from vjgrid.core.router import EventRouter
from vjgrid.core.transitions import ParameterTransitionScheduler


@pytest.fixture
def table() -> EffectDispatchTable:
    scheduler = ParameterTransitionScheduler()
    return EffectDispatchTable(
        {
            2: DepthOfFieldController(scheduler, rng=0),
            3: PixelSortController(scheduler, rng=1),
            4: ChromaticDisplacementController(scheduler, rng=2),
        }
    )


def _press(router: EventRouter, row: int, col: int) -> None:
    router.handle_input(RawInput(code=code_from(row, col), edge=Edge.PRESS))


def test_row_2_is_active_at_startup(table: EffectDispatchTable) -> None:
    assert table.active_row == 2
    assert table.active_controller is table.controller_for_row(2)
    assert table.rows() == (2, 3, 4)


def test_preset_press_moves_active_row_and_applies(table: EffectDispatchTable) -> None:
    router = EventRouter()
    table.attach(router)

    _press(router, 3, 3)

    ctrl = table.controller_for_row(3)
    assert table.active_row == 3
    assert table.active_controller is ctrl
    assert ctrl.active_preset_index == 2


def test_randomize_press_moves_active_row(table: EffectDispatchTable) -> None:
    router = EventRouter()
    table.attach(router)

    _press(router, 4, 8)

    assert table.active_row == 4
    assert table.controller_for_row(4).is_transitioning()


def test_lookup_by_effect_type(table: EffectDispatchTable) -> None:
    assert table.controller_for_effect_type("PixelSort") is table.controller_for_row(3)
    assert table.controller_for_effect_type("Bloom") is None


def test_detach_stops_handling(table: EffectDispatchTable) -> None:
    router = EventRouter()
    table.attach(router)
    table.detach(router)

    _press(router, 4, 1)

    assert table.active_row == 2


def test_randomize_all_keeps_active_row(table: EffectDispatchTable) -> None:
    table.randomize_all()
    assert table.active_row == 2
    for row in table.rows():
        assert table.controller_for_row(row).is_transitioning()


def test_rejects_controllers_outside_effect_rows() -> None:
    scheduler = ParameterTransitionScheduler()
    with pytest.raises(ValueError):
        EffectDispatchTable({5: DepthOfFieldController(scheduler)})


def test_rejects_duplicate_effect_types() -> None:
    scheduler = ParameterTransitionScheduler()
    with pytest.raises(ValueError):
        EffectDispatchTable(
            {2: DepthOfFieldController(scheduler), 3: DepthOfFieldController(scheduler)}
        )
