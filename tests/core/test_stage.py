"""core.stage（シーンスロット / ライト / カメラ）をテスト。"""

from __future__ import annotations

from vjgrid.core.events import Edge, RawInput
from vjgrid.core.grid import code_from
from vjgrid.core.router import EventRouter
from vjgrid.core.stage import CameraSwitcher, LightBank, SceneSlotBank
from vjgrid.core.transitions import ParameterTransitionScheduler


def test_toggle_slot_flips_once_per_press_release_cycle() -> None:
    scheduler = ParameterTransitionScheduler()
    bank = SceneSlotBank(scheduler)

    assert bank.handle_slot(1, True) is True
    assert bank.states[0] is True
    assert bank.handle_slot(1, False) is False
    assert bank.states[0] is True

    assert bank.handle_slot(1, True) is True
    assert bank.states[0] is False


def test_duplicate_press_without_release_is_ignored() -> None:
    scheduler = ParameterTransitionScheduler()
    bank = SceneSlotBank(scheduler)

    assert bank.handle_slot(5, True) is True
    assert bank.handle_slot(5, True) is False
    assert bank.handle_slot(5, True) is False

    assert bank.states[4] is True
    assert len(scheduler) == 1


def test_momentary_slot_follows_edges_and_ignores_repeats() -> None:
    scheduler = ParameterTransitionScheduler()
    bank = SceneSlotBank(scheduler, momentary_slots=[17])

    assert bank.handle_slot(17, True) is True
    assert bank.handle_slot(17, True) is False
    assert bank.states[16] is True

    assert bank.handle_slot(17, False) is True
    assert bank.handle_slot(17, False) is False
    assert bank.states[16] is False


def test_slot_scale_transitions_to_on_and_off() -> None:
    scheduler = ParameterTransitionScheduler()
    bank = SceneSlotBank(scheduler, duration=0.3)

    bank.handle_slot(2, True)
    scheduler.advance(1.0)
    assert bank.scale(2) == 1.0

    bank.handle_slot(2, False)
    bank.handle_slot(2, True)
    scheduler.advance(1.0)
    assert bank.scale(2) == 0.0


def test_out_of_range_slot_is_ignored() -> None:
    bank = SceneSlotBank(ParameterTransitionScheduler())
    assert bank.handle_slot(0, True) is False
    assert bank.handle_slot(25, True) is False


def test_scene_slots_attach_to_router() -> None:
    scheduler = ParameterTransitionScheduler()
    router = EventRouter()
    bank = SceneSlotBank(scheduler, momentary_slots=[17])
    bank.attach(router)

    router.handle_input(RawInput(code=36, edge=Edge.PRESS))
    assert bank.states[16] is True
    router.handle_input(RawInput(code=36, edge=Edge.RELEASE))
    assert bank.states[16] is False


def test_light_toggle_fades_intensity() -> None:
    scheduler = ParameterTransitionScheduler()
    lights = LightBank(scheduler, duration=0.2, target_intensity=0.8)

    assert lights.toggle(3) is True
    scheduler.advance(1.0)
    assert lights.states[2] is True
    assert lights.intensity(3) == 0.8

    lights.toggle(3)
    scheduler.advance(1.0)
    assert lights.intensity(3) == 0.0
    assert lights.toggle(9) is False


def test_light_row_press_toggles_group_by_column() -> None:
    router = EventRouter()
    lights = LightBank(ParameterTransitionScheduler())
    lights.attach(router)

    router.handle_input(RawInput(code=code_from(5, 6), edge=Edge.PRESS))

    assert lights.states == (False, False, False, False, False, True, False, False)


def test_camera_select_by_column() -> None:
    router = EventRouter()
    cameras = CameraSwitcher()
    cameras.attach(router)
    assert cameras.active_name == "None"

    router.handle_input(RawInput(code=code_from(1, 4), edge=Edge.PRESS))

    assert cameras.active_index == 3
    assert cameras.active_name == "Camera 4"
    assert cameras.select(0) is False
    assert cameras.active_index == 3
