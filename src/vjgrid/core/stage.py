# どこで: `src/vjgrid/core/stage.py`。
# 何を: シーンスロット（row 6-8）、ライトグループ（row 5）、カメラ選択（row 1）の状態を持つ購読側。
# なぜ: ルーターはデバウンスしないので、重複エッジの吸収（冪等性）を購読側の状態で保証するため。

from __future__ import annotations

import logging
from collections.abc import Iterable

from .events import GridEvent, GridEventKind
from .router import EventRouter
from .transitions import LiveParameter, ParameterTransitionScheduler

_logger = logging.getLogger(__name__)

SCENE_SLOT_COUNT = 24
LIGHT_GROUP_COUNT = 8
CAMERA_COUNT = 8


class SceneSlotBank:
    """24 個のシーンスロット。

    - toggle モード: 押下エッジで反転する。ただし自分で追跡しているボタン状態が
      「押下中」のときに来た押下（解放を挟まない重複）は無視する。
    - momentary モード: 押下 = on / 解放 = off。同じ値の重複は変化なし。
    - 状態が変わったスロットだけ `scale` を 1/0 へ遷移させる。
    """

    def __init__(
        self,
        scheduler: ParameterTransitionScheduler,
        *,
        momentary_slots: Iterable[int] = (),
        duration: float = 0.3,
        slot_count: int = SCENE_SLOT_COUNT,
    ) -> None:
        self._scheduler = scheduler
        self._momentary = {int(s) for s in momentary_slots}
        self.duration = float(duration)
        self._count = int(slot_count)
        self._states = [False] * self._count
        self._held = [False] * self._count
        self._scales = [LiveParameter(f"scene_slot.{i + 1}", 0.0) for i in range(self._count)]

    @property
    def states(self) -> tuple[bool, ...]:
        return tuple(self._states)

    def is_momentary(self, slot: int) -> bool:
        return int(slot) in self._momentary

    def scale(self, slot: int) -> float:
        return float(self._scales[int(slot) - 1].value)

    def handle_slot(self, slot: int, is_on: bool) -> bool:
        """slot（1-based）のエッジを処理し、状態が変わったら True を返す。"""

        index = int(slot) - 1
        if not 0 <= index < self._count:
            _logger.debug("シーンスロットが範囲外です: %s", slot)
            return False

        was_held = self._held[index]
        self._held[index] = bool(is_on)

        if self.is_momentary(slot):
            new_state = bool(is_on)
        else:
            if not is_on or was_held:
                return False
            new_state = not self._states[index]

        if new_state == self._states[index]:
            return False
        self._states[index] = new_state
        self._scheduler.start_transition(
            f"scene_slot.{index + 1}",
            self._scales[index],
            1.0 if new_state else 0.0,
            self.duration,
        )
        return True

    def handle_event(self, event: GridEvent) -> None:
        if event.slot is None:
            return
        self.handle_slot(event.slot, event.is_on)

    def attach(self, router: EventRouter) -> None:
        router.subscribe(GridEventKind.SCENE_SLOT_TOGGLE, self.handle_event)

    def detach(self, router: EventRouter) -> None:
        router.unsubscribe(GridEventKind.SCENE_SLOT_TOGGLE, self.handle_event)


class LightBank:
    """8 つのライトグループ。押下ごとに on/off を反転し、強度を遷移させる。"""

    def __init__(
        self,
        scheduler: ParameterTransitionScheduler,
        *,
        duration: float = 0.2,
        target_intensity: float = 1.0,
        group_count: int = LIGHT_GROUP_COUNT,
    ) -> None:
        self._scheduler = scheduler
        self.duration = float(duration)
        self.target_intensity = float(target_intensity)
        self._states = [False] * int(group_count)
        self._intensities = [LiveParameter(f"light.{i + 1}", 0.0) for i in range(int(group_count))]

    @property
    def states(self) -> tuple[bool, ...]:
        return tuple(self._states)

    def intensity(self, group: int) -> float:
        return float(self._intensities[int(group) - 1].value)

    def toggle(self, group: int) -> bool:
        """group（1-based）を反転する。範囲外は no-op で False。"""

        index = int(group) - 1
        if not 0 <= index < len(self._states):
            return False
        self._states[index] = not self._states[index]
        target = self.target_intensity if self._states[index] else 0.0
        self._scheduler.start_transition(
            f"light.{index + 1}", self._intensities[index], target, self.duration
        )
        return True

    def handle_event(self, event: GridEvent) -> None:
        self.toggle(event.col)

    def attach(self, router: EventRouter) -> None:
        router.subscribe(GridEventKind.LIGHT_TOGGLE, self.handle_event)

    def detach(self, router: EventRouter) -> None:
        router.unsubscribe(GridEventKind.LIGHT_TOGGLE, self.handle_event)


class CameraSwitcher:
    """8 台のカメラから 1 台をアクティブにする（カット切り替え）。"""

    def __init__(self, names: Iterable[str] | None = None, *, camera_count: int = CAMERA_COUNT) -> None:
        self.names = (
            tuple(str(n) for n in names)
            if names is not None
            else tuple(f"Camera {i + 1}" for i in range(int(camera_count)))
        )
        self.active_index = -1

    @property
    def active_name(self) -> str:
        if 0 <= self.active_index < len(self.names):
            return self.names[self.active_index]
        return "None"

    def select(self, col: int) -> bool:
        """col（1-based）のカメラを選ぶ。範囲外は no-op で False。"""

        index = int(col) - 1
        if not 0 <= index < len(self.names):
            return False
        self.active_index = index
        return True

    def handle_event(self, event: GridEvent) -> None:
        self.select(event.col)

    def attach(self, router: EventRouter) -> None:
        router.subscribe(GridEventKind.CAMERA_SELECT, self.handle_event)

    def detach(self, router: EventRouter) -> None:
        router.unsubscribe(GridEventKind.CAMERA_SELECT, self.handle_event)


__all__ = [
    "CAMERA_COUNT",
    "CameraSwitcher",
    "LIGHT_GROUP_COUNT",
    "LightBank",
    "SCENE_SLOT_COUNT",
    "SceneSlotBank",
]
