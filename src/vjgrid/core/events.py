# どこで: `src/vjgrid/core/events.py`。
# 何を: 入力境界の RawInput と、ルーティング後のドメインイベント GridEvent を定義する。
# なぜ: 生入力と「意味付け済みのイベント」を型で分け、購読側が MIDI を知らずに済むようにするため。

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Edge(Enum):
    """ボタン 1 個の押下/解放エッジ。"""

    PRESS = "press"
    RELEASE = "release"


class GridEventKind(Enum):
    CAMERA_SELECT = "camera_select"
    EFFECT_PRESET_SELECT = "effect_preset_select"
    EFFECT_RANDOMIZE = "effect_randomize"
    LIGHT_TOGGLE = "light_toggle"
    SCENE_SLOT_TOGGLE = "scene_slot_toggle"


@dataclass(frozen=True, slots=True)
class RawInput:
    """入力境界のイベント。

    intensity（0..1）は現状ルーティングに使わないが、契約として受け渡す。
    """

    code: int
    edge: Edge
    intensity: float = 1.0


@dataclass(frozen=True, slots=True)
class GridEvent:
    """ルーティング済みのドメインイベント。生成後すぐ購読者へ渡し、保持しない。

    slot の意味は kind による。
    - EFFECT_PRESET_SELECT: プリセットスロット（0-based, col-1）
    - SCENE_SLOT_TOGGLE: シーンスロット（1..24）
    - その他: None
    """

    kind: GridEventKind
    row: int
    col: int
    edge: Edge
    slot: int | None = None

    @property
    def is_on(self) -> bool:
        return self.edge is Edge.PRESS


__all__ = ["Edge", "GridEvent", "GridEventKind", "RawInput"]
