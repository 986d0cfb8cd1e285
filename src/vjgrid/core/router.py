# どこで: `src/vjgrid/core/router.py`。
# 何を: GridButton + Edge を型付きの GridEvent に分類し、kind ごとの購読者へ配送する。
# なぜ: グローバルな静的イベントを使わず、明示的に注入できるルーター実体で購読関係を管理するため。

from __future__ import annotations

import logging
from collections.abc import Callable

from .events import Edge, GridEvent, GridEventKind, RawInput
from .grid import GridButton, from_code, is_in_range

_logger = logging.getLogger(__name__)

Subscriber = Callable[[GridEvent], None]

CAMERA_ROW = 1
EFFECT_ROWS = (2, 3, 4)
RANDOMIZE_COL = 8
LIGHT_ROW = 5
SCENE_ROWS = (6, 7, 8)


def route(button: GridButton, edge: Edge) -> GridEvent | None:
    """(button, edge) を GridEvent に分類して返す。対象外なら None。

    Notes
    -----
    - row 6-8（シーンスロット）だけは押下/解放の両方を通す（モーメンタリ動作用）。
    - それ以外の行はスイッチ扱いで押下のみ。
    - デバウンスはしない。同一エッジの重複は購読側で吸収する。
    """

    row = int(button.row)
    col = int(button.col)
    pressed = edge is Edge.PRESS

    if row == CAMERA_ROW:
        if not pressed:
            return None
        return GridEvent(GridEventKind.CAMERA_SELECT, row, col, edge)

    if row in EFFECT_ROWS:
        if not pressed:
            return None
        if col == RANDOMIZE_COL:
            return GridEvent(GridEventKind.EFFECT_RANDOMIZE, row, col, edge)
        return GridEvent(GridEventKind.EFFECT_PRESET_SELECT, row, col, edge, slot=col - 1)

    if row == LIGHT_ROW:
        if not pressed:
            return None
        return GridEvent(GridEventKind.LIGHT_TOGGLE, row, col, edge)

    if row in SCENE_ROWS:
        slot = (row - SCENE_ROWS[0]) * 8 + col  # 1..24
        return GridEvent(GridEventKind.SCENE_SLOT_TOGGLE, row, col, edge, slot=slot)

    return None


class EventRouter:
    """GridEvent の購読登録と配送を担う。

    ルーティング自体は `route()`（純関数）で、このクラスが持つ状態は購読者リストだけ。
    """

    def __init__(self) -> None:
        self._subscribers: dict[GridEventKind, list[Subscriber]] = {
            kind: [] for kind in GridEventKind
        }

    def subscribe(self, kind: GridEventKind, callback: Subscriber) -> None:
        """kind のイベント購読者として callback を登録する（重複登録は無視）。"""

        subscribers = self._subscribers[kind]
        if callback not in subscribers:
            subscribers.append(callback)

    def unsubscribe(self, kind: GridEventKind, callback: Subscriber) -> None:
        """callback の登録を解除する。未登録なら no-op。"""

        subscribers = self._subscribers[kind]
        if callback in subscribers:
            subscribers.remove(callback)

    def subscriber_count(self, kind: GridEventKind) -> int:
        return len(self._subscribers[kind])

    def publish(self, event: GridEvent) -> None:
        """event を kind の購読者へ登録順に配送する。

        ある購読者の例外はログに残し、後続の購読者への配送は続ける。
        """

        for callback in list(self._subscribers[event.kind]):
            try:
                callback(event)
            except Exception:
                _logger.exception("GridEvent の購読者が失敗しました: %s", event)

    def handle_input(self, raw: RawInput) -> GridEvent | None:
        """生入力を変換・分類して配送し、配送した GridEvent を返す。"""

        if not is_in_range(raw.code):
            _logger.debug("グリッド範囲外のノートを破棄しました: %s", raw)
            return None

        button = from_code(raw.code)
        event = route(button, raw.edge)
        if event is None:
            _logger.debug("ルートがありません: %s edge=%s", button, raw.edge.value)
            return None

        self.publish(event)
        return event


__all__ = ["EventRouter", "Subscriber", "route"]
