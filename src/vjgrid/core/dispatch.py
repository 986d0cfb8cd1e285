# どこで: `src/vjgrid/core/dispatch.py`。
# 何を: grid row（2/3/4）-> エフェクトコントローラの対応表と「アクティブ行」カーソルを保持し、イベントを配送する。
# なぜ: スナップショット保存が「今操作しているエフェクト」を 1 箇所から引けるようにするため。

from __future__ import annotations

import logging
from collections.abc import Mapping

from .effects.base import EffectController
from .events import GridEvent, GridEventKind
from .router import EFFECT_ROWS, EventRouter

_logger = logging.getLogger(__name__)

DEFAULT_ACTIVE_ROW = 2


class EffectDispatchTable:
    """row -> コントローラの固定表。

    Parameters
    ----------
    controllers
        row（2..4）-> コントローラ。row は作成後に変えない。
    active_row
        起動時のアクティブ行。
    """

    def __init__(
        self,
        controllers: Mapping[int, EffectController],
        *,
        active_row: int = DEFAULT_ACTIVE_ROW,
    ) -> None:
        for row in controllers:
            if int(row) not in EFFECT_ROWS:
                raise ValueError(f"effect controllers live on rows {EFFECT_ROWS}: got row={row}")
        self._controllers: dict[int, EffectController] = {
            int(row): ctrl for row, ctrl in controllers.items()
        }
        self._by_type: dict[str, EffectController] = {}
        for ctrl in self._controllers.values():
            name = str(ctrl.effect_type_name)
            if name in self._by_type:
                raise ValueError(f"duplicate effect type: {name!r}")
            self._by_type[name] = ctrl
        self.active_row = int(active_row)

    @property
    def active_controller(self) -> EffectController | None:
        """直近にプリセット選択/ランダム化された行のコントローラ。"""

        return self._controllers.get(self.active_row)

    def controller_for_row(self, row: int) -> EffectController | None:
        return self._controllers.get(int(row))

    def controller_for_effect_type(self, effect_type: str) -> EffectController | None:
        return self._by_type.get(str(effect_type))

    def rows(self) -> tuple[int, ...]:
        return tuple(sorted(self._controllers))

    def handle_preset_select(self, event: GridEvent) -> None:
        """EFFECT_PRESET_SELECT: アクティブ行を更新してプリセットを適用する。"""

        self.active_row = int(event.row)
        ctrl = self.controller_for_row(event.row)
        if ctrl is None or event.slot is None:
            _logger.debug("行 %s にエフェクトコントローラがありません", event.row)
            return
        ctrl.apply_preset(int(event.slot))

    def handle_randomize(self, event: GridEvent) -> None:
        """EFFECT_RANDOMIZE: アクティブ行を更新してランダム化する。"""

        self.active_row = int(event.row)
        ctrl = self.controller_for_row(event.row)
        if ctrl is None:
            _logger.debug("行 %s にエフェクトコントローラがありません", event.row)
            return
        ctrl.randomize()

    def randomize_all(self) -> None:
        """全コントローラを一度にランダム化する（アクティブ行は変えない）。"""

        for row in self.rows():
            self._controllers[row].randomize()

    def attach(self, router: EventRouter) -> None:
        router.subscribe(GridEventKind.EFFECT_PRESET_SELECT, self.handle_preset_select)
        router.subscribe(GridEventKind.EFFECT_RANDOMIZE, self.handle_randomize)

    def detach(self, router: EventRouter) -> None:
        router.unsubscribe(GridEventKind.EFFECT_PRESET_SELECT, self.handle_preset_select)
        router.unsubscribe(GridEventKind.EFFECT_RANDOMIZE, self.handle_randomize)


__all__ = ["DEFAULT_ACTIVE_ROW", "EffectDispatchTable"]
