# どこで: `src/vjgrid/core/snapshots/store.py`。
# 何を: アクティブなエフェクトの状態をキャプチャして保存し、種類で絞り込んだ一覧をカーソルでリコールする。
# なぜ: 本番中に作った「良い状態」を、同じエフェクトを操作している最中にすぐ呼び戻せるようにするため。

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path

from vjgrid.core.dispatch import EffectDispatchTable

from .document import RuntimePresetRecord, SnapshotDocument
from .persistence import load_snapshot_document, save_snapshot_document

_logger = logging.getLogger(__name__)

SavedCallback = Callable[[str], None]


class RecallState(Enum):
    INACTIVE = "inactive"
    BROWSING = "browsing"


@dataclass(frozen=True, slots=True)
class RecallCursor:
    """リコールカーソル。index は絞り込み後の一覧に対する位置（空なら None）。"""

    active: bool
    index: int | None


class SnapshotStore:
    """スナップショットの保存とリコール（状態機械）を担う。

    Notes
    -----
    - 状態は INACTIVE / BROWSING。モディファイア押下中だけ BROWSING になる。
    - BROWSING へ入る瞬間に、アクティブなコントローラの effect_type で一覧を絞り込み直す。
    - next/previous はクランプ（折り返さない）。
    - BROWSING を抜けてもカーソル値は保持する。再突入時に 0 へ戻すかは
      `reset_cursor_on_enter` で選ぶ（False なら新しい一覧の範囲へクランプして引き継ぐ）。
    - tick スレッドからのみ触る前提。

    Parameters
    ----------
    dispatch
        アクティブなコントローラの参照元、および復元先の検索元。
    path
        永続化ファイルパス。None ならメモリ上のみで扱う。
    reset_cursor_on_enter
        BROWSING へ入るたびにカーソルを 0 へ戻すかどうか。
    clock
        保存時刻の取得関数（テスト用に差し替える）。
    """

    def __init__(
        self,
        dispatch: EffectDispatchTable,
        *,
        path: Path | None = None,
        reset_cursor_on_enter: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._dispatch = dispatch
        self._path = Path(path) if path is not None else None
        self.reset_cursor_on_enter = bool(reset_cursor_on_enter)
        self._clock = clock

        self._document = SnapshotDocument()
        self._durable = True
        self._saved_callbacks: list[SavedCallback] = []

        self._state = RecallState.INACTIVE
        self._filtered: list[RuntimePresetRecord] = []
        self._index: int | None = None

    # --- 参照 ---
    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def records(self) -> tuple[RuntimePresetRecord, ...]:
        return self._document.records

    @property
    def filtered_records(self) -> tuple[RuntimePresetRecord, ...]:
        """直近の BROWSING 突入時に絞り込んだ一覧を返す。"""

        return tuple(self._filtered)

    @property
    def state(self) -> RecallState:
        return self._state

    @property
    def cursor(self) -> RecallCursor:
        return RecallCursor(active=self._state is RecallState.BROWSING, index=self._index)

    @property
    def is_durable(self) -> bool:
        """直近の保存がディスクまで届いていれば True。"""

        return self._durable

    def record_at_cursor(self) -> RuntimePresetRecord | None:
        if self._index is None or not 0 <= self._index < len(self._filtered):
            return None
        return self._filtered[self._index]

    # --- 永続化 ---
    def load(self) -> None:
        """永続化ファイルから文書をロードする。無い/壊れている場合は空で続行する。"""

        if self._path is None:
            return
        self._document = load_snapshot_document(self._path)
        self._durable = True

    def _persist(self) -> None:
        if self._path is None:
            return
        try:
            save_snapshot_document(self._document, self._path)
        except OSError:
            self._durable = False
            _logger.exception("スナップショット文書を保存できません: %s", self._path)
            return
        self._durable = True

    # --- 保存 ---
    def subscribe_saved(self, callback: SavedCallback) -> None:
        if callback not in self._saved_callbacks:
            self._saved_callbacks.append(callback)

    def unsubscribe_saved(self, callback: SavedCallback) -> None:
        if callback in self._saved_callbacks:
            self._saved_callbacks.remove(callback)

    def capture(self, name: str | None = None) -> RuntimePresetRecord | None:
        """アクティブなコントローラの現在状態を保存する。コントローラが無ければ no-op。

        書き込みに失敗してもメモリ上のレコードは残す（`is_durable` が False になる）。
        """

        ctrl = self._dispatch.active_controller
        if ctrl is None:
            _logger.debug("アクティブなエフェクトが無いため保存を無視しました")
            return None

        now = self._clock()
        record_name = str(name) if name is not None else f"Saved_{now:%H:%M:%S}"
        record = RuntimePresetRecord(
            name=record_name,
            effect_type=str(ctrl.effect_type_name),
            payload=ctrl.capture_state(record_name),
            saved_at=now.isoformat(timespec="seconds"),
        )
        self._document.append(record)
        self._persist()

        if self._state is RecallState.BROWSING:
            self._refresh_view(keep_index=True)

        _logger.info("スナップショットを保存しました: %r (%s)", record.name, record.effect_type)
        for callback in list(self._saved_callbacks):
            try:
                callback(record.name)
            except Exception:
                _logger.exception("保存通知コールバックが失敗しました: %r", record.name)
        return record

    # --- リコール ---
    def set_modifier(self, held: bool) -> None:
        """モディファイアの押下状態を反映する（押下で BROWSING、解放で INACTIVE）。"""

        if held:
            self.begin_browsing()
        else:
            self.end_browsing()

    def begin_browsing(self) -> None:
        if self._state is RecallState.BROWSING:
            return
        self._state = RecallState.BROWSING
        self._refresh_view(keep_index=not self.reset_cursor_on_enter)

    def end_browsing(self) -> None:
        self._state = RecallState.INACTIVE

    def next(self) -> bool:
        """カーソルを 1 つ進める（末尾でクランプ）。BROWSING 外/空一覧では no-op。"""

        return self._move(+1)

    def previous(self) -> bool:
        """カーソルを 1 つ戻す（先頭でクランプ）。BROWSING 外/空一覧では no-op。"""

        return self._move(-1)

    def confirm(self) -> bool:
        """カーソル位置のレコードを、その effect_type のコントローラへ復元する。"""

        if self._state is not RecallState.BROWSING:
            return False
        record = self.record_at_cursor()
        if record is None:
            return False
        ctrl = self._dispatch.controller_for_effect_type(record.effect_type)
        if ctrl is None:
            _logger.debug("エフェクト種別 %r のコントローラがありません", record.effect_type)
            return False
        return bool(ctrl.restore(record.payload))

    def _move(self, step: int) -> bool:
        if self._state is not RecallState.BROWSING or self._index is None or not self._filtered:
            return False
        last = len(self._filtered) - 1
        self._index = min(max(self._index + int(step), 0), last)
        return True

    def _refresh_view(self, *, keep_index: bool) -> None:
        ctrl = self._dispatch.active_controller
        effect_type = None if ctrl is None else str(ctrl.effect_type_name)
        self._filtered = self._document.filtered(effect_type)

        if not self._filtered:
            self._index = None
            return
        if keep_index and self._index is not None:
            self._index = min(max(self._index, 0), len(self._filtered) - 1)
            return
        self._index = 0


__all__ = ["RecallCursor", "RecallState", "SavedCallback", "SnapshotStore"]
