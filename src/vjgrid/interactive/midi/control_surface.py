# どこで: `src/vjgrid/interactive/midi/control_surface.py`。
# 何を: 保存/リコール用の control surface（save・modifier・next・previous・confirm）を SnapshotStore へ結び付ける。
# なぜ: グリッドのボタン列とは独立した操作系で、スナップショットの保存とブラウズを行うため。

from __future__ import annotations

import logging

from vjgrid.core.events import Edge
from vjgrid.core.runtime_config import ControlNotes
from vjgrid.core.snapshots.store import SnapshotStore

from .grid_input import InvalidPortError, raw_input_from_message

_logger = logging.getLogger(__name__)


class ControlSurface:
    """ノート番号で割り当てた control surface。

    - save / next / previous / confirm は押下エッジだけで発火する。
    - modifier は押下中だけ BROWSING（解放で INACTIVE）。
    - 入力ポートは tick スレッドで `poll()` して読む（コールバックスレッドを使わない）。

    Parameters
    ----------
    store
        操作対象のスナップショットストア。
    notes
        各トリガのノート番号。
    port_name
        入力ポート名（表示用）。
    inport
        既存の入力ポート（テスト用）。None ならポートを持たず `handle_message()` のみで駆動する。
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        notes: ControlNotes,
        port_name: str | None = None,
        inport: object | None = None,
    ) -> None:
        self._store = store
        self.notes = notes
        self.port_name = port_name
        self.inport = inport

    def handle_message(self, msg: object) -> bool:
        """メッセージを 1 つ処理し、割り当て済みのトリガなら True を返す。"""

        raw = raw_input_from_message(msg)
        if raw is None:
            return False

        notes = self.notes
        pressed = raw.edge is Edge.PRESS
        store = self._store

        if raw.code == notes.modifier:
            store.set_modifier(pressed)
            return True
        if not pressed:
            return raw.code in (notes.save, notes.next, notes.previous, notes.confirm)

        if raw.code == notes.save:
            store.capture()
        elif raw.code == notes.next:
            store.next()
        elif raw.code == notes.previous:
            store.previous()
        elif raw.code == notes.confirm:
            store.confirm()
        else:
            return False
        return True

    def iter_pending(self):
        """入力ポートの pending メッセージを返す（mido の API に準拠）。"""

        if self.inport is None:
            return iter(())
        return self.inport.iter_pending()  # type: ignore[attr-defined]

    def poll(self, *, max_messages: int | None = None) -> int:
        """pending メッセージを取り出して処理し、処理したトリガ数を返す。"""

        handled = 0
        for i, msg in enumerate(self.iter_pending()):
            if max_messages is not None and i >= max_messages:
                break
            if self.handle_message(msg):
                handled += 1
        return handled

    def close(self) -> None:
        inport = self.inport
        self.inport = None
        if inport is None:
            return
        close = getattr(inport, "close", None)
        if callable(close):
            close()

    @staticmethod
    def validate_and_open_port(port_name: str):
        """ポート名を検証してポーリング用の入力ポートを開く。"""

        import mido  # type: ignore

        available = mido.get_input_names()  # type: ignore
        if port_name in available:
            _logger.info("control surface に接続しました: %s", port_name)
            return mido.open_input(port_name)  # type: ignore
        raise InvalidPortError(f"Invalid port name: {port_name}. Available: {available}")


__all__ = ["ControlSurface"]
