# どこで: `src/vjgrid/interactive/midi/grid_input.py`。
# 何を: グリッドコントローラの MIDI 入力ポートを開き、ノートを RawInput として tick スレッドへ受け渡す。
# なぜ: mido のコールバックスレッドからドメイン状態を直接触らず、WorkQueue 経由に限定するため。

from __future__ import annotations

import logging

from vjgrid.core.events import Edge, RawInput
from vjgrid.core.router import EventRouter
from vjgrid.interactive.runtime.work_queue import WorkQueue

_logger = logging.getLogger(__name__)

MAX_VELOCITY = 127


class InvalidPortError(Exception):
    """要求された MIDI ポート名が存在しない場合に送出される例外。"""


def raw_input_from_message(msg: object) -> RawInput | None:
    """mido メッセージを RawInput に変換する。ノート以外は None。

    - note_on（velocity>0）: PRESS
    - note_off / note_on（velocity=0）: RELEASE
    """

    msg_type = getattr(msg, "type", None)
    if msg_type not in ("note_on", "note_off"):
        return None
    try:
        note = int(getattr(msg, "note"))
        velocity = int(getattr(msg, "velocity", 0))
    except (TypeError, ValueError):
        return None

    if msg_type == "note_on" and velocity > 0:
        edge = Edge.PRESS
    else:
        edge = Edge.RELEASE
    intensity = min(max(float(velocity) / float(MAX_VELOCITY), 0.0), 1.0)
    return RawInput(code=note, edge=edge, intensity=intensity)


class GridInput:
    """グリッドコントローラの入力ポート。

    受信メッセージは `router.handle_input` を包んだ処理単位として WorkQueue に積む。
    実際のルーティングは tick スレッドの `WorkQueue.drain()` で行われる。

    Parameters
    ----------
    port_name
        入力ポート名。
    router
        ルーティング先。
    work_queue
        tick スレッドへの受け渡しキュー。
    inport
        既存の入力ポート（テスト用）。指定時は mido を使ってポートを開かない。
    """

    def __init__(
        self,
        port_name: str,
        *,
        router: EventRouter,
        work_queue: WorkQueue,
        inport: object | None = None,
    ) -> None:
        self.port_name = str(port_name)
        self._router = router
        self._work_queue = work_queue
        self.received = 0
        self.inport = (
            inport
            if inport is not None
            else self.validate_and_open_port(self.port_name, callback=self.handle_message)
        )

    @property
    def device_name(self) -> str:
        return self.port_name or "No MIDI Device"

    def handle_message(self, msg: object) -> bool:
        """MIDI メッセージを 1 つ受け取り、ノートなら WorkQueue に積んで True を返す。

        mido のコールバックスレッドから呼ばれる。
        """

        raw = raw_input_from_message(msg)
        if raw is None:
            return False
        self.received += 1
        router = self._router
        return self._work_queue.post(lambda: router.handle_input(raw))

    def close(self) -> None:
        """入力ポートを close する（対応していれば）。"""

        inport = self.inport
        self.inport = None
        if inport is None:
            return
        close = getattr(inport, "close", None)
        if callable(close):
            close()

    @staticmethod
    def validate_and_open_port(port_name: str, *, callback):
        """ポート名を検証し、コールバック付きで入力ポートを開く。"""

        import mido  # type: ignore

        available = mido.get_input_names()  # type: ignore
        if port_name in available:
            _logger.info("グリッドコントローラに接続しました: %s", port_name)
            return mido.open_input(port_name, callback=callback)  # type: ignore
        raise InvalidPortError(f"Invalid port name: {port_name}. Available: {available}")


__all__ = ["GridInput", "InvalidPortError", "raw_input_from_message"]
