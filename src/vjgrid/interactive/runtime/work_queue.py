# どこで: `src/vjgrid/interactive/runtime/work_queue.py`。
# 何を: 入力スレッド（MIDI コールバック）から tick スレッドへ「引数なしの処理単位」を受け渡す有界 FIFO。
# なぜ: ドメイン状態を書き込むスレッドを tick スレッドだけに限定するため。

from __future__ import annotations

import logging
import queue
from collections.abc import Callable

_logger = logging.getLogger(__name__)

WorkItem = Callable[[], None]


class WorkQueue:
    """スレッドセーフな有界キュー。

    - `post()` はどのスレッドから呼んでもよい。満杯なら捨ててログに残す（ブロックしない）。
    - `drain()` は tick スレッドから呼び、溜まった処理を到着順にすべて同期実行する。
    """

    def __init__(self, *, maxsize: int = 1024) -> None:
        if int(maxsize) <= 0:
            raise ValueError("maxsize は正の値である必要がある")
        self._queue: queue.Queue[WorkItem] = queue.Queue(maxsize=int(maxsize))
        self.dropped = 0

    def post(self, item: WorkItem) -> bool:
        """item を積む。積めたら True。"""

        try:
            self._queue.put_nowait(item)
        except queue.Full:
            self.dropped += 1
            _logger.warning("ワークキューが満杯のため入力を破棄しました（dropped=%d）", self.dropped)
            return False
        return True

    def drain(self) -> int:
        """積まれている処理を FIFO で全て実行し、実行した数を返す。

        1 つの処理の例外はログに残し、後続の処理は続ける。
        """

        executed = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return executed
            executed += 1
            try:
                item()
            except Exception:
                _logger.exception("キュー内の処理が失敗しました")

    def __len__(self) -> int:
        return self._queue.qsize()
