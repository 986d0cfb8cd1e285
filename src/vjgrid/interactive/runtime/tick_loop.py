# どこで: `src/vjgrid/interactive/runtime/tick_loop.py`。
# 何を: 単一スレッドの協調 tick ループ（キュー消化 → ポーリング → 遷移の前進）を提供する。
# なぜ: 非同期に届く入力と時間駆動の状態更新を、1 スレッド上で決まった順序に並べるため。

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence

from vjgrid.core.transitions import ParameterTransitionScheduler

from .work_queue import WorkQueue

_logger = logging.getLogger(__name__)


class TickLoop:
    """tick ごとに以下を順に行う。

    1. WorkQueue を空になるまで FIFO で実行する（同 tick 内の遷移上書きはここで確定する）。
    2. pollers を呼ぶ（control surface の pending メッセージ読み取りなど）。
    3. スケジューラを dt 進める。

    1 tick の中でブロック/サスペンドする処理は置かない。
    """

    def __init__(
        self,
        *,
        work_queue: WorkQueue,
        scheduler: ParameterTransitionScheduler,
        fps: float,
        time_source: Callable[[], float] = time.perf_counter,
        pollers: Sequence[Callable[[], object]] = (),
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """ループを初期化する。

        Parameters
        ----------
        fps : float
            目標 tick レート。`<=0` の場合はスロットリングしない。
        time_source : Callable[[], float]
            秒単位の単調増加時刻。`run()` は連続する 2 回の読み値の差を dt とする。
        pollers : Sequence[Callable[[], object]]
            各 tick でキュー消化の後に呼ぶ関数。
        """

        self._work_queue = work_queue
        self._scheduler = scheduler
        self._fps = float(fps)
        self._time_source = time_source
        self._pollers = list(pollers)
        self._sleep = sleep
        self.tick_count = 0

    def add_poller(self, poller: Callable[[], object]) -> None:
        self._pollers.append(poller)

    def tick(self, dt: float) -> None:
        """1 tick 分の処理を行う。poller の例外は記録して次へ進む。"""

        self._work_queue.drain()
        for poller in self._pollers:
            try:
                poller()
            except Exception:
                _logger.exception("poller が失敗しました: %r", poller)
        self._scheduler.advance(dt)
        self.tick_count += 1

    def run(
        self,
        *,
        max_ticks: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> int:
        """停止要求（stop_event / max_ticks / KeyboardInterrupt）まで回し、実行した tick 数を返す。"""

        period = 1.0 / self._fps if self._fps > 0 else 0.0
        time_source = self._time_source
        last_t = time_source()
        ticks = 0

        try:
            while True:
                if stop_event is not None and stop_event.is_set():
                    break
                if max_ticks is not None and ticks >= int(max_ticks):
                    break

                started = time.perf_counter()
                now_t = time_source()
                dt = max(now_t - last_t, 0.0)
                last_t = now_t

                self.tick(dt)
                ticks += 1

                if period > 0:
                    remaining = period - (time.perf_counter() - started)
                    if remaining > 0:
                        self._sleep(remaining)
        except KeyboardInterrupt:
            _logger.info("tick ループを中断しました（%d tick 実行）", ticks)
        return ticks


__all__ = ["TickLoop"]
