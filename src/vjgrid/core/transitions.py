# どこで: `src/vjgrid/core/transitions.py`。
# 何を: パラメータの即時設定と、group_id 単位のスムーズ遷移（TransitionHandle）を tick 駆動で管理する。
# なぜ: 「同じ group に生きている遷移は高々 1 つ」を 1 箇所で保証し、上書き時の競合を無くすため。

from __future__ import annotations

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

EaseFunc = Callable[[float], float]


def _linear(f: float) -> float:
    return f


def _out_quad(f: float) -> float:
    return 1.0 - (1.0 - f) * (1.0 - f)


def _in_out_quad(f: float) -> float:
    if f < 0.5:
        return 2.0 * f * f
    return 1.0 - ((-2.0 * f + 2.0) ** 2) / 2.0


def _in_out_sine(f: float) -> float:
    return -(math.cos(math.pi * f) - 1.0) / 2.0


EASINGS: dict[str, EaseFunc] = {
    "linear": _linear,
    "out_quad": _out_quad,
    "in_out_quad": _in_out_quad,
    "in_out_sine": _in_out_sine,
}
"""名前 -> easing 関数。どれも ease(0)=0, ease(1)=1 を満たす。"""

DEFAULT_EASE = "out_quad"


def ease_func(name: str) -> EaseFunc:
    """easing 名に対応する関数を返す。未知の名前は ValueError。"""

    try:
        return EASINGS[str(name)]
    except KeyError:
        raise ValueError(f"unknown ease: {name!r} (choices={sorted(EASINGS)})") from None


class LiveParameter:
    """コントローラが持つ 1 パラメータの「現在値」。

    Notes
    -----
    `override` は「このパラメータをコントローラが上書き中か」を示す。
    即時設定/遷移開始のどちらでも True になる。
    """

    __slots__ = ("name", "value", "override")

    def __init__(self, name: str, value: Any, *, override: bool = False) -> None:
        self.name = str(name)
        self.value = value
        self.override = bool(override)

    def __repr__(self) -> str:
        return f"LiveParameter({self.name!r}, {self.value!r}, override={self.override})"


@dataclass(slots=True)
class TransitionHandle:
    """進行中の 1 遷移。スケジューラだけが保持・更新する。"""

    group_id: str
    target: LiveParameter
    start_value: float
    end_value: float
    start_time: float
    duration: float
    ease: str

    def fraction(self, now: float) -> float:
        """経過割合 f を [0, 1] にクランプして返す（duration<=0 は 1）。"""

        if self.duration <= 0.0:
            return 1.0
        f = (float(now) - self.start_time) / self.duration
        return min(max(f, 0.0), 1.0)


class ParameterTransitionScheduler:
    """スムーズ遷移と即時設定を一元管理するスケジューラ。

    - 時刻は `advance(dt)` の積算で進む（壁時計を直接読まない）。
    - `start_transition()` は同じ group_id の既存遷移を破棄してから登録する（kill-before-start）。
      破棄された遷移の残り区間は補間されない。
    - tick スレッドからのみ触る前提で、ロックは持たない。
    """

    def __init__(self, *, default_ease: str = DEFAULT_EASE) -> None:
        ease_func(default_ease)
        self._default_ease = str(default_ease)
        self._handles: dict[str, TransitionHandle] = {}
        self._now = 0.0

    @property
    def now(self) -> float:
        """スケジューラ時刻（秒）を返す。"""

        return float(self._now)

    @property
    def default_ease(self) -> str:
        return self._default_ease

    def set_instant(self, target: LiveParameter, value: Any) -> None:
        """target へ value を同期的に書き込み、上書き中としてマークする。"""

        target.value = value
        target.override = True

    def start_transition(
        self,
        group_id: str,
        target: LiveParameter,
        end_value: float,
        duration: float,
        *,
        ease: str | None = None,
    ) -> TransitionHandle:
        """group_id の遷移を target の現在値から end_value へ向けて開始する。"""

        ease_name = self._default_ease if ease is None else str(ease)
        ease_func(ease_name)

        self.cancel(group_id)
        target.override = True
        handle = TransitionHandle(
            group_id=str(group_id),
            target=target,
            start_value=float(target.value),
            end_value=float(end_value),
            start_time=self._now,
            duration=max(float(duration), 0.0),
            ease=ease_name,
        )
        self._handles[handle.group_id] = handle
        return handle

    def advance(self, dt: float) -> int:
        """時刻を dt 進めて全遷移を補間し、完了して退役した遷移数を返す。"""

        self._now += max(float(dt), 0.0)
        now = self._now

        retired: list[str] = []
        for group_id, handle in self._handles.items():
            f = handle.fraction(now)
            if f >= 1.0:
                handle.target.value = handle.end_value
                retired.append(group_id)
                continue
            eased = EASINGS[handle.ease](f)
            handle.target.value = handle.start_value + (
                handle.end_value - handle.start_value
            ) * eased

        for group_id in retired:
            del self._handles[group_id]
        return len(retired)

    def cancel(self, group_id: str) -> bool:
        """group_id の遷移を破棄する。無ければ no-op で False を返す。"""

        return self._handles.pop(str(group_id), None) is not None

    def cancel_many(self, group_ids: Iterable[str]) -> int:
        """複数 group の遷移を破棄し、破棄した数を返す。"""

        return sum(1 for g in list(group_ids) if self.cancel(g))

    def is_active(self, group_id: str) -> bool:
        return str(group_id) in self._handles

    def get(self, group_id: str) -> TransitionHandle | None:
        return self._handles.get(str(group_id))

    def active_groups(self) -> tuple[str, ...]:
        """進行中の group_id を登録順で返す。"""

        return tuple(self._handles)

    def __len__(self) -> int:
        return len(self._handles)


__all__ = [
    "DEFAULT_EASE",
    "EASINGS",
    "EaseFunc",
    "LiveParameter",
    "ParameterTransitionScheduler",
    "TransitionHandle",
    "ease_func",
]
