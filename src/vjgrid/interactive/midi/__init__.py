# どこで: `src/vjgrid/interactive/midi/__init__.py`。
# 何を: MIDI 入力（グリッド / control surface）ユーティリティを提供する。
# なぜ: MIDI 依存を interactive 側に閉じ込め、core をヘッドレスに保つため。

from __future__ import annotations

from .control_surface import ControlSurface
from .grid_input import GridInput, InvalidPortError

__all__ = [
    "ControlSurface",
    "GridInput",
    "InvalidPortError",
]
