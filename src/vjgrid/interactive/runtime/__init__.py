# どこで: `src/vjgrid/interactive/runtime/__init__.py`。
# 何を: tick ループとスレッド間受け渡しキューの実装をまとめるパッケージ定義。
# なぜ: `src/vjgrid/api/runner.py` の肥大化を防ぎ、責務ごとの実装差し替えを容易にするため。

from __future__ import annotations

__all__ = []
