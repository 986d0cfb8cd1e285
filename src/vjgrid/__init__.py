# どこで: `src/vjgrid/__init__.py`。
# 何を: ルート `vjgrid` パッケージを定義する。
# なぜ: import 起点を `vjgrid` に統一するため。

from __future__ import annotations


def run(*args, **kwargs):
    """公開 run API へのラッパ（遅延インポートで MIDI 依存を後回しにする）。"""

    from vjgrid.api.runner import run as _run

    return _run(*args, **kwargs)


__all__ = ["run"]
