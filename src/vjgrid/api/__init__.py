# どこで: `src/vjgrid/api/__init__.py`。
# 何を: 公開 API（run / build_rig）を再エクスポートする。
# なぜ: ユーザーコードや CLI から組み立て入口を 1 箇所で import できるようにするため。

from __future__ import annotations

from .runner import Rig, build_rig, run

__all__ = ["Rig", "build_rig", "run"]
