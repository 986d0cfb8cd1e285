# どこで: `src/vjgrid/core/snapshots/__init__.py`。
# 何を: スナップショット保存/リコールの公開エイリアスをまとめる。
# なぜ: 組み立て側から最小インポートで使えるようにするため。

from .document import RuntimePresetRecord, SnapshotDocument
from .persistence import default_snapshot_path, load_snapshot_document, save_snapshot_document
from .store import RecallCursor, RecallState, SnapshotStore

__all__ = [
    "RecallCursor",
    "RecallState",
    "RuntimePresetRecord",
    "SnapshotDocument",
    "SnapshotStore",
    "default_snapshot_path",
    "load_snapshot_document",
    "save_snapshot_document",
]
