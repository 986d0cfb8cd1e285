# どこで: `src/vjgrid/core/snapshots/persistence.py`。
# 何を: SnapshotDocument の JSON 永続化（path 算出 / load / save）を提供する。
# なぜ: 演者がキャプチャしたスナップショットを、再起動後もリコールできるようにするため。

from __future__ import annotations

import json
import logging
from pathlib import Path

from vjgrid.core.runtime_config import runtime_config

from .codec import dumps_document, loads_document
from .document import SnapshotDocument

_logger = logging.getLogger(__name__)


def default_snapshot_path() -> Path:
    """スナップショット文書の既定保存パスを返す。

    Notes
    -----
    パスは `{output_root}/snapshots/{snapshots.filename}`。
    """

    cfg = runtime_config()
    return Path(cfg.output_dir) / "snapshots" / cfg.snapshot_filename


def load_snapshot_document(path: Path) -> SnapshotDocument:
    """JSON ファイルから SnapshotDocument をロードして返す。

    ファイルが無ければ空の文書を返す。読めない/壊れている場合も空の文書で続行する（例外は出さない）。
    """

    try:
        payload = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return SnapshotDocument()
    except (OSError, UnicodeDecodeError) as exc:
        _logger.warning("スナップショットを読み込めません（空で起動します）: %s (%s)", path, exc)
        return SnapshotDocument()

    try:
        result = loads_document(payload)
    except (json.JSONDecodeError, TypeError):
        _logger.warning("スナップショットが壊れています（空で起動します）: %s", path)
        return SnapshotDocument()

    if result.skipped:
        _logger.warning(
            "不正なスナップショットレコードを読み飛ばしました: path=%s skipped=%d",
            path,
            result.skipped,
        )
    _logger.info("スナップショットを %d 件読み込みました: %s", len(result.document), path)
    return result.document


def save_snapshot_document(document: SnapshotDocument, path: Path) -> None:
    """SnapshotDocument を JSON として path に保存する（親ディレクトリは作成する）。

    Raises
    ------
    OSError
        書き込みに失敗した場合。呼び出し側でメモリ上の状態を保ったまま扱う。
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dumps_document(document) + "\n", encoding="utf-8")


__all__ = ["default_snapshot_path", "load_snapshot_document", "save_snapshot_document"]
