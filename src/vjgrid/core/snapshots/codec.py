# どこで: `src/vjgrid/core/snapshots/codec.py`。
# 何を: SnapshotDocument の JSON encode/decode を提供する（レコード単位の部分復旧つき）。
# なぜ: 壊れたレコード 1 件のせいで、他の保存済みスナップショットまで失わないようにするため。

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from .document import RuntimePresetRecord, SnapshotDocument

DOCUMENT_VERSION = 1


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """decode の結果。skipped は読み飛ばした不正レコード数。"""

    document: SnapshotDocument
    skipped: int


def encode_document(document: SnapshotDocument) -> dict[str, Any]:
    """SnapshotDocument を JSON 化可能な dict に変換して返す。"""

    return {
        "version": DOCUMENT_VERSION,
        "presets": [
            {
                "name": r.name,
                "effectType": r.effect_type,
                "payload": r.payload,
                "savedAt": r.saved_at,
            }
            for r in document
        ],
    }


def dumps_document(document: SnapshotDocument) -> str:
    """SnapshotDocument を JSON 文字列へ変換して返す。"""

    return json.dumps(encode_document(document), ensure_ascii=False, indent=2)


def _decode_record(item: object) -> RuntimePresetRecord:
    if not isinstance(item, dict):
        raise ValueError("record must be an object")
    fields = {}
    for key in ("name", "effectType", "payload", "savedAt"):
        value = item.get(key)
        if not isinstance(value, str):
            raise ValueError(f"record field {key!r} must be a string: got={value!r}")
        fields[key] = value
    return RuntimePresetRecord(
        name=fields["name"],
        effect_type=fields["effectType"],
        payload=fields["payload"],
        saved_at=fields["savedAt"],
    )


def decode_document(obj: object) -> DecodeResult:
    """JSON 由来のオブジェクトから SnapshotDocument を復元する。

    Notes
    -----
    - `{"presets": [...]}` と、素のレコード配列の両方を受け付ける。
    - レコード内の未知フィールドは無視する。
    - 不正なレコードは読み飛ばして skipped に数える。

    Raises
    ------
    TypeError
        トップレベルの形がどちらにも当てはまらない場合。
    """

    if isinstance(obj, dict):
        items = obj.get("presets", [])
    else:
        items = obj
    if not isinstance(items, list):
        raise TypeError("snapshot document must be a list of records or {'presets': [...]}")

    document = SnapshotDocument()
    skipped = 0
    for item in items:
        try:
            document.append(_decode_record(item))
        except ValueError:
            skipped += 1
    return DecodeResult(document=document, skipped=skipped)


def loads_document(payload: str) -> DecodeResult:
    """JSON 文字列から SnapshotDocument を復元する。"""

    return decode_document(json.loads(payload))


__all__ = [
    "DOCUMENT_VERSION",
    "DecodeResult",
    "decode_document",
    "dumps_document",
    "encode_document",
    "loads_document",
]
