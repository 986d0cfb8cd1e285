# どこで: `src/vjgrid/core/snapshots/document.py`。
# 何を: スナップショット 1 件（RuntimePresetRecord）と、その順序付き列（SnapshotDocument）を定義する。
# なぜ: 「追加したら不変」「挿入順 = リコール順」をデータ型の側で表すため。

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RuntimePresetRecord:
    """保存済みスナップショット 1 件。

    effect_type はコントローラの `effect_type_name`（永続化の判別子）。
    payload はコントローラだけが解釈する不透明な文字列。
    """

    name: str
    effect_type: str
    payload: str
    saved_at: str


class SnapshotDocument:
    """RuntimePresetRecord の順序付き列。永続化は全体を 1 単位で行う。"""

    def __init__(self, records: list[RuntimePresetRecord] | None = None) -> None:
        self._records: list[RuntimePresetRecord] = list(records) if records is not None else []

    def append(self, record: RuntimePresetRecord) -> None:
        self._records.append(record)

    def filtered(self, effect_type: str | None) -> list[RuntimePresetRecord]:
        """effect_type が一致するレコードを挿入順で返す。None なら全件。"""

        if effect_type is None:
            return list(self._records)
        return [r for r in self._records if r.effect_type == effect_type]

    @property
    def records(self) -> tuple[RuntimePresetRecord, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[RuntimePresetRecord]:
        return iter(tuple(self._records))


__all__ = ["RuntimePresetRecord", "SnapshotDocument"]
