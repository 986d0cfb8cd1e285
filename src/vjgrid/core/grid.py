# どこで: `src/vjgrid/core/grid.py`。
# 何を: グリッドコントローラの生ノート番号を論理グリッド座標（row/col）へ変換する。
# なぜ: ノートオフセットや上下反転を知っている場所をこのモジュールだけに限定するため。

from __future__ import annotations

from dataclasses import dataclass

NOTE_OFFSET = 36
GRID_SIZE = 8
NOTE_MAX = NOTE_OFFSET + GRID_SIZE * GRID_SIZE - 1  # 99


@dataclass(frozen=True, slots=True)
class GridButton:
    """論理グリッド上の 1 ボタン。入力ごとに導出し、保持しない。

    Notes
    -----
    - row: 1..8（1 = 最上段）
    - col: 1..8（1 = 左端）
    - linear_index: 0..63（ハードウェア順。0 = 左下）
    """

    row: int
    col: int
    linear_index: int
    raw_code: int

    def __str__(self) -> str:
        return f"Grid[R{self.row},C{self.col}] note={self.raw_code}"


def is_in_range(code: int) -> bool:
    """code がグリッドのノート範囲 [36, 99] に入っていれば True を返す。"""

    return NOTE_OFFSET <= int(code) <= NOTE_MAX


def from_code(code: int) -> GridButton:
    """ノート番号を GridButton へ変換する。

    ハードウェアの番号は下段から上へ振られているので、row を反転して 1 = 最上段にする。
    範囲外の code は契約違反として ValueError を送出する（呼び出し側で `is_in_range` を確認する）。
    """

    code_i = int(code)
    if not is_in_range(code_i):
        raise ValueError(f"note {code_i} is outside the grid range [{NOTE_OFFSET}, {NOTE_MAX}]")

    index = code_i - NOTE_OFFSET
    physical_row = index // GRID_SIZE  # 0 = 最下段
    col = index % GRID_SIZE + 1
    row = GRID_SIZE - physical_row
    return GridButton(row=row, col=col, linear_index=index, raw_code=code_i)


def code_from(row: int, col: int) -> int:
    """(row, col) から元のノート番号を返す（`from_code` の逆写像）。"""

    row_i = int(row)
    col_i = int(col)
    if not (1 <= row_i <= GRID_SIZE and 1 <= col_i <= GRID_SIZE):
        raise ValueError(f"grid position out of range: row={row_i} col={col_i}")
    physical_row = GRID_SIZE - row_i
    return NOTE_OFFSET + physical_row * GRID_SIZE + (col_i - 1)


__all__ = [
    "GRID_SIZE",
    "GridButton",
    "NOTE_MAX",
    "NOTE_OFFSET",
    "code_from",
    "from_code",
    "is_in_range",
]
