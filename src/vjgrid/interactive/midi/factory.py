# どこで: `src/vjgrid/interactive/midi/factory.py`。
# 何を: port_name に従って GridInput / ControlSurface を生成する（auto 接続 / mido 有無を含む）。
# なぜ: `src/vjgrid/api/runner.py` を配線に寄せ、MIDI 依存ロジックを interactive 側に閉じ込めるため。

from __future__ import annotations

from collections.abc import Collection

from vjgrid.core.router import EventRouter
from vjgrid.core.runtime_config import ControlNotes
from vjgrid.core.snapshots.store import SnapshotStore
from vjgrid.interactive.runtime.work_queue import WorkQueue

from .control_surface import ControlSurface
from .grid_input import GridInput

_AUTO_MIDI_PORT = "auto"


def _resolve_port_name(port_name: str | None, *, exclude: Collection[str] = ()) -> str | None:
    """port_name を実際に開くポート名へ解決する。

    - None: None（MIDI 無効）
    - "auto": mido が使えて exclude 以外の入力ポートがあればその 1 つ目、無ければ None
    - 明示指定: mido が無ければ例外（ユーザーの意図が強いのでエラー）
    """

    if port_name is None:
        return None

    if port_name == _AUTO_MIDI_PORT:
        try:
            import mido  # type: ignore
        except ImportError:
            return None
        names = [n for n in mido.get_input_names() if n not in exclude]  # type: ignore
        if not names:
            return None
        return str(names[0])

    try:
        import mido  # type: ignore  # noqa: F401
    except ImportError as exc:
        raise RuntimeError(
            "MIDI ポートを指定するには mido が必要です（pip で導入してください）。"
        ) from exc
    return str(port_name)


def create_grid_input(
    *, port_name: str | None, router: EventRouter, work_queue: WorkQueue
) -> GridInput | None:
    """port_name に従い GridInput を作る。接続しない場合は None。"""

    resolved = _resolve_port_name(port_name)
    if resolved is None:
        return None
    return GridInput(resolved, router=router, work_queue=work_queue)


def create_control_surface(
    *,
    port_name: str | None,
    store: SnapshotStore,
    notes: ControlNotes,
    exclude: Collection[str] = (),
) -> ControlSurface | None:
    """port_name に従い ControlSurface を作る。接続しない場合は None。

    exclude は "auto" 解決時に候補から外すポート名（グリッドが開いているポートなど）。
    """

    resolved = _resolve_port_name(port_name, exclude=exclude)
    if resolved is None:
        return None
    inport = ControlSurface.validate_and_open_port(resolved)
    return ControlSurface(store, notes=notes, port_name=resolved, inport=inport)
