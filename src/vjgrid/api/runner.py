"""
どこで: `src/vjgrid/api/runner.py`。公開 API のランナー実装。
何を: ルーター/ディスパッチ/スケジューラ/スナップショット/MIDI 入力を 1 箇所で組み立て、tick ループを回す。
なぜ: シングルトンや静的アクセサを使わず、各部品へ依存を明示的に渡す組み立て場所を用意するため。
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path

from vjgrid.core.dispatch import EffectDispatchTable
from vjgrid.core.effects import (
    ChromaticDisplacementController,
    DepthOfFieldController,
    PixelSortController,
    PresetEffectController,
)
from vjgrid.core.router import EventRouter
from vjgrid.core.runtime_config import RuntimeConfig, runtime_config, set_config_path
from vjgrid.core.snapshots import SnapshotStore, default_snapshot_path
from vjgrid.core.stage import CameraSwitcher, LightBank, SceneSlotBank
from vjgrid.core.transitions import ParameterTransitionScheduler
from vjgrid.interactive.midi.control_surface import ControlSurface
from vjgrid.interactive.midi.factory import create_control_surface, create_grid_input
from vjgrid.interactive.midi.grid_input import GridInput
from vjgrid.interactive.runtime.tick_loop import TickLoop
from vjgrid.interactive.runtime.work_queue import WorkQueue

_logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Rig:
    """組み立て済みの部品一式。"""

    config: RuntimeConfig
    router: EventRouter
    scheduler: ParameterTransitionScheduler
    dispatch: EffectDispatchTable
    snapshots: SnapshotStore
    scene_slots: SceneSlotBank
    lights: LightBank
    cameras: CameraSwitcher
    work_queue: WorkQueue
    loop: TickLoop
    grid_input: GridInput | None = None
    control_surface: ControlSurface | None = None

    def close(self) -> None:
        """MIDI ポートを閉じる。"""

        if self.grid_input is not None:
            self.grid_input.close()
        if self.control_surface is not None:
            self.control_surface.close()


def _effect_controllers(
    cfg: RuntimeConfig, scheduler: ParameterTransitionScheduler, *, seed: int | None
) -> dict[int, PresetEffectController]:
    def duration(ctrl_cls: type[PresetEffectController]) -> float:
        return cfg.effect_durations.get(ctrl_cls.EFFECT_TYPE, ctrl_cls.DEFAULT_DURATION)

    # row 2 = DoF, row 3 = PixelSort, row 4 = Chromatic
    rows: dict[int, type[PresetEffectController]] = {
        2: DepthOfFieldController,
        3: PixelSortController,
        4: ChromaticDisplacementController,
    }
    return {
        row: ctrl_cls(
            scheduler,
            duration=duration(ctrl_cls),
            rng=None if seed is None else seed + row,
        )
        for row, ctrl_cls in rows.items()
    }


def build_rig(
    cfg: RuntimeConfig,
    *,
    snapshot_path: Path | None = None,
    connect_midi: bool = True,
    time_source: Callable[[], float] = time.perf_counter,
    seed: int | None = None,
) -> Rig:
    """cfg に従って部品を組み立てて返す。

    Parameters
    ----------
    cfg : RuntimeConfig
        実行時設定。
    snapshot_path : Path | None
        スナップショット文書のパス。None なら `default_snapshot_path()`。
    connect_midi : bool
        False の場合は MIDI ポートを開かない（テストやオフライン用）。
    time_source : Callable[[], float]
        tick ループの時刻源（秒）。
    seed : int | None
        ランダム化の乱数シード。
    """

    router = EventRouter()
    scheduler = ParameterTransitionScheduler(default_ease=cfg.ease)
    work_queue = WorkQueue(maxsize=cfg.queue_size)

    dispatch = EffectDispatchTable(_effect_controllers(cfg, scheduler, seed=seed))
    dispatch.attach(router)

    scene_slots = SceneSlotBank(
        scheduler,
        momentary_slots=cfg.momentary_slots,
        duration=cfg.scene_slot_duration,
    )
    scene_slots.attach(router)

    lights = LightBank(
        scheduler,
        duration=cfg.light_duration,
        target_intensity=cfg.light_target_intensity,
    )
    lights.attach(router)

    cameras = CameraSwitcher()
    cameras.attach(router)
    cameras.select(1)

    snapshots = SnapshotStore(
        dispatch,
        path=snapshot_path if snapshot_path is not None else default_snapshot_path(),
        reset_cursor_on_enter=cfg.reset_cursor_on_enter,
    )
    snapshots.load()

    loop = TickLoop(
        work_queue=work_queue,
        scheduler=scheduler,
        fps=cfg.fps,
        time_source=time_source,
    )

    rig = Rig(
        config=cfg,
        router=router,
        scheduler=scheduler,
        dispatch=dispatch,
        snapshots=snapshots,
        scene_slots=scene_slots,
        lights=lights,
        cameras=cameras,
        work_queue=work_queue,
        loop=loop,
    )

    if connect_midi:
        # 後段で失敗したら、先に開いたポートを閉じてから送出する
        try:
            rig.grid_input = create_grid_input(
                port_name=cfg.grid_port, router=router, work_queue=work_queue
            )
            if rig.grid_input is None:
                _logger.warning("グリッドコントローラ未接続（midi.grid_port=%r）", cfg.grid_port)
            rig.control_surface = create_control_surface(
                port_name=cfg.control_port,
                store=snapshots,
                notes=cfg.control_notes,
                exclude=() if rig.grid_input is None else (rig.grid_input.port_name,),
            )
        except BaseException:
            rig.close()
            raise
        if rig.control_surface is not None:
            loop.add_poller(rig.control_surface.poll)

    return rig


def run(
    *,
    config_path: str | Path | None = None,
    grid_port: str | None = None,
    control_port: str | None = None,
    fps: float | None = None,
    max_ticks: int | None = None,
    stop_event: threading.Event | None = None,
) -> int:
    """設定をロードしてリグを組み立て、停止要求まで tick ループを回す。

    Parameters
    ----------
    config_path : str | Path | None
        設定ファイル（config.yaml）のパス。指定した場合は探索より優先する。
    grid_port : str | None
        グリッドコントローラの入力ポート名。None なら設定値（既定 `"auto"`）。
    control_port : str | None
        control surface の入力ポート名。None なら設定値（既定は無効）。
    fps : float | None
        tick レート。None なら設定値。
    max_ticks : int | None
        指定時はこの tick 数で戻る。
    stop_event : threading.Event | None
        外部からの停止要求。

    Returns
    -------
    int
        実行した tick 数。
    """

    set_config_path(config_path)
    cfg = runtime_config()

    overrides: dict[str, object] = {}
    if grid_port is not None:
        overrides["grid_port"] = grid_port
    if control_port is not None:
        overrides["control_port"] = control_port
    if fps is not None:
        overrides["fps"] = float(fps)
    if overrides:
        cfg = replace(cfg, **overrides)

    rig = build_rig(cfg)
    _logger.info(
        "vjgrid 起動: grid=%s control=%s fps=%s snapshots=%s",
        rig.grid_input.device_name if rig.grid_input is not None else "None",
        rig.control_surface.port_name if rig.control_surface is not None else "None",
        cfg.fps,
        rig.snapshots.path,
    )
    try:
        return rig.loop.run(max_ticks=max_ticks, stop_event=stop_event)
    finally:
        rig.close()


__all__ = ["Rig", "build_rig", "run"]
