# どこで: `src/vjgrid/core/runtime_config.py`。
# 何を: config.yaml による実行時設定（探索・ロード・キャッシュ）を提供する。
# なぜ: MIDI ポート/トランジション時間/保存先などを、コードを触らずにリグごとに切り替えるため。

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

from vjgrid.core.transitions import EASINGS


@dataclass(frozen=True, slots=True)
class ControlNotes:
    """control surface の各トリガに割り当てるノート番号。"""

    save: int
    modifier: int
    next: int
    previous: int
    confirm: int


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """vjgrid の実行時設定。"""

    config_path: Path | None
    output_dir: Path
    snapshot_filename: str
    grid_port: str | None
    control_port: str | None
    control_notes: ControlNotes
    fps: float
    queue_size: int
    ease: str
    effect_durations: dict[str, float]
    reset_cursor_on_enter: bool
    momentary_slots: tuple[int, ...]
    scene_slot_duration: float
    light_duration: float
    light_target_intensity: float


_EXPLICIT_CONFIG_PATH: Path | None = None
_CONFIG_CACHE: RuntimeConfig | None = None


def set_config_path(path: str | Path | None) -> None:
    """以降の設定探索で使う明示 config パスを設定する。

    Notes
    -----
    `path` を None にすると明示指定を解除し、既定の探索に戻る。
    """

    global _EXPLICIT_CONFIG_PATH, _CONFIG_CACHE
    if path is None:
        _EXPLICIT_CONFIG_PATH = None
        _CONFIG_CACHE = None
        return
    _EXPLICIT_CONFIG_PATH = Path(str(path)).expanduser()
    _CONFIG_CACHE = None


def _default_config_candidates() -> tuple[Path, ...]:
    cwd = Path.cwd()
    home = Path.home()
    return (
        cwd / ".vjgrid" / "config.yaml",
        home / ".config" / "vjgrid" / "config.yaml",
    )


def _expand_path_text(text: str) -> str:
    return os.path.expandvars(os.path.expanduser(str(text)))


def _as_optional_path(value: Any) -> Path | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return Path(_expand_path_text(s))


def _as_optional_str(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _as_mapping(value: Any, *, key: str) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, dict):
        return dict(value)
    raise RuntimeError(f"{key} は mapping である必要があります: got={value!r}")


def _as_int(value: Any, *, key: str) -> int:
    if value is None or isinstance(value, bool):
        raise RuntimeError(f"{key} は整数である必要があります: got={value!r}")
    try:
        return int(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は整数である必要があります: got={value!r}") from exc


def _as_float(value: Any, *, key: str) -> float:
    if value is None or isinstance(value, bool):
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}")
    try:
        return float(value)
    except Exception as exc:
        raise RuntimeError(f"{key} は数値である必要があります: got={value!r}") from exc


def _as_int_list(value: Any, *, key: str) -> tuple[int, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise RuntimeError(f"{key} は整数の配列である必要があります: got={value!r}")
    return tuple(_as_int(v, key=key) for v in value)


def _merge_payload(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """mapping 同士は再帰的に、それ以外は override 側で置き換えて合成する。"""

    out = dict(base)
    for key, value in override.items():
        current = out.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            out[key] = _merge_payload(current, value)
        else:
            out[key] = value
    return out


def _load_yaml_text(text: str, *, source: str) -> dict[str, Any]:
    import yaml  # type: ignore[import-untyped]

    try:
        data = yaml.safe_load(text)
    except Exception as exc:
        raise RuntimeError(f"config.yaml の読み込みに失敗しました: source={source}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise RuntimeError(f"config.yaml は mapping である必要があります: source={source}")

    return dict(data)


def _load_yaml_config(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    return _load_yaml_text(text, source=str(path))


def _load_packaged_default_config() -> dict[str, Any]:
    """同梱デフォルト config をロードして dict を返す。"""

    try:
        blob = (
            resources.files("vjgrid")
            .joinpath("resource", "default_config.yaml")
            .read_text(encoding="utf-8")
        )
    except Exception as exc:  # pragma: no cover
        raise RuntimeError(
            "同梱 default_config.yaml の読み込みに失敗しました"
            "（パッケージ配布物の package-data を確認してください）"
        ) from exc

    return _load_yaml_text(blob, source="vjgrid/resource/default_config.yaml")


def _parse_control_notes(value: Any) -> ControlNotes:
    notes = _as_mapping(value, key="midi.control_notes")
    parsed: dict[str, int] = {}
    for name in ("save", "modifier", "next", "previous", "confirm"):
        note = _as_int(notes.get(name), key=f"midi.control_notes.{name}")
        if not 0 <= note <= 127:
            raise ValueError(f"midi.control_notes.{name} は 0..127 である必要があります: got={note}")
        parsed[name] = note
    if len(set(parsed.values())) != len(parsed):
        raise ValueError(f"midi.control_notes のノート番号が重複しています: {parsed}")
    return ControlNotes(**parsed)


def runtime_config() -> RuntimeConfig:
    """実行時設定をロードして返す（キャッシュ）。"""

    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    explicit_path = _EXPLICIT_CONFIG_PATH
    if explicit_path is not None and not explicit_path.is_file():
        raise FileNotFoundError(f"config.yaml が見つかりません: {explicit_path}")

    discovered_path: Path | None = None
    for p in _default_config_candidates():
        if p.is_file():
            discovered_path = p
            break

    payload = _load_packaged_default_config()
    if discovered_path is not None:
        payload = _merge_payload(payload, _load_yaml_config(discovered_path))
    if explicit_path is not None:
        payload = _merge_payload(payload, _load_yaml_config(explicit_path))

    version = payload.get("version")
    if version is None:
        raise RuntimeError(
            "config.yaml の version が未設定です（同梱 default_config.yaml を確認してください）"
        )
    version_i = _as_int(version, key="version")
    if version_i != 1:
        raise RuntimeError(f"未対応の config.yaml version です: got={version_i}")

    paths = _as_mapping(payload.get("paths"), key="paths")
    output_dir = _as_optional_path(paths.get("output_dir"))
    if output_dir is None:
        raise RuntimeError(
            "paths.output_dir が未設定です（同梱 default_config.yaml を確認してください）"
        )

    snapshots = _as_mapping(payload.get("snapshots"), key="snapshots")
    snapshot_filename = _as_optional_str(snapshots.get("filename"))
    if snapshot_filename is None:
        raise RuntimeError("snapshots.filename が未設定です")

    midi = _as_mapping(payload.get("midi"), key="midi")
    control_notes = _parse_control_notes(midi.get("control_notes"))

    runtime = _as_mapping(payload.get("runtime"), key="runtime")
    fps = _as_float(runtime.get("fps"), key="runtime.fps")
    queue_size = _as_int(runtime.get("queue_size"), key="runtime.queue_size")
    if queue_size <= 0:
        raise ValueError(f"runtime.queue_size は正の値である必要があります: got={queue_size}")

    transitions = _as_mapping(payload.get("transitions"), key="transitions")
    ease = str(transitions.get("ease", "out_quad"))
    if ease not in EASINGS:
        raise ValueError(f"未対応の transitions.ease です: got={ease!r} choices={sorted(EASINGS)}")
    durations_raw = _as_mapping(transitions.get("durations"), key="transitions.durations")
    effect_durations: dict[str, float] = {}
    for effect_type, seconds in durations_raw.items():
        d = _as_float(seconds, key=f"transitions.durations.{effect_type}")
        if d < 0:
            raise ValueError(f"transitions.durations.{effect_type} は 0 以上である必要があります: got={d}")
        effect_durations[str(effect_type)] = d

    recall = _as_mapping(payload.get("recall"), key="recall")
    reset_cursor_on_enter = bool(recall.get("reset_cursor_on_enter", True))

    scene_slots = _as_mapping(payload.get("scene_slots"), key="scene_slots")
    momentary_slots = _as_int_list(scene_slots.get("momentary"), key="scene_slots.momentary")
    scene_slot_duration = _as_float(scene_slots.get("duration"), key="scene_slots.duration")

    lights = _as_mapping(payload.get("lights"), key="lights")
    light_duration = _as_float(lights.get("duration"), key="lights.duration")
    light_target_intensity = _as_float(
        lights.get("target_intensity"), key="lights.target_intensity"
    )

    cfg = RuntimeConfig(
        config_path=explicit_path or discovered_path,
        output_dir=output_dir,
        snapshot_filename=snapshot_filename,
        grid_port=_as_optional_str(midi.get("grid_port")),
        control_port=_as_optional_str(midi.get("control_port")),
        control_notes=control_notes,
        fps=fps,
        queue_size=queue_size,
        ease=ease,
        effect_durations=effect_durations,
        reset_cursor_on_enter=reset_cursor_on_enter,
        momentary_slots=momentary_slots,
        scene_slot_duration=scene_slot_duration,
        light_duration=light_duration,
        light_target_intensity=light_target_intensity,
    )
    _CONFIG_CACHE = cfg
    return cfg


def output_root_dir() -> Path:
    """出力ファイル（スナップショット等）を保存する既定ルートディレクトリを返す。

    上書き順（後勝ち）:
    1) 同梱 default_config.yaml
    2) `./.vjgrid/config.yaml` / `~/.config/vjgrid/config.yaml`
    3) `set_config_path()` / `--config` の明示パス
    """

    cfg = runtime_config()
    return Path(cfg.output_dir)


__all__ = [
    "ControlNotes",
    "RuntimeConfig",
    "output_root_dir",
    "runtime_config",
    "set_config_path",
]
