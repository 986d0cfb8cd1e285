# どこで: `src/vjgrid/core/effects/base.py`。
# 何を: エフェクトコントローラの能力契約（Protocol）と、プリセット/ランダム化/キャプチャ/復元の共通実装を提供する。
# なぜ: 種類ごとのパラメータ形状は別々に保ちつつ、ディスパッチと永続化からは 1 つの契約で扱うため。

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, ClassVar, Protocol, runtime_checkable

import numpy as np

from vjgrid.core.transitions import LiveParameter, ParameterTransitionScheduler

_logger = logging.getLogger(__name__)

PRESET_SLOTS = 7


class ApplyMode(Enum):
    """プリセット適用時の書き込み方。"""

    INSTANT = "instant"  # enum/bool/色/マスクなど
    INTERPOLATED = "interpolated"  # スカラー（目標へ補間する）


@dataclass(frozen=True, slots=True)
class EffectParamSpec:
    """エフェクトパラメータ 1 個の静的定義。"""

    name: str
    kind: str  # "float" | "int" | "bool" | "choice" | "rgba" | "vec2" | "mask"
    mode: ApplyMode
    default: Any
    choices: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class EffectPreset:
    """名前付きのパラメータセット（種類固有の値を values に持つ）。"""

    name: str
    enabled: bool = True
    values: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class PresetLibrary:
    """静的プリセット（スロット 0..6、空きは None）とランダム化範囲の組。"""

    presets: tuple[EffectPreset | None, ...]
    random_bounds: Mapping[str, tuple[float, float]]

    def __post_init__(self) -> None:
        if len(self.presets) > PRESET_SLOTS:
            raise ValueError(f"preset library holds at most {PRESET_SLOTS} slots: got={len(self.presets)}")
        for name, (lo, hi) in self.random_bounds.items():
            if float(lo) > float(hi):
                raise ValueError(f"random bounds for {name!r} must satisfy min <= max: got=({lo}, {hi})")

    def get(self, slot_index: int) -> EffectPreset | None:
        """slot_index のプリセットを返す。範囲外/空きは None。"""

        if not 0 <= int(slot_index) < len(self.presets):
            return None
        return self.presets[int(slot_index)]


@runtime_checkable
class EffectController(Protocol):
    """ディスパッチテーブルとスナップショットストアが使う能力契約。"""

    @property
    def effect_type_name(self) -> str:
        """永続化の判別子。変えると保存済みスナップショットのフィルタが効かなくなる。"""
        ...

    def apply_preset(self, slot_index: int) -> None: ...

    def randomize(self) -> None: ...

    def capture_state(self, name: str) -> str: ...

    def restore(self, payload: str) -> bool: ...


def _coerce_value(spec: EffectParamSpec, raw: Any) -> Any:
    """JSON 由来の値を spec.kind の Python 値へ正規化する。変換できなければ ValueError。"""

    kind = spec.kind
    if kind == "float":
        if isinstance(raw, bool):
            raise ValueError(f"{spec.name}: bool is not a float")
        return float(raw)
    if kind in ("int", "mask"):
        if isinstance(raw, bool):
            raise ValueError(f"{spec.name}: bool is not an int")
        return int(raw)
    if kind == "bool":
        if not isinstance(raw, bool):
            raise ValueError(f"{spec.name}: expected bool, got {raw!r}")
        return raw
    if kind == "choice":
        value = str(raw)
        if spec.choices is not None and value not in spec.choices:
            raise ValueError(f"{spec.name}: {value!r} not in {spec.choices}")
        return value
    if kind in ("rgba", "vec2"):
        n = 4 if kind == "rgba" else 2
        seq = list(raw)
        if len(seq) != n:
            raise ValueError(f"{spec.name}: expected {n} components, got {raw!r}")
        return tuple(float(v) for v in seq)
    raise ValueError(f"unknown param kind: {kind!r}")


def _json_value(value: Any) -> Any:
    if isinstance(value, tuple):
        return [float(v) for v in value]
    return value


class PresetEffectController:
    """プリセットライブラリを持つエフェクトコントローラの共通実装。

    Notes
    -----
    - パラメータは `PARAMS` で宣言し、INSTANT は即時設定、INTERPOLATED は遷移で適用する。
    - 遷移の group_id は `"{EFFECT_TYPE}.{param}"`。適用のたびに自分の group を全て破棄してから開始する。
    - `PRIMARY_PARAM` を持つ種類では、無効化は「主強度パラメータを 0 へ遷移」で表す。
      無効状態と強度 0 は同じ表現になる。

    Parameters
    ----------
    scheduler
        遷移を登録するスケジューラ。
    library
        静的プリセットとランダム化範囲。None なら種類ごとの既定ライブラリ。
    duration
        遷移時間（秒）。None なら `DEFAULT_DURATION`。
    ease
        easing 名。None ならスケジューラの既定。
    rng
        乱数生成器またはシード。
    """

    EFFECT_TYPE: ClassVar[str] = ""
    PARAMS: ClassVar[tuple[EffectParamSpec, ...]] = ()
    PRIMARY_PARAM: ClassVar[str | None] = None
    DEFAULT_DURATION: ClassVar[float] = 0.25

    def __init__(
        self,
        scheduler: ParameterTransitionScheduler,
        *,
        library: PresetLibrary | None = None,
        duration: float | None = None,
        ease: str | None = None,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        if not self.EFFECT_TYPE:
            raise TypeError(f"{type(self).__name__} must define EFFECT_TYPE")

        self._scheduler = scheduler
        self.library = library if library is not None else self.default_library()
        self.duration = float(self.DEFAULT_DURATION if duration is None else duration)
        self.ease = ease
        self._rng = rng if isinstance(rng, np.random.Generator) else np.random.default_rng(rng)

        self._specs: dict[str, EffectParamSpec] = {spec.name: spec for spec in self.PARAMS}
        self._params: dict[str, LiveParameter] = {
            spec.name: LiveParameter(spec.name, spec.default) for spec in self.PARAMS
        }
        self.active_preset_index = -1

    # --- 種類ごとに実装する ---
    @classmethod
    def default_library(cls) -> PresetLibrary:
        return PresetLibrary(presets=(), random_bounds={})

    def _random_values(self, rng: np.random.Generator) -> dict[str, Any]:
        raise NotImplementedError

    # --- 参照 ---
    @property
    def effect_type_name(self) -> str:
        return self.EFFECT_TYPE

    @property
    def active_preset_name(self) -> str:
        preset = self.library.get(self.active_preset_index) if self.active_preset_index >= 0 else None
        return preset.name if preset is not None else "None"

    def param(self, name: str) -> LiveParameter:
        return self._params[name]

    def value(self, name: str) -> Any:
        return self._params[name].value

    def values(self) -> dict[str, Any]:
        """全パラメータの現在値のコピーを返す。"""

        return {name: p.value for name, p in self._params.items()}

    def group_id(self, name: str) -> str:
        return f"{self.EFFECT_TYPE}.{name}"

    def group_ids(self) -> tuple[str, ...]:
        return tuple(
            self.group_id(spec.name) for spec in self.PARAMS if spec.mode is ApplyMode.INTERPOLATED
        )

    def is_transitioning(self) -> bool:
        return any(self._scheduler.is_active(g) for g in self.group_ids())

    def interpolated_specs(self) -> tuple[EffectParamSpec, ...]:
        return tuple(spec for spec in self.PARAMS if spec.mode is ApplyMode.INTERPOLATED)

    # --- 能力契約 ---
    def apply_preset(self, slot_index: int) -> None:
        """ライブラリのスロットを適用する。範囲外や空きスロットは no-op。"""

        preset = self.library.get(slot_index)
        if preset is None:
            _logger.debug("%s: プリセットスロット %s は空か範囲外です", self.EFFECT_TYPE, slot_index)
            return
        self.active_preset_index = int(slot_index)
        self.apply_data(preset)

    def apply_data(self, preset: EffectPreset) -> None:
        """preset を現在値へ適用する（INSTANT は即時、INTERPOLATED は遷移）。"""

        self._scheduler.cancel_many(self.group_ids())

        primary = self.PRIMARY_PARAM
        if not preset.enabled and primary is not None:
            self._transition(primary, 0.0)
            return

        for spec in self.PARAMS:
            if spec.name not in preset.values:
                continue
            value = preset.values[spec.name]
            if spec.mode is ApplyMode.INSTANT:
                self._scheduler.set_instant(self._params[spec.name], value)
            else:
                self._transition(spec.name, float(value))

    def random_preset(self) -> EffectPreset:
        """ランダム化範囲内の値を持つプリセットを生成して返す（適用はしない）。"""

        return EffectPreset(name="Random", enabled=True, values=self._random_values(self._rng))

    def randomize(self) -> None:
        """ランダムなプリセットを 1 つ生成して適用する。"""

        preset = self.random_preset()
        self.active_preset_index = -1
        self.apply_data(preset)

    def capture(self, name: str) -> EffectPreset:
        """現在値を名前付きプリセットとして返す。"""

        primary = self.PRIMARY_PARAM
        enabled = True if primary is None else float(self.value(primary)) > 0.0
        return EffectPreset(name=str(name), enabled=enabled, values=self.values())

    def capture_state(self, name: str) -> str:
        """現在値を不透明な JSON ペイロードとして返す。"""

        preset = self.capture(name)
        return json.dumps(
            {
                "preset_name": preset.name,
                "enabled": preset.enabled,
                "values": {k: _json_value(v) for k, v in preset.values.items()},
            },
            ensure_ascii=False,
        )

    def decode_payload(self, payload: str) -> EffectPreset:
        """ペイロードをプリセットへ復号する。未知フィールドは無視、欠けた値は現在値で補う。

        Raises
        ------
        ValueError
            JSON として読めない、または形が合わない場合。
        """

        try:
            obj = json.loads(payload)
        except (TypeError, json.JSONDecodeError) as exc:
            raise ValueError(f"{self.EFFECT_TYPE}: payload is not JSON") from exc
        if not isinstance(obj, dict):
            raise ValueError(f"{self.EFFECT_TYPE}: payload must be an object")

        raw_values = obj.get("values", {})
        if not isinstance(raw_values, dict):
            raise ValueError(f"{self.EFFECT_TYPE}: payload values must be an object")

        values = self.values()
        for name, raw in raw_values.items():
            spec = self._specs.get(str(name))
            if spec is None:
                continue
            try:
                values[spec.name] = _coerce_value(spec, raw)
            except (TypeError, ValueError):
                _logger.warning("%s: 不正な値を無視しました: %s=%r", self.EFFECT_TYPE, name, raw)

        return EffectPreset(
            name=str(obj.get("preset_name", "")),
            enabled=bool(obj.get("enabled", True)),
            values=values,
        )

    def restore(self, payload: str) -> bool:
        """ペイロードを復号して全値を適用する。成功で True。

        主パラメータ 0 の記録も無効化ではなく値の再現として扱う（0 自体が無効状態を表す）。
        """

        try:
            preset = self.decode_payload(payload)
        except ValueError:
            _logger.warning("%s: スナップショットのペイロードを復号できません", self.EFFECT_TYPE)
            return False
        self.active_preset_index = -1
        self.apply_data(replace(preset, enabled=True))
        return True

    # --- 内部 ---
    def _transition(self, name: str, end_value: float) -> None:
        self._scheduler.start_transition(
            self.group_id(name),
            self._params[name],
            end_value,
            self.duration,
            ease=self.ease,
        )

    def _bounds(self, name: str) -> tuple[float, float]:
        lo, hi = self.library.random_bounds[name]
        return float(lo), float(hi)

    def _uniform(self, rng: np.random.Generator, name: str) -> float:
        """random_bounds[name] の閉区間から一様に引く。"""

        lo, hi = self._bounds(name)
        return min(max(float(rng.uniform(lo, hi)), lo), hi)

    def _integer(self, rng: np.random.Generator, name: str) -> int:
        lo, hi = self._bounds(name)
        return int(rng.integers(int(lo), int(hi), endpoint=True))


def choice(rng: np.random.Generator, options: Sequence[str]) -> str:
    """options から 1 つを一様に選ぶ。"""

    return str(options[int(rng.integers(0, len(options)))])


__all__ = [
    "ApplyMode",
    "EffectController",
    "EffectParamSpec",
    "EffectPreset",
    "PRESET_SLOTS",
    "PresetEffectController",
    "PresetLibrary",
    "choice",
]
