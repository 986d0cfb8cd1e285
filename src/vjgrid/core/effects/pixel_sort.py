# どこで: `src/vjgrid/core/effects/pixel_sort.py`。
# 何を: ピクセルソートのパラメータ状態を持つエフェクトコントローラ（grid row 3）。
# なぜ: 画像処理本体とは切り離し、強度/しきい値/並び順だけをプリセットとして扱うため。

from __future__ import annotations

from typing import Any

import numpy as np

from .base import (
    ApplyMode,
    EffectParamSpec,
    EffectPreset,
    PresetEffectController,
    PresetLibrary,
    choice,
)

SORT_AXES = ("horizontal", "vertical", "both")
PIXEL_PROPERTIES = ("luminance", "hue", "saturation", "brightness")
SORT_ORDERS = ("ascending", "descending")
MAX_SPAN_LIMIT = 1920

_I = ApplyMode.INSTANT
_T = ApplyMode.INTERPOLATED


def _preset(
    name: str,
    *,
    strength: float,
    axis: str = "horizontal",
    threshold_mode: str = "luminance",
    low: float = 0.1,
    high: float = 0.9,
    sort_mode: str = "luminance",
    order: str = "ascending",
    span: int = 0,
    enabled: bool = True,
) -> EffectPreset:
    return EffectPreset(
        name=name,
        enabled=enabled,
        values={
            "strength": strength,
            "sort_axis": axis,
            "threshold_mode": threshold_mode,
            "threshold_low": low,
            "threshold_high": high,
            "sort_mode": sort_mode,
            "sort_order": order,
            "max_span_length": span,
        },
    )


class PixelSortController(PresetEffectController):
    """ピクセルソートのコントローラ。主強度は `strength`。"""

    EFFECT_TYPE = "PixelSort"
    PRIMARY_PARAM = "strength"
    DEFAULT_DURATION = 0.25
    PARAMS = (
        EffectParamSpec("strength", "float", _T, 0.0),
        EffectParamSpec("sort_axis", "choice", _I, "horizontal", choices=SORT_AXES),
        EffectParamSpec("threshold_mode", "choice", _I, "luminance", choices=PIXEL_PROPERTIES),
        EffectParamSpec("threshold_low", "float", _T, 0.1),
        EffectParamSpec("threshold_high", "float", _T, 0.9),
        EffectParamSpec("sort_mode", "choice", _I, "luminance", choices=PIXEL_PROPERTIES),
        EffectParamSpec("sort_order", "choice", _I, "ascending", choices=SORT_ORDERS),
        EffectParamSpec("max_span_length", "int", _I, 0),
    )

    @classmethod
    def default_library(cls) -> PresetLibrary:
        return PresetLibrary(
            presets=(
                _preset("Off", strength=0.0, enabled=False),
                _preset("Subtle Streaks", strength=0.35, low=0.2, high=0.8, span=240),
                _preset("Melt", strength=1.0, axis="vertical", low=0.05, high=0.95, order="descending"),
                _preset("Hue Bands", strength=0.8, threshold_mode="hue", sort_mode="hue", span=480),
                _preset("Glass", strength=0.6, axis="both", low=0.3, high=0.7, sort_mode="brightness", span=120),
                _preset("Highlights", strength=0.9, low=0.6, high=1.0, order="descending"),
                _preset("Shadows", strength=0.9, low=0.0, high=0.35, sort_mode="saturation"),
            ),
            random_bounds={
                "strength": (0.3, 1.0),
                "threshold_low": (0.0, 0.4),
                "threshold_high": (0.5, 1.0),
                "max_span_length": (0, 960),
            },
        )

    def _random_values(self, rng: np.random.Generator) -> dict[str, Any]:
        return {
            "strength": self._uniform(rng, "strength"),
            "sort_axis": choice(rng, SORT_AXES),
            "threshold_mode": choice(rng, PIXEL_PROPERTIES),
            "threshold_low": self._uniform(rng, "threshold_low"),
            "threshold_high": self._uniform(rng, "threshold_high"),
            "sort_mode": choice(rng, PIXEL_PROPERTIES),
            "sort_order": choice(rng, SORT_ORDERS),
            "max_span_length": min(self._integer(rng, "max_span_length"), MAX_SPAN_LIMIT),
        }
