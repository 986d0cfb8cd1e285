# どこで: `src/vjgrid/core/effects/chromatic.py`。
# 何を: チャンネル変位（chromatic displacement）のパラメータ状態を持つエフェクトコントローラ（grid row 4）。
# なぜ: 変位量などの強度系は補間し、チャンネル特性/色/マスクは即時に切り替えるため。

from __future__ import annotations

from typing import Any

import numpy as np

from .base import ApplyMode, EffectParamSpec, EffectPreset, PresetEffectController, PresetLibrary

DISPLACEMENT_SOURCES = ("luminance", "depth", "external_map")
COLOR_MODES = ("rgb", "custom_palette")
BLEND_MODES = ("additive", "screen")

RED = (1.0, 0.0, 0.0, 1.0)
GREEN = (0.0, 1.0, 0.0, 1.0)
BLUE = (0.0, 0.0, 1.0, 1.0)
CENTER = (0.5, 0.5)

_I = ApplyMode.INSTANT
_T = ApplyMode.INTERPOLATED

_BASE_VALUES: dict[str, Any] = {
    "displacement_amount": 0.03,
    "displacement_source": "luminance",
    "displacement_scale": 1.0,
    "depth_influence": 1.0,
    "blur_radius": 2.0,
    "channel_a_amount": 1.0,
    "channel_a_angle": 0.0,
    "channel_b_amount": 0.0,
    "channel_b_angle": 120.0,
    "channel_c_amount": -1.0,
    "channel_c_angle": -120.0,
    "color_mode": "rgb",
    "color_a": RED,
    "color_b": GREEN,
    "color_c": BLUE,
    "channel_blend_mode": "additive",
    "use_object_mask": False,
    "mask_layer": 0,
    "mask_dilation": 4.0,
    "mask_feather": 2.0,
    "use_radial_falloff": False,
    "center": CENTER,
    "falloff_start": 0.2,
    "falloff_end": 1.0,
    "falloff_power": 1.0,
}


def _preset(name: str, *, enabled: bool = True, **overrides: Any) -> EffectPreset:
    values = dict(_BASE_VALUES)
    values.update(overrides)
    return EffectPreset(name=name, enabled=enabled, values=values)


class ChromaticDisplacementController(PresetEffectController):
    """チャンネル変位のコントローラ。主強度は `displacement_amount`。"""

    EFFECT_TYPE = "Chromatic"
    PRIMARY_PARAM = "displacement_amount"
    DEFAULT_DURATION = 0.25
    PARAMS = (
        # 変位
        EffectParamSpec("displacement_amount", "float", _T, 0.0),
        EffectParamSpec("displacement_source", "choice", _I, "luminance", choices=DISPLACEMENT_SOURCES),
        EffectParamSpec("displacement_scale", "float", _T, 1.0),
        EffectParamSpec("depth_influence", "float", _T, 1.0),
        EffectParamSpec("blur_radius", "float", _T, 2.0),
        # チャンネル（量/角度は「強さ」ではなく「性格」を変えるので即時）
        EffectParamSpec("channel_a_amount", "float", _I, 1.0),
        EffectParamSpec("channel_a_angle", "float", _I, 0.0),
        EffectParamSpec("channel_b_amount", "float", _I, 0.0),
        EffectParamSpec("channel_b_angle", "float", _I, 120.0),
        EffectParamSpec("channel_c_amount", "float", _I, -1.0),
        EffectParamSpec("channel_c_angle", "float", _I, -120.0),
        # 色
        EffectParamSpec("color_mode", "choice", _I, "rgb", choices=COLOR_MODES),
        EffectParamSpec("color_a", "rgba", _I, RED),
        EffectParamSpec("color_b", "rgba", _I, GREEN),
        EffectParamSpec("color_c", "rgba", _I, BLUE),
        EffectParamSpec("channel_blend_mode", "choice", _I, "additive", choices=BLEND_MODES),
        # オブジェクトマスク
        EffectParamSpec("use_object_mask", "bool", _I, False),
        EffectParamSpec("mask_layer", "mask", _I, 0),
        EffectParamSpec("mask_dilation", "float", _T, 4.0),
        EffectParamSpec("mask_feather", "float", _T, 2.0),
        # 放射フォールオフ
        EffectParamSpec("use_radial_falloff", "bool", _I, False),
        EffectParamSpec("center", "vec2", _I, CENTER),
        EffectParamSpec("falloff_start", "float", _T, 0.2),
        EffectParamSpec("falloff_end", "float", _T, 1.0),
        EffectParamSpec("falloff_power", "float", _T, 1.0),
    )

    @classmethod
    def default_library(cls) -> PresetLibrary:
        return PresetLibrary(
            presets=(
                _preset("Off", enabled=False),
                _preset("Classic RGB", displacement_amount=0.02),
                _preset("Heavy Split", displacement_amount=0.08, displacement_scale=4.0, blur_radius=8.0),
                _preset(
                    "Depth Ghost",
                    displacement_amount=0.05,
                    displacement_source="depth",
                    depth_influence=2.0,
                ),
                _preset(
                    "Neon Palette",
                    displacement_amount=0.04,
                    color_mode="custom_palette",
                    color_a=(1.0, 0.0, 1.0, 1.0),
                    color_b=(0.0, 1.0, 1.0, 1.0),
                    color_c=(1.0, 1.0, 0.0, 1.0),
                    channel_blend_mode="screen",
                ),
                _preset(
                    "Tunnel",
                    displacement_amount=0.06,
                    use_radial_falloff=True,
                    falloff_start=0.1,
                    falloff_end=0.9,
                    falloff_power=2.0,
                ),
                _preset(
                    "Subject Mask",
                    displacement_amount=0.05,
                    use_object_mask=True,
                    mask_layer=1 << 8,
                    mask_dilation=8.0,
                    mask_feather=4.0,
                ),
            ),
            random_bounds={
                "displacement_amount": (0.01, 0.08),
                "displacement_scale": (0.5, 5.0),
                "channel_amount": (-2.0, 2.0),
                "channel_angle": (-180.0, 180.0),
                "depth_influence": (0.0, 2.0),
                "blur_radius": (0.0, 10.0),
                "mask_dilation": (2.0, 16.0),
                "mask_feather": (1.0, 8.0),
                "falloff_start": (0.0, 0.5),
                "falloff_end": (0.5, 1.5),
                "falloff_power": (0.5, 3.0),
            },
        )

    def _random_values(self, rng: np.random.Generator) -> dict[str, Any]:
        return {
            "displacement_amount": self._uniform(rng, "displacement_amount"),
            "displacement_source": "luminance",
            "displacement_scale": self._uniform(rng, "displacement_scale"),
            "depth_influence": self._uniform(rng, "depth_influence"),
            "blur_radius": self._uniform(rng, "blur_radius"),
            "channel_a_amount": self._uniform(rng, "channel_amount"),
            "channel_b_amount": self._uniform(rng, "channel_amount"),
            "channel_c_amount": self._uniform(rng, "channel_amount"),
            "channel_a_angle": self._uniform(rng, "channel_angle"),
            "channel_b_angle": self._uniform(rng, "channel_angle"),
            "channel_c_angle": self._uniform(rng, "channel_angle"),
            "color_mode": "rgb",
            "color_a": RED,
            "color_b": GREEN,
            "color_c": BLUE,
            "channel_blend_mode": "screen" if rng.random() > 0.7 else "additive",
            "use_object_mask": False,
            "mask_dilation": self._uniform(rng, "mask_dilation"),
            "mask_feather": self._uniform(rng, "mask_feather"),
            "use_radial_falloff": bool(rng.random() > 0.5),
            "center": CENTER,
            "falloff_start": self._uniform(rng, "falloff_start"),
            "falloff_end": self._uniform(rng, "falloff_end"),
            "falloff_power": self._uniform(rng, "falloff_power"),
        }
