# どこで: `src/vjgrid/core/effects/depth_of_field.py`。
# 何を: 被写界深度（DoF）のパラメータ状態を持つエフェクトコントローラ（grid row 2）。
# なぜ: レンダラ側の DoF を、プリセット/ランダム化/スナップショットの共通契約で操作するため。

from __future__ import annotations

from typing import Any

import numpy as np

from .base import ApplyMode, EffectParamSpec, EffectPreset, PresetEffectController, PresetLibrary

DOF_MODES = ("gaussian", "bokeh")

_I = ApplyMode.INSTANT
_T = ApplyMode.INTERPOLATED


def _preset(name: str, mode: str, focus: float, focal: float, aperture: float, g0: float, g1: float) -> EffectPreset:
    return EffectPreset(
        name=name,
        values={
            "mode": mode,
            "focus_distance": focus,
            "focal_length": focal,
            "aperture": aperture,
            "gaussian_start": g0,
            "gaussian_end": g1,
        },
    )


class DepthOfFieldController(PresetEffectController):
    """DoF コントローラ。無効化フラグは持たない（常に有効）。"""

    EFFECT_TYPE = "DoF"
    DEFAULT_DURATION = 0.3
    PARAMS = (
        EffectParamSpec("mode", "choice", _I, "gaussian", choices=DOF_MODES),
        EffectParamSpec("focus_distance", "float", _T, 10.0),
        EffectParamSpec("focal_length", "float", _T, 50.0),
        EffectParamSpec("aperture", "float", _T, 5.6),
        EffectParamSpec("gaussian_start", "float", _T, 10.0),
        EffectParamSpec("gaussian_end", "float", _T, 30.0),
    )

    @classmethod
    def default_library(cls) -> PresetLibrary:
        return PresetLibrary(
            presets=(
                _preset("Deep Focus", "gaussian", 20.0, 24.0, 16.0, 15.0, 40.0),
                _preset("Portrait", "bokeh", 2.0, 85.0, 1.8, 0.0, 5.0),
                _preset("Macro", "bokeh", 0.5, 100.0, 2.8, 0.0, 2.0),
                _preset("Dreamy", "gaussian", 4.0, 50.0, 1.0, 1.0, 6.0),
                _preset("Rack Near", "bokeh", 1.0, 70.0, 2.0, 0.0, 3.0),
                _preset("Rack Far", "bokeh", 15.0, 70.0, 2.0, 5.0, 18.0),
                _preset("Soft Wide", "gaussian", 8.0, 18.0, 4.0, 3.0, 12.0),
            ),
            random_bounds={
                "focus_distance": (0.5, 20.0),
                "focal_length": (10.0, 100.0),
                "aperture": (1.0, 16.0),
                "gaussian_start": (0.0, 5.0),
                "gaussian_end": (1.0, 20.0),
            },
        )

    def _random_values(self, rng: np.random.Generator) -> dict[str, Any]:
        return {
            "mode": "bokeh" if rng.random() > 0.5 else "gaussian",
            "focus_distance": self._uniform(rng, "focus_distance"),
            "focal_length": self._uniform(rng, "focal_length"),
            "aperture": self._uniform(rng, "aperture"),
            "gaussian_start": self._uniform(rng, "gaussian_start"),
            "gaussian_end": self._uniform(rng, "gaussian_end"),
        }
