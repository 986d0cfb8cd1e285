# どこで: `src/vjgrid/core/effects/__init__.py`。
# 何を: エフェクトコントローラ（契約と既定の 3 種類）の公開エイリアスをまとめる。
# なぜ: ディスパッチ/組み立て側から最小インポートで使えるようにするため。

from .base import (
    ApplyMode,
    EffectController,
    EffectParamSpec,
    EffectPreset,
    PresetEffectController,
    PresetLibrary,
)
from .chromatic import ChromaticDisplacementController
from .depth_of_field import DepthOfFieldController
from .pixel_sort import PixelSortController

__all__ = [
    "ApplyMode",
    "ChromaticDisplacementController",
    "DepthOfFieldController",
    "EffectController",
    "EffectParamSpec",
    "EffectPreset",
    "PixelSortController",
    "PresetEffectController",
    "PresetLibrary",
]
