"""Per-pass build context shared by the feature builders."""

import math
from dataclasses import dataclass, field

from .constants import FLOWER_MATERIALS, MATERIALS, MIN_SEGMENTS
from .models import CactusConfig
from .rng import StreamSet


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def path_segments(segmentation: int) -> int:
    """Height / path subdivisions for a segmentation slider value."""
    return max(MIN_SEGMENTS, round_half_up(segmentation / 5))


@dataclass
class BuildContext:
    """Everything a builder may read during one generation pass.

    Built once per pass from a sanitised config and never looked up
    globally.  Dimensions are in scene units.
    """

    config: CactusConfig
    streams: StreamSet
    height: float
    width: float
    rib_count: int
    segments: int
    pot_size: float
    materials: dict = field(default_factory=lambda: dict(MATERIALS))
    flower_palette: tuple = FLOWER_MATERIALS

    @classmethod
    def from_config(cls, config: CactusConfig) -> "BuildContext":
        body = config.body
        height = body.height / 40
        return cls(
            config=config,
            streams=StreamSet.for_config(config),
            height=height,
            width=(body.width / 100) * (height / 2.5),
            rib_count=body.rib_count,
            segments=path_segments(body.segmentation),
            pot_size=config.addons.pot_size / 60,
        )

    @property
    def pot_body_height(self) -> float:
        return self.pot_size * 0.9

    @property
    def body_offset(self) -> tuple:
        """Local position of the body shell; arms and spines share it."""
        return (0.0, self.pot_body_height / 2 - 0.1, 0.0)
