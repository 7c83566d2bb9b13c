"""Seeded 32-bit random streams.

Every feature category draws from its own stream so that changing one
seed (say, flower placement) never shifts the sequence another feature
sees.  The generator is the mulberry32 mixer: a Weyl-sequence state
advanced by a fixed odd increment, then two xor-shift/multiply rounds.
"""

import logging
from dataclasses import dataclass

from .constants import ARM_SPINE_SEED, BODY_SPINE_SEED

logger = logging.getLogger(__name__)

_MASK = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_SCALE = 1.0 / 4294967296.0


def _imul(a: int, b: int) -> int:
    """Low 32 bits of a 32x32-bit product."""
    return (a * b) & _MASK


class RngStream:
    """Deterministic stream of floats in [0, 1) derived from an int seed."""

    __slots__ = ('seed', '_state', 'draws')

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._state = self.seed & _MASK
        self.draws = 0

    def __call__(self) -> float:
        a = self._state = (self._state + _INCREMENT) & _MASK
        t = _imul(a ^ (a >> 15), 1 | a)
        t = ((t + _imul(t ^ (t >> 7), 61 | t)) & _MASK) ^ t
        self.draws += 1
        return ((t ^ (t >> 14)) & _MASK) * _SCALE

    def __repr__(self):
        return f"RngStream(seed={self.seed}, draws={self.draws})"


def create_stream(seed: int) -> RngStream:
    """Create a fresh stream. Same seed gives the same infinite sequence."""
    return RngStream(seed)


@dataclass
class StreamSet:
    """The four independent streams consumed by one generation pass."""

    body_spines: RngStream
    flowers: RngStream
    arm_placement: RngStream
    arm_spines: RngStream

    @classmethod
    def for_config(cls, config) -> "StreamSet":
        """Spine streams use fixed seeds; placement streams use config seeds."""
        streams = cls(
            body_spines=create_stream(BODY_SPINE_SEED),
            flowers=create_stream(config.addons.flower_seed),
            arm_placement=create_stream(config.arms.placement_seed),
            arm_spines=create_stream(ARM_SPINE_SEED),
        )
        logger.debug(f"Streams seeded: flowers={config.addons.flower_seed}, "
                     f"arm_placement={config.arms.placement_seed}")
        return streams
