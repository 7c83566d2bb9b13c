"""cactusgen: deterministic procedural cactus meshes from a few sliders."""

from cactusgen.builder import CactusBuilder, generate
from cactusgen.models import CactusConfig, PRESETS, get_preset
