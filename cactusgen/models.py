"""Configuration data classes, presets, and path management."""

import pathlib
from dataclasses import asdict, dataclass, field, fields, replace

from .constants import MIN_DIMENSION, OUTPUT_DIR


class PathManager:
    """Resolve output paths relative to the configured output directory."""

    @staticmethod
    def get_output_path(filename) -> pathlib.Path:
        """Get the output file path. Absolute paths are returned unchanged."""
        path = pathlib.Path(filename)
        if path.is_absolute():
            return path
        return OUTPUT_DIR / path


def _clamp(value, lo, hi):
    return max(lo, min(hi, value))


def _count(value) -> int:
    return max(0, int(value))


def _dimension(value) -> float:
    return max(MIN_DIMENSION, float(value))


@dataclass(frozen=True)
class BodyConfig:
    height: float = 80.0
    width: float = 40.0
    rib_count: int = 8
    segmentation: int = 20


@dataclass(frozen=True)
class SpineConfig:
    density: float = 50.0   # 0-100
    length: float = 15.0


@dataclass(frozen=True)
class AddonConfig:
    flower_count: int = 3
    flower_size: float = 25.0
    flower_size_variation: float = 50.0   # 0-100 percent
    pot_size: float = 60.0
    flower_seed: int = 1


@dataclass(frozen=True)
class ArmConfig:
    count: int = 0
    position: float = 50.0    # 0-100, fraction of body height
    length: float = 50.0
    thickness: float = 50.0
    placement_seed: int = 1


# Slider UI snapshot keys -> field names
_KEY_ALIASES = {
    'ribs': 'rib_count',
    'ribCount': 'rib_count',
    'flowers': 'flower_count',
    'flowerCount': 'flower_count',
    'flowerSize': 'flower_size',
    'flowerSizeVariation': 'flower_size_variation',
    'potSize': 'pot_size',
    'seed': 'flower_seed',
    'flowerSeed': 'flower_seed',
    'placementSeed': 'placement_seed',
}


@dataclass(frozen=True)
class CactusConfig:
    """Complete, read-only snapshot of the shape parameters for one pass."""

    body: BodyConfig = field(default_factory=BodyConfig)
    spines: SpineConfig = field(default_factory=SpineConfig)
    addons: AddonConfig = field(default_factory=AddonConfig)
    arms: ArmConfig = field(default_factory=ArmConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "CactusConfig":
        """Build a config from a nested mapping such as a UI snapshot.

        Both snake_case field names and the camelCase keys of the slider
        UI are accepted.  Missing groups or keys keep their defaults.
        """
        groups = {f.name: f.default_factory for f in fields(cls)}
        unknown = set(data) - set(groups)
        if unknown:
            raise ValueError(f"Unknown config groups: {sorted(unknown)}")

        kwargs = {}
        for name, group_cls in groups.items():
            raw = data.get(name) or {}
            valid = {f.name for f in fields(group_cls)}
            values = {}
            for key, value in raw.items():
                key = _KEY_ALIASES.get(key, key)
                if key not in valid:
                    raise ValueError(f"Unknown key '{key}' in config group '{name}'")
                values[key] = value
            kwargs[name] = group_cls(**values)
        return cls(**kwargs)

    def to_dict(self) -> dict:
        return asdict(self)

    def sanitized(self) -> "CactusConfig":
        """Return a copy with every field clamped into its usable range."""
        b, s, a, r = self.body, self.spines, self.addons, self.arms
        return CactusConfig(
            body=BodyConfig(
                height=_dimension(b.height),
                width=_dimension(b.width),
                rib_count=_count(b.rib_count),
                segmentation=_count(b.segmentation),
            ),
            spines=SpineConfig(
                density=_clamp(float(s.density), 0.0, 100.0),
                length=_dimension(s.length),
            ),
            addons=AddonConfig(
                flower_count=_count(a.flower_count),
                flower_size=_dimension(a.flower_size),
                flower_size_variation=_clamp(float(a.flower_size_variation), 0.0, 100.0),
                pot_size=_dimension(a.pot_size),
                flower_seed=int(a.flower_seed),
            ),
            arms=ArmConfig(
                count=_count(r.count),
                position=_clamp(float(r.position), 0.0, 100.0),
                length=_dimension(r.length),
                thickness=_dimension(r.thickness),
                placement_seed=int(r.placement_seed),
            ),
        )


DEFAULT_CONFIG = CactusConfig()

PRESETS = {
    'default': DEFAULT_CONFIG,
    'saguaro': replace(
        DEFAULT_CONFIG,
        body=BodyConfig(height=100, width=35, rib_count=12, segmentation=40),
        spines=SpineConfig(density=30, length=10),
        addons=AddonConfig(flower_count=2, flower_size=20, pot_size=55),
        arms=ArmConfig(count=2, position=45, length=60, thickness=70),
    ),
    'barrel': replace(
        DEFAULT_CONFIG,
        body=BodyConfig(height=45, width=90, rib_count=18, segmentation=25),
        spines=SpineConfig(density=70, length=20),
        addons=AddonConfig(flower_count=5, flower_size=30, pot_size=80),
    ),
    'flowering': replace(
        DEFAULT_CONFIG,
        addons=AddonConfig(flower_count=8, flower_size=35,
                           flower_size_variation=80, flower_seed=7),
    ),
    'bare': replace(
        DEFAULT_CONFIG,
        spines=SpineConfig(density=0),
        addons=AddonConfig(flower_count=0),
    ),
}


def get_preset(name: str) -> CactusConfig:
    """Look up a named preset. Raises KeyError if not found."""
    try:
        return PRESETS[name]
    except KeyError:
        raise KeyError(f"Unknown preset '{name}' "
                       f"(available: {', '.join(sorted(PRESETS))})") from None
