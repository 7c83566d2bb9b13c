"""Assembly tests: child order, recentring, determinism, regeneration."""

from dataclasses import replace

import numpy as np
import pytest

import cactusgen.builder
from cactusgen.builder import CactusBuilder, generate, summarize
from cactusgen.models import (PRESETS, AddonConfig, ArmConfig, BodyConfig,
                              CactusConfig, SpineConfig)
from cactusgen.scene import Group, Primitive, PrimitiveKind
from cactusgen.geometry import GeometryBuffer


def _arms_config(count=2):
    return replace(CactusConfig(),
                   addons=AddonConfig(flower_count=0),
                   arms=ArmConfig(count=count))


def _all_positions(group):
    return [points for _, points in group.world_positions()]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestScenarios:

    def test_bare(self):
        group = generate(PRESETS['bare'])
        assert len(group.solid_meshes()) == 3
        assert len(group.line_segments()) == 0

    def test_default_body_spines(self):
        config = replace(CactusConfig(), addons=AddonConfig(flower_count=0))
        group = generate(config)
        lines = group.line_segments()
        assert len(group.solid_meshes()) == 3
        assert len(lines) == 1
        assert lines[0].name == "body_spines"
        assert lines[0].segment_count == 1975

    def test_two_arms(self):
        group = generate(_arms_config(2))
        assert len(group.solid_meshes()) == 9
        assert len(group.line_segments()) == 3
        assert summarize(group)['spines'] == 1975 + 2 * 1125

    def test_default_has_flowers(self):
        group = generate(CactusConfig())
        names = [p.name for p in group.primitives()]
        assert names[-3:] == ["flower_0", "flower_1", "flower_2"]

    def test_child_order(self):
        config = replace(_arms_config(1), addons=AddonConfig(flower_count=2))
        group = generate(config)
        assert [c.name for c in group.children] == [
            "pot", "body", "body_spines",
            "arm_0", "arm_0_start_cap", "arm_0_end_cap", "arm_0_spines",
            "flower_0", "flower_1",
        ]
        assert isinstance(group.children[0], Group)

    def test_body_spines_share_body_transform(self):
        group = generate(CactusConfig())
        body, spines = group.children[1], group.children[2]
        assert spines.position == body.position


# ---------------------------------------------------------------------------
# Recentring
# ---------------------------------------------------------------------------


class TestRecenter:

    @pytest.mark.parametrize("preset", sorted(PRESETS))
    def test_vertical_midpoint_at_origin(self, preset):
        group = generate(PRESETS[preset])
        lo, hi = group.bounds()
        assert (lo[1] + hi[1]) / 2 == pytest.approx(0.0, abs=1e-9)

    def test_focus_target_is_horizontal_centre(self):
        group = generate(_arms_config(3))
        lo, hi = group.bounds()
        fx, fy, fz = group.focus_target
        assert fy == 0.0
        assert fx == pytest.approx((lo[0] + hi[0]) / 2)
        assert fz == pytest.approx((lo[2] + hi[2]) / 2)

    def test_offset_reported(self):
        group = generate(CactusConfig())
        summary = summarize(group)
        assert summary['vertical_offset'] == group.position[1]
        assert group.position[0] == 0.0 and group.position[2] == 0.0

    def test_empty_group_bounds(self):
        lo, hi = Group().bounds()
        assert np.array_equal(lo, np.zeros(3))
        assert np.array_equal(hi, np.zeros(3))


# ---------------------------------------------------------------------------
# Determinism and stream independence
# ---------------------------------------------------------------------------


class TestDeterminism:

    def test_identical_configs_identical_buffers(self):
        config = replace(_arms_config(2), addons=AddonConfig(flower_count=4))
        a, b = generate(config), generate(config)
        for pa, pb in zip(_all_positions(a), _all_positions(b)):
            assert np.array_equal(pa, pb)
        assert a.position == b.position

    def test_flower_seed_leaves_body_spines(self):
        a = generate(CactusConfig())
        b = generate(replace(CactusConfig(), addons=AddonConfig(flower_seed=77)))
        spines_a, spines_b = a.children[2], b.children[2]
        assert np.array_equal(spines_a.geometry.positions, spines_b.geometry.positions)
        flowers_a = [p for p in a.primitives() if p.name.startswith("flower")]
        flowers_b = [p for p in b.primitives() if p.name.startswith("flower")]
        assert flowers_a[0].position != flowers_b[0].position

    def test_arm_seed_leaves_flowers(self):
        base = replace(CactusConfig(), arms=ArmConfig(count=2))
        moved = replace(base, arms=ArmConfig(count=2, placement_seed=5))
        a, b = generate(base), generate(moved)
        flower_a = next(p for p in a.primitives() if p.name == "flower_0")
        flower_b = next(p for p in b.primitives() if p.name == "flower_0")
        assert np.array_equal(flower_a.geometry.positions, flower_b.geometry.positions)
        assert flower_a.position == flower_b.position


# ---------------------------------------------------------------------------
# Degenerate inputs
# ---------------------------------------------------------------------------


class TestDegenerate:

    @pytest.mark.parametrize("config", [
        replace(CactusConfig(), body=BodyConfig(rib_count=0)),
        replace(CactusConfig(), body=BodyConfig(segmentation=0)),
        replace(CactusConfig(), body=BodyConfig(height=0)),
        replace(CactusConfig(), body=BodyConfig(width=-5)),
        replace(CactusConfig(), addons=AddonConfig(flower_size_variation=100,
                                                   flower_count=12)),
        replace(CactusConfig(), spines=SpineConfig(density=250)),
        replace(CactusConfig(), arms=ArmConfig(count=3, length=0, thickness=0)),
        replace(CactusConfig(), body=BodyConfig(rib_count=0),
                arms=ArmConfig(count=2)),
    ])
    def test_finite_output(self, config):
        group = generate(config)
        assert len(group.solid_meshes()) >= 3
        for primitive in group.primitives():
            assert np.isfinite(primitive.geometry.positions).all()
            assert np.isfinite(primitive.geometry.normals).all()
        lo, hi = group.bounds()
        assert np.isfinite(lo).all() and np.isfinite(hi).all()

    def test_negative_counts_build_nothing_extra(self):
        config = replace(CactusConfig(), addons=AddonConfig(flower_count=-3),
                         arms=ArmConfig(count=-1), spines=SpineConfig(density=-10))
        group = generate(config)
        assert len(group.primitives()) == 3


# ---------------------------------------------------------------------------
# Stateful regeneration
# ---------------------------------------------------------------------------


class TestCactusBuilder:

    def test_swap_disposes_previous_group(self):
        builder = CactusBuilder()
        first = builder.regenerate(CactusConfig())
        first_body = first.children[1]
        second = builder.regenerate(_arms_config(1))
        assert builder.group is second
        assert builder.generation == 2
        assert first_body.geometry.disposed
        assert first.children == []
        assert not second.children[1].geometry.disposed

    def test_dispose(self):
        builder = CactusBuilder()
        group = builder.regenerate(CactusConfig())
        body = group.children[1]
        builder.dispose()
        assert builder.group is None
        assert body.geometry.disposed
        with pytest.raises(RuntimeError):
            body.geometry.positions

    def test_reentrant_request_is_queued(self):
        builder = CactusBuilder()
        latest = _arms_config(2)
        calls = []

        def progress(pct, msg):
            calls.append(pct)
            if len(calls) == 1:
                assert builder.regenerate(latest) is None

        group = builder.regenerate(CactusConfig(), progress_callback=progress)
        assert builder.config is latest
        assert builder.generation == 2
        assert builder.group is group
        assert len(group.solid_meshes()) == 9

    def test_failed_pass_keeps_current_group(self, monkeypatch):
        builder = CactusBuilder()
        current = builder.regenerate(CactusConfig())

        def broken(ctx):
            raise RuntimeError("flower failure")

        monkeypatch.setattr(cactusgen.builder, "build_flowers", broken)
        with pytest.raises(RuntimeError, match="flower failure"):
            builder.regenerate(_arms_config(1))

        assert builder.group is current
        assert builder.generation == 1
        assert not current.children[1].geometry.disposed

        monkeypatch.undo()
        builder.regenerate(_arms_config(1))
        assert builder.generation == 2

    def test_failed_pass_releases_partial_group(self, monkeypatch):
        leaked = []

        def arms(ctx):
            primitive = Primitive(PrimitiveKind.solid_mesh,
                                  GeometryBuffer([[0, 0, 0]]), 'body', name="probe")
            leaked.append(primitive)
            return [primitive]

        def broken(ctx):
            raise RuntimeError("flower failure")

        monkeypatch.setattr(cactusgen.builder, "build_arms", arms)
        monkeypatch.setattr(cactusgen.builder, "build_flowers", broken)
        with pytest.raises(RuntimeError):
            generate(CactusConfig())
        assert leaked[0].geometry.disposed
