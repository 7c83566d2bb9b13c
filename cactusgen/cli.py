"""Click CLI commands for cactusgen."""

import logging
from dataclasses import replace

import click

from .builder import generate, summarize
from .glb import FILE_TYPES, export_group
from .models import PRESETS, get_preset

logger = logging.getLogger(__name__)

# (option name, config group, field, type)
_FIELD_OPTIONS = [
    ('--height', 'body', 'height', float),
    ('--width', 'body', 'width', float),
    ('--ribs', 'body', 'rib_count', int),
    ('--segmentation', 'body', 'segmentation', int),
    ('--spine-density', 'spines', 'density', float),
    ('--spine-length', 'spines', 'length', float),
    ('--flowers', 'addons', 'flower_count', int),
    ('--flower-size', 'addons', 'flower_size', float),
    ('--flower-variation', 'addons', 'flower_size_variation', float),
    ('--pot-size', 'addons', 'pot_size', float),
    ('--flower-seed', 'addons', 'flower_seed', int),
    ('--arms', 'arms', 'count', int),
    ('--arm-position', 'arms', 'position', float),
    ('--arm-length', 'arms', 'length', float),
    ('--arm-thickness', 'arms', 'thickness', float),
    ('--arm-seed', 'arms', 'placement_seed', int),
]


def _param_name(option: str) -> str:
    return option.lstrip('-').replace('-', '_')


def config_options(func):
    """Attach --preset plus one override option per config field."""
    for option, group, name, kind in reversed(_FIELD_OPTIONS):
        func = click.option(option, type=kind, default=None,
                            help=f"Override {group}.{name}")(func)
    return click.option('--preset', '-p', default='default', show_default=True,
                        type=click.Choice(sorted(PRESETS)),
                        help='Starting preset')(func)


def resolve_config(preset: str, overrides: dict):
    """Apply explicit option values on top of a preset."""
    config = get_preset(preset)
    for option, group, name, _ in _FIELD_OPTIONS:
        value = overrides.get(_param_name(option))
        if value is None:
            continue
        section = replace(getattr(config, group), **{name: value})
        config = replace(config, **{group: section})
    return config


def _echo_summary(summary: dict):
    lo, hi = summary['bounds_min'], summary['bounds_max']
    click.echo(f"  Solid meshes:  {summary['solid_meshes']}")
    click.echo(f"  Spine sets:    {summary['line_segments']} "
               f"({summary['spines']} spines)")
    click.echo(f"  Vertices:      {summary['vertices']}")
    click.echo(f"  Bounds:        ({lo[0]:.3f}, {lo[1]:.3f}, {lo[2]:.3f}) → "
               f"({hi[0]:.3f}, {hi[1]:.3f}, {hi[2]:.3f})")
    ft = summary['focus_target']
    click.echo(f"  Focus target:  ({ft[0]:.3f}, {ft[1]:.3f}, {ft[2]:.3f})")


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """cactusgen CLI for generating stylised 3D cactus models."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(levelname)s %(name)s: %(message)s")


@cli.command()
@config_options
@click.option('--output', '-o', default='cactus.glb', help='Output file path')
@click.option('--format', 'file_type', type=click.Choice(FILE_TYPES),
              default='glb', show_default=True, help='Output file type')
def build(preset: str, output: str, file_type: str, **overrides):
    """Generate a cactus and write it to a GLB or STL file."""
    group = None
    try:
        group = generate(resolve_config(preset, overrides))
        path = export_group(group, output, file_type=file_type)
        click.echo(f"Wrote {path}")
        _echo_summary(summarize(group))
    except Exception as e:
        logger.error(f"Error generating cactus: {e}")
        raise click.ClickException(str(e))
    finally:
        if group is not None:
            group.dispose()


@cli.command()
@config_options
def info(preset: str, **overrides):
    """Print primitive counts and bounds without writing a file."""
    group = None
    try:
        group = generate(resolve_config(preset, overrides))
        _echo_summary(summarize(group))
    except Exception as e:
        logger.error(f"Error generating cactus: {e}")
        raise click.ClickException(str(e))
    finally:
        if group is not None:
            group.dispose()
