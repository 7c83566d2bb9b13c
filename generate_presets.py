"""Batch-generate GLB models for every named cactus preset.

Usage:
    python generate_presets.py                    # build all presets
    python generate_presets.py --only saguaro
    python generate_presets.py --format stl
    python generate_presets.py --dry-run          # preview without building
"""

import argparse
import logging
import pathlib
import sys
import time
import traceback

# Project root must be on sys.path so the cactusgen package resolves.
PROJECT_ROOT = pathlib.Path(__file__).parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT))

from cactusgen.builder import CactusBuilder, summarize
from cactusgen.constants import OUTPUT_DIR
from cactusgen.glb import FILE_TYPES, export_group
from cactusgen.models import PRESETS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("generate_presets")


def progress_printer(preset_id: str):
    """Return a progress callback that logs under the preset name."""
    def _cb(pct, msg):
        logger.debug("  [%s] %3.0f%% - %s", preset_id, pct, msg)
    return _cb


def build_one(builder: CactusBuilder, preset_id: str, file_type: str) -> pathlib.Path:
    """Regenerate the builder's group for one preset and export it."""
    output_path = OUTPUT_DIR / f"{preset_id}.{file_type}"
    group = builder.regenerate(PRESETS[preset_id],
                               progress_callback=progress_printer(preset_id))
    export_group(group, output_path, file_type=file_type)

    if not output_path.exists():
        raise RuntimeError(f"{file_type.upper()} file was not created at {output_path}")

    summary = summarize(group)
    logger.info("  [%s] %d meshes, %d spines, %d vertices",
                preset_id, summary['solid_meshes'], summary['spines'],
                summary['vertices'])
    return output_path


def main():
    parser = argparse.ArgumentParser(
        description="Batch-generate cactus models for the named presets."
    )
    parser.add_argument(
        "--only", type=str, default=None,
        help="Build only the preset with this name.",
    )
    parser.add_argument(
        "--format", choices=FILE_TYPES, default="glb",
        help="Output file type.",
    )
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print what would be built without actually building.",
    )
    args = parser.parse_args()

    preset_ids = sorted(PRESETS)
    if args.only:
        if args.only not in PRESETS:
            logger.error("No preset named '%s'", args.only)
            sys.exit(1)
        preset_ids = [args.only]

    total = len(preset_ids)

    if args.dry_run:
        for i, preset_id in enumerate(preset_ids, 1):
            output_path = OUTPUT_DIR / f"{preset_id}.{args.format}"
            status = "REBUILD" if output_path.exists() else "BUILD"
            print(f"  {i:3d}/{total}  [{status:8s}]  {preset_id}")
        return

    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    builder = CactusBuilder()
    failed_ids = []

    for i, preset_id in enumerate(preset_ids, 1):
        t0 = time.monotonic()
        try:
            path = build_one(builder, preset_id, args.format)
            logger.info("[%3d/%d] OK    %s  (%.2fs) → %s",
                        i, total, preset_id, time.monotonic() - t0, path)
        except Exception:
            failed_ids.append(preset_id)
            logger.error("[%3d/%d] FAIL  %s\n%s",
                         i, total, preset_id, traceback.format_exc())

    builder.dispose()

    print("\n" + "=" * 60)
    print("BATCH GENERATION COMPLETE")
    print("=" * 60)
    print(f"  Total presets:  {total}")
    print(f"  Successes:      {total - len(failed_ids)}")
    print(f"  Failures:       {len(failed_ids)}")
    if failed_ids:
        print(f"\n  Failed presets:")
        for fid in failed_ids:
            print(f"    - {fid}")
    print("=" * 60)


if __name__ == "__main__":
    main()
