"""Sketchify - command line entry point."""

import argparse
import logging
import sys
from pathlib import Path

from config_manager import SettingsStore
from image_processing import SketchProcessor
from image_processing.utils import EXPORT_FORMATS, default_export_name, guess_mime_type
from models import PRESETS, SETTINGS_FILE, SketchError, SketchStyle

logger = logging.getLogger("sketchify")


def percentage(value: str) -> int:
    number = int(value)
    if not 0 <= number <= 100:
        raise argparse.ArgumentTypeError(f"{value} is not between 0 and 100")
    return number


def output_format(output: Path | None, requested: str | None) -> str:
    """Explicit --format wins, then the -o suffix, then PNG."""
    if requested:
        return requested
    if output is not None:
        suffix = output.suffix.lower().lstrip(".")
        if suffix in EXPORT_FORMATS:
            return suffix
    return "png"


def suffix_matches(output: Path, fmt: str) -> bool:
    """True if the file suffix names the same encoder as ``fmt``."""
    suffix = output.suffix.lower().lstrip(".")
    if suffix not in EXPORT_FORMATS:
        return False
    return EXPORT_FORMATS[suffix][0] == EXPORT_FORMATS[fmt][0]


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Turn a JPEG/PNG photo into a sketch")
    p.add_argument("image", type=Path, help="Input JPEG or PNG file")
    p.add_argument("-o", "--output", type=Path, default=None,
                   help="Output file (default: <export prefix>-<date>.<format>)")
    p.add_argument("--format", choices=sorted(EXPORT_FORMATS), default=None,
                   help="Output encoding (default: from the -o suffix, else png)")
    p.add_argument("--settings", type=Path, default=SETTINGS_FILE,
                   help="Application settings file")
    p.add_argument("-v", "--verbose", action="store_true")

    g_sketch = p.add_argument_group("Sketch")
    g_sketch.add_argument("--preset", choices=list(PRESETS))
    g_sketch.add_argument("--style", choices=[s.value for s in SketchStyle])
    g_sketch.add_argument("--intensity", type=percentage)
    g_sketch.add_argument("--contrast", type=percentage)
    g_sketch.add_argument("--brightness", type=percentage)
    g_sketch.add_argument("--invert", action="store_true")
    return p


def main(argv=None) -> int:
    """Sketch one image file and write the result."""
    args = build_argparser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = SettingsStore(args.settings)
    settings.load()

    processor = SketchProcessor()
    if args.preset:
        processor.apply_preset(args.preset)
    for key in ("style", "intensity", "contrast", "brightness"):
        value = getattr(args, key)
        if value is not None:
            processor.update_setting(key, value)
    if args.invert:
        processor.update_setting("invert", True)

    try:
        data = args.image.read_bytes()
    except OSError as e:
        logger.error("Cannot read %s: %s", args.image, e)
        return 2

    try:
        processor.load_image(data, guess_mime_type(args.image), name=args.image.name)
    except SketchError as e:
        logger.error("%s", e)
        return 2

    fmt = output_format(args.output, args.format)
    if args.output is not None:
        base_name = str(args.output.with_suffix(""))
    else:
        base_name = default_export_name(settings.get("export_prefix"))
    exported = processor.export(base_name, fmt)

    output = Path(exported.filename)
    if args.output is not None and suffix_matches(args.output, fmt):
        output = args.output
    output.write_bytes(exported.data)
    logger.info("Wrote %s (%s)", output, processor.get_settings().as_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
