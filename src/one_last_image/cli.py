"""
cli.py

Command-line interface for one-last-image.
"""

from pathlib import Path
import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .codec import detect_mime
from .kernels import QUALITY_SIZES, EMBOSS_QUALITY, SKETCH_QUALITY
from .options import PROFILES, FinishingPass, load_options
from .pipeline import transform


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="One Last Image: photo to line-art")
    parser.add_argument("input", help="path to the source image")
    parser.add_argument("--out", required=True, help="output PNG path")
    parser.add_argument("--config", help="JSON options file (snake_case or camelCase keys)")
    parser.add_argument("--profile", choices=sorted(PROFILES), help="base option profile (replaces --config values)")
    parser.add_argument("--zoom", type=float, help="downscale divisor")
    parser.add_argument(
        "--quality",
        choices=list(QUALITY_SIZES) + [SKETCH_QUALITY, EMBOSS_QUALITY],
        help="line kernel size, or sketch/emboss mode",
    )
    parser.add_argument("--cover", action="store_true", default=None, help="crop to a centered square")
    parser.add_argument("--no-denoise", dest="denoise", action="store_false", default=None)
    parser.add_argument("--light-cut", type=int, help="light cut 0-255")
    parser.add_argument("--dark-cut", type=int, help="dark cut 0-255")
    parser.add_argument("--light", type=float, help="brightness offset in percent")
    parser.add_argument("--kiss", dest="kiss", action="store_true", default=None, help="gradient colorization")
    parser.add_argument("--no-kiss", dest="kiss", action="store_false")
    parser.add_argument("--watermark", type=Path, help="watermark image (two stacked logos)")
    parser.add_argument("--hajimei", action="store_true", default=None, help="use the lower watermark logo")
    parser.add_argument("--tone-count", type=int, help="posterization levels")
    parser.add_argument("--finish", choices=[f.value for f in FinishingPass], help="finishing pass")
    parser.add_argument("--cap", type=int, help="max working width (0 disables)")
    parser.add_argument("--workers", type=int, help="convolution threads (1 = serial)")
    parser.add_argument("--meta", action="store_true", help="write a JSON summary next to the output")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _collect_options(args: argparse.Namespace) -> Dict[str, Any]:
    data: Dict[str, Any] = {}

    overrides = {
        "profile": args.profile,
        "zoom": args.zoom,
        "quality": args.quality,
        "cover": args.cover,
        "denoise": args.denoise,
        "light_cut": args.light_cut,
        "dark_cut": args.dark_cut,
        "light": args.light,
        "kiss": args.kiss,
        "hajimei": args.hajimei,
        "tone_count": args.tone_count,
        "finishing_pass": args.finish,
        "workers": args.workers,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})

    if args.cap is not None:
        data["dimension_cap"] = args.cap or None
    if args.watermark is not None:
        data["watermark"] = True
        data["watermark_image"] = args.watermark.read_bytes()
    return data


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    src = Path(args.input)
    out = Path(args.out)
    data = src.read_bytes()
    base = None
    if args.config:
        base = load_options(Path(args.config).read_text(encoding="utf-8"))
    options = load_options(_collect_options(args), base=base)

    result = transform(data, options)
    skipped = result == data

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(result)

    if args.meta:
        meta = {
            "input": {"path": str(src), "mime": detect_mime(data), "bytes": len(data)},
            "output": {"path": str(out), "mime": detect_mime(result), "bytes": len(result)},
            "skipped": skipped,
            "options": {
                "zoom": options.zoom,
                "quality": options.quality,
                "light_cut": options.light_cut,
                "dark_cut": options.dark_cut,
                "kiss": options.kiss,
                "tone_count": options.tone_count,
                "finishing_pass": FinishingPass(options.finishing_pass).value,
                "dimension_cap": options.dimension_cap,
            },
        }
        meta_path = out.with_suffix(".json")
        meta_path.write_text(json.dumps(meta, ensure_ascii=False, indent=2), encoding="utf-8")

    if skipped:
        print(f"[skipped] {src} could not be processed, wrote input unchanged to {out}")
        return 1

    print(f"[done] {src} -> {out} ({len(result)} bytes)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
