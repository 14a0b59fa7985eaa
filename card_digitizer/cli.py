"""
Command-line interface.

    card-digitizer run --pdf id.pdf --front-template front.png --back-template back.png \\
        --font Ebrima:normal=ebrima.ttf --font Ebrima:bold=ebrimabd.ttf --out output/
    card-digitizer extract --pdf id.pdf
    card-digitizer scan --image crop.png --formats qr
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from PIL import Image

from .config import Config, default_config
from .errors import CardDigitizerError

logger = logging.getLogger(__name__)


def _read_pdf(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def cmd_run(args: argparse.Namespace, config: Config) -> int:
    from .pipeline import CardTemplateSet, digitize_and_render
    from .render import FontTable

    templates = CardTemplateSet(
        front_template=args.front_template,
        back_template=args.back_template,
        fonts=FontTable.from_specs(args.font),
        output_format=args.format,
        jpeg_quality=args.quality,
    )
    templates.validate()

    result = digitize_and_render(_read_pdf(args.pdf), templates, config=config)
    paths = result.save(args.out)

    print("\nResults:")
    print(f"  Name: {result.profile.name_en or result.profile.name_am or 'N/A'}")
    print(f"  FCN: {result.profile.primary_id or 'N/A'}")
    for name, code in result.codes.items():
        print(f"  {name}: {code.format + ' ' + code.payload if code else 'not found'}")
    for side in ("front", "back"):
        print(f"  {side.title()} card: {paths[side]}")
    print(f"\nArtifacts saved to: {args.out}/")
    return 0


def cmd_extract(args: argparse.Namespace, config: Config) -> int:
    from .errors import ExtractionFailed
    from .extractors import extract_profile, reconstruct_text
    from .utils.pdf_render import open_pdf, page_glyph_runs

    doc = open_pdf(_read_pdf(args.pdf))
    try:
        text = reconstruct_text(page_glyph_runs(doc.load_page(0)), config)
    finally:
        doc.close()

    profile = extract_profile(text)
    if profile.is_empty():
        raise ExtractionFailed("No ID fields found in the PDF text")
    print(json.dumps(profile.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _format_list(value: str) -> List[str]:
    """argparse type for --formats: comma-separated names from DECODE_FORMATS."""
    from .codec import DECODE_FORMATS

    formats = [f.strip().lower() for f in value.split(",") if f.strip()]
    unknown = [f for f in formats if f not in DECODE_FORMATS]
    if not formats or unknown:
        raise argparse.ArgumentTypeError(
            f"expected one or more of {','.join(DECODE_FORMATS)}, got {value!r}"
        )
    return formats


def cmd_scan(args: argparse.Namespace, config: Config) -> int:
    from .codec import decode

    with Image.open(args.image) as img:
        img.load()
        code = decode(img, args.formats, config)
    if code is None:
        print(json.dumps({"found": False}))
        return 0
    print(json.dumps({"found": True, "payload": code.payload, "format": code.format,
                      "window": code.window, "pass": code.scan_pass}, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="card-digitizer",
        description="Digitize ID document PDFs into printable front/back card images",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Extract a PDF and render both card sides")
    run.add_argument("--pdf", required=True, help="Path to the ID document PDF")
    run.add_argument("--front-template", required=True, help="Front template image")
    run.add_argument("--back-template", required=True, help="Back template image")
    run.add_argument("--font", action="append", default=[], metavar="FAMILY:WEIGHT=PATH",
                     help="Font file for a family/weight (repeatable)")
    run.add_argument("--out", default="output", help="Output directory")
    run.add_argument("--format", choices=["png", "jpeg"], default=default_config.output_format,
                     help="Card image format")
    run.add_argument("--quality", type=int, default=default_config.jpeg_quality, help="JPEG quality")
    run.set_defaults(func=cmd_run)

    extract = sub.add_parser("extract", help="Print the extracted profile as JSON")
    extract.add_argument("--pdf", required=True, help="Path to the ID document PDF")
    extract.set_defaults(func=cmd_extract)

    scan = sub.add_parser("scan", help="Decode a QR/barcode from an image")
    scan.add_argument("--image", required=True, help="Path to an image (PNG/JPG)")
    scan.add_argument("--formats", type=_format_list, default=["qr"], help="Comma-separated formats (qr,code128,code39,ean13,ean8)")
    scan.set_defaults(func=cmd_scan)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args, default_config)
    except CardDigitizerError as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
