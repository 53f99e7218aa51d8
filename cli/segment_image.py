"""
Segment one image on disk into a black/white image.

    segment-image photo.jpg photo_segmented.png --threshold 30000
"""
import argparse
import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from models.errors import PipelineError
from pipeline.binary_segmenter import segment


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="segment-image",
        description="Threshold an image into black and white by mean RGB brightness.",
    )
    parser.add_argument("input", help="PNG or JPEG image to read")
    parser.add_argument("output", help="destination; .png writes PNG, anything else JPEG")
    parser.add_argument(
        "--threshold",
        type=int,
        default=None,
        help="16-bit brightness cutoff (default: SEGMENTATION_THRESHOLD or 32768)",
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    try:
        segment(args.input, args.output, threshold=args.threshold)
    except PipelineError as err:
        print(f"segment-image: {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
