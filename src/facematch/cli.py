#!/usr/bin/env python3
"""Command line interface for the face matcher.

Processes face crops in order within one session, the way frames arrive
from a camera: the first unmatched face is enrolled, later faces are
matched against it.

Usage:
    facematch identify alice_1.jpg alice_2.jpg bob.jpg --enroll Alice
    facematch identify crop.jpg --model models/mobile_face_net.tflite --threshold 0.8
    facematch identify frame.jpg --bbox 120,80,96,96 --enroll User
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2

from . import __version__
from .constants import get_config
from .embeddings import create_embedding_backend
from .exceptions import FaceMatchError, InferenceError
from .matcher import FaceMatcher, annotation_for
from .types import BoundingBox, EnrollmentSession
from .utils import crop_face

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_bbox(value: str) -> BoundingBox:
    """Parse an "x,y,w,h" bounding box argument."""
    try:
        x, y, w, h = (int(v) for v in value.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected x,y,w,h, got '{value}'")
    box = BoundingBox(x, y, w, h)
    if not box.is_valid:
        raise argparse.ArgumentTypeError(f"Bounding box must have positive size: '{value}'")
    return box


def cmd_identify(args) -> int:
    """Identify each image, enrolling the first unmatched face if asked."""
    config = get_config()
    embedder = create_embedding_backend(
        args.backend,
        model_path=args.model,
        labels_path=args.labels,
    )
    matcher = FaceMatcher(
        embedder,
        match_threshold=args.threshold,
        config=config.matching,
        strict=False,
    )
    session = EnrollmentSession(label=args.enroll) if args.enroll else None

    failures = 0
    for image_path in args.images:
        image = cv2.imread(image_path)
        if image is None:
            logger.error(f"Could not load image: {image_path}")
            failures += 1
            continue

        if args.bbox is not None:
            image = crop_face(image, args.bbox.bbox)
            if image.size == 0:
                logger.error(f"{image_path}: bounding box {args.bbox.bbox} is outside the image")
                failures += 1
                continue

        try:
            result = matcher.identify(image, session=session, location=args.bbox)
        except InferenceError as e:
            logger.error(f"{image_path}: extraction failed: {e}")
            failures += 1
            continue

        hint = annotation_for(result, config.matching)
        suffix = " (enrolled)" if result.registered else ""
        print(f"{image_path}\t{hint.text}\t{hint.color}{suffix}")

    if session is not None and session.pending:
        logger.warning(f"No unmatched face was enrolled as '{session.label}'")

    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the facematch CLI."""
    parser = argparse.ArgumentParser(
        description="Face recognition matching with a TFLite embedding model",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    identify_parser = subparsers.add_parser("identify", help="Identify face crops")
    identify_parser.add_argument("images", nargs="+", help="Cropped face images")
    identify_parser.add_argument(
        "--enroll",
        type=str,
        default=None,
        help="Label to enroll the first unmatched face under",
    )
    identify_parser.add_argument(
        "--bbox",
        type=parse_bbox,
        default=None,
        help="Face box x,y,w,h to crop from each image (default: image is already a crop)",
    )
    identify_parser.add_argument("--model", type=str, default=None, help="TFLite model path")
    identify_parser.add_argument("--labels", type=str, default=None, help="Label list file")
    identify_parser.add_argument(
        "--backend",
        type=str,
        default="tflite",
        help="Embedding backend",
    )
    identify_parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Match distance threshold (default from config)",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config:
        get_config().reload(Path(args.config))

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "identify":
            return cmd_identify(args)
    except (FaceMatchError, ValueError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
