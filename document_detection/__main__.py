#!/usr/bin/env python3
"""
CLI interface for the document detection module.

Usage:
    python -m document_detection -i photo.jpg
    python -m document_detection -i photo.jpg -o scan.png --rectify
    python -m document_detection -i mask.png --mask --edges sobel --debug-edges
"""

import argparse
import logging
import sys
from pathlib import Path

import cv2
import numpy as np

from .config import DetectorConfig
from .detector import DocumentDetector
from .edges import EdgeMethod
from .errors import DocumentDetectionError
from .geometry import order_corners
from .mask import SampleBuffer
from .visualizer import ContourVisualizer

logger = logging.getLogger(__name__)

CORNER_NAMES = ["Top-left", "Top-right", "Bottom-right", "Bottom-left"]


def parse_args(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Detect and rectify a document in an image',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:

  # Detect the document and save the image with its contour drawn
  python -m document_detection -i photo.jpg -o detected.png

  # Save a top-down view of the document
  python -m document_detection -i photo.jpg -o scan.png --rectify

  # Treat the input as a foreground mask and save the traced edge map
  python -m document_detection -i mask.png --mask --edges sobel --debug-edges -o edges.png

Defaults for the options below are read from DOCDETECT_* environment
variables (or a .env file).
        """
    )

    parser.add_argument('-i', '--input', required=True, help='Input image')
    parser.add_argument('-o', '--output', help='Output image (default: input_detected.png)')
    parser.add_argument('--mask', action='store_true',
                        help='Input is a foreground mask, not a camera frame')
    parser.add_argument('--rectify', action='store_true', default=None,
                        help='Save the rectified document instead of the contour overlay')
    parser.add_argument('--background-removal', action='store_true', default=None,
                        help='Remove the background with GrabCut first (slow)')
    parser.add_argument('--min-area-fraction', type=float,
                        help='Minimum quadrilateral area as fraction of the image')
    parser.add_argument('--edges', choices=[m.value for m in EdgeMethod],
                        help='Edge extraction applied to masks before contour search')
    parser.add_argument('--debug-edges', action='store_true',
                        help='Save the edge map traced for contours (mask mode only)')

    args = parser.parse_args(argv)
    if args.debug_edges and not args.mask:
        parser.error("--debug-edges requires --mask")

    return args


def build_config(args) -> DetectorConfig:
    config = DetectorConfig.from_env()

    if args.rectify is not None:
        config.apply_perspective_rectification = args.rectify
    if args.background_removal is not None:
        config.apply_background_removal = args.background_removal
    if args.min_area_fraction is not None:
        if args.mask:
            config.min_area_fraction = args.min_area_fraction
        else:
            config.frame_min_area_fraction = args.min_area_fraction
    if args.edges is not None:
        config.edge_method = args.edges

    return config


def run_mask(detector: DocumentDetector, image_path: str, debug_edges: bool):
    """Detect in a grayscale mask. Returns (image to save, corners)."""
    gray = cv2.imread(image_path, cv2.IMREAD_GRAYSCALE)
    if gray is None:
        raise ValueError(f"Failed to load image: {image_path}")

    height, width = gray.shape
    buffer = SampleBuffer((gray.astype(np.float32) / 255.0).ravel(), width, height)

    result = detector.run(buffer, keep_edge_map=debug_edges)
    if debug_edges:
        return result.edge_map, result.corners

    return cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR), result.corners


def run_frame(detector: DocumentDetector, image_path: str):
    """Detect in a color photo. Returns (image to save, corners, rectified)."""
    bgr = cv2.imread(image_path)
    if bgr is None:
        raise ValueError(f"Failed to load image: {image_path}")

    result = detector.process_frame(cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB))
    return cv2.cvtColor(result.frame, cv2.COLOR_RGB2BGR), result.corners, result.rectified


def main(argv=None) -> int:
    args = parse_args(argv)
    config = build_config(args)

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Image not found at path: {input_path}")
        return 1

    output_path = Path(args.output) if args.output else input_path.with_name(f"{input_path.stem}_detected.png")
    visualizer = ContourVisualizer()

    try:
        with DocumentDetector(config) as detector:
            rectified = False
            if args.mask:
                image, corners = run_mask(detector, str(input_path), args.debug_edges)
            else:
                image, corners, rectified = run_frame(detector, str(input_path))
    except (DocumentDetectionError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    if len(corners) != 4:
        print("Document was not detected!")
    else:
        print("Document corners:")
        for name, corner in zip(CORNER_NAMES, order_corners(corners)):
            print(f"  {name}: ({corner[0]:.1f}, {corner[1]:.1f})")

    if not rectified and not (args.mask and args.debug_edges):
        image = visualizer.draw_info(image, corners)

    cv2.imwrite(str(output_path), image)
    print(f"Result saved: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
