"""Match ORB features between two images and keep the epipolar inliers."""

import argparse
import logging

import cv2

from featmatch.config import load_config
from featmatch.core import MatchingPipeline
from featmatch.types.keypoint import descriptors_from_array, keypoints_from_cv2
from featmatch.utils.logger import setup_logger


def detect(image_path: str, orb):
    """Detect ORB keypoints and descriptors in a grayscale image."""
    image = cv2.imread(image_path, cv2.IMREAD_GRAYSCALE)
    if image is None:
        raise ValueError(f"Failed to load image from {image_path}")
    keypoints, descriptors = orb.detectAndCompute(image, None)
    return keypoints_from_cv2(keypoints), descriptors_from_array(descriptors)


def main():
    """Run the two-stage matching pipeline on an image pair."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("image_0")
    parser.add_argument("image_1")
    parser.add_argument("--config", help="YAML file overriding the default config")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--features", type=int, default=2000)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    logger = setup_logger('featmatch', logging.DEBUG if args.debug else logging.INFO)
    config = load_config(args.config) if args.config else None

    orb = cv2.ORB_create(nfeatures=args.features)
    keypoints_0, descriptors_0 = detect(args.image_0, orb)
    keypoints_1, descriptors_1 = detect(args.image_1, orb)
    logger.info(f"Detected {len(keypoints_0)} and {len(keypoints_1)} features")

    pipeline = MatchingPipeline(config=config, seed=args.seed)
    inliers = pipeline.match_and_verify(keypoints_0, descriptors_0, keypoints_1, descriptors_1)

    report = pipeline.last_report
    logger.info(f"{report.candidates} candidates, {len(inliers)} inliers")
    for name, duration in report.timings_ms.items():
        logger.info(f"{name}: {duration:.1f} ms")


if __name__ == "__main__":
    main()
