#!/usr/bin/env python
"""Classify a single waste image or text description.

Usage:
    python scripts/classify.py --image photos/bottle.jpg
    python scripts/classify.py --image https://example.com/can.png --json
    python scripts/classify.py --text "an old phone charger"
"""

import argparse
import json
import logging
import sys
import os

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from wastesort.classifiers.result import NoMatch, describe
from wastesort.data.loader import InvalidInputError
from wastesort.pipeline.inference import ClassificationPipeline, ConfigLoadError

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_INVALID_INPUT = 1
EXIT_NO_MATCH = 2


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Heuristic waste classification from an image or a text description.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        '--image', '-i',
        type=str,
        help='Image file path, file:// URI, http(s) URL or data URI'
    )
    source.add_argument(
        '--text', '-t',
        type=str,
        help='Free-text description of the waste item'
    )

    parser.add_argument(
        '--seed',
        type=int,
        default=None,
        help='Seed for the confidence jitter (omit for random)'
    )
    parser.add_argument(
        '--max-dimension',
        type=int,
        default=None,
        help='Downscale images so the longest side is at most this many pixels'
    )
    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to a joblib configuration file'
    )
    parser.add_argument(
        '--json',
        action='store_true',
        help='Print the result as JSON'
    )
    parser.add_argument(
        '--features',
        action='store_true',
        help='Also print the extracted image features'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging output'
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True
    )


def print_result(result, as_json: bool) -> None:
    if as_json:
        print(result.to_json())
        return

    print(describe(result))
    print(f"  Confidence:   {result.confidence:.2f}")
    print(f"  Recyclable:   {'yes' if result.recyclable else 'no'}")
    print(f"  Instructions: {result.instructions}")


def run_text(pipeline: ClassificationPipeline, text: str, as_json: bool) -> int:
    outcome = pipeline.classify_text(text)

    if isinstance(outcome, NoMatch):
        if as_json:
            print(json.dumps({'category': None, 'message': outcome.message}))
        else:
            print(outcome.message)
        return EXIT_NO_MATCH

    print_result(outcome, as_json)
    return EXIT_OK


def run_image(pipeline: ClassificationPipeline, image: str, as_json: bool,
              show_features: bool) -> int:
    try:
        features = pipeline.extract_features(image)
    except InvalidInputError as e:
        print_result(pipeline.fallback_handler.handle(e), as_json)
        return EXIT_INVALID_INPUT

    if show_features and not as_json:
        print("Features:")
        for name, value in features.to_dict().items():
            print(f"  {name:<13} {value}")

    result = pipeline.classify_features(features)
    if as_json and show_features:
        print(json.dumps({**result.to_dict(), 'features': features.to_dict()}))
    else:
        print_result(result, as_json)
    return EXIT_OK


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    config = {}
    if args.max_dimension is not None:
        config['max_dimension'] = args.max_dimension

    try:
        pipeline = ClassificationPipeline(
            config=config,
            config_path=args.config,
            random_state=args.seed
        )
    except (ConfigLoadError, ValueError) as e:
        logger.error(str(e))
        return EXIT_INVALID_INPUT

    if args.text is not None:
        return run_text(pipeline, args.text, args.json)
    return run_image(pipeline, args.image, args.json, args.features)


if __name__ == '__main__':
    sys.exit(main())
