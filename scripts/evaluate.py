import argparse
import logging
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    confusion_matrix,
    classification_report
)
from tqdm import tqdm

from wastesort.data.categories import CATEGORY_NAMES
from wastesort.data.loader import DatasetLoader
from wastesort.pipeline.inference import ClassificationPipeline

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description='Evaluate the heuristic waste classifier against a labelled image folder',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument(
        '--dataset', '-d',
        type=str,
        required=True,
        help='Path to dataset folder containing one sub-folder per waste category'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Seed for the confidence jitter'
    )
    parser.add_argument(
        '--max-dimension',
        type=int,
        default=1024,
        help='Downscale images so the longest side is at most this many pixels'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging output'
    )

    return parser.parse_args(argv)

def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True
    )

def print_confusion_matrix(cm: np.ndarray, class_names: list, title: str) -> None:
    print(f"\n{title}")
    print("=" * 60)

    col_width = max(len(name) for name in class_names) + 2
    col_width = max(col_width, 8)

    header = "Actual\\Pred".ljust(col_width)
    for name in class_names:
        header += name[:col_width-1].center(col_width)
    print(header)
    print("-" * len(header))

    for i, row in enumerate(cm):
        row_str = class_names[i][:col_width-1].ljust(col_width)
        for val in row:
            row_str += str(val).center(col_width)
        print(row_str)

def evaluate_predictions(y_true: list, y_pred: list) -> dict:
    class_names = [name for name in CATEGORY_NAMES if name in set(y_true) | set(y_pred)]

    return {
        'accuracy': accuracy_score(y_true, y_pred),
        'confusion_matrix': confusion_matrix(y_true, y_pred, labels=class_names),
        'classification_report': classification_report(
            y_true, y_pred,
            labels=class_names,
            zero_division=0
        ),
        'class_names': class_names
    }

def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)

    if not os.path.isdir(args.dataset):
        logger.error(f"Dataset path does not exist: {args.dataset}")
        return 1

    print("=" * 60)
    print("Heuristic Waste Classifier - Evaluation Script")
    print("=" * 60)
    print(f"Dataset: {args.dataset}")
    print(f"Max dimension: {args.max_dimension}")
    print("=" * 60)

    try:
        samples = DatasetLoader(args.dataset).list_samples()
        if len(samples) == 0:
            logger.error("No images found in dataset")
            return 1

        pipeline = ClassificationPipeline(
            config={'max_dimension': args.max_dimension},
            random_state=args.seed
        )
        print(f"Rule order: {', '.join(pipeline.image_classifier.get_params()['rules'])}")
        print(f"Fallback: {pipeline.fallback_handler.get_params()}")

        y_true, y_pred = [], []
        fallbacks = 0
        for path, category in tqdm(samples, desc="Classifying images"):
            result = pipeline.classify_image_safe(path)
            if pipeline.is_fallback(result):
                fallbacks += 1
            y_true.append(category)
            y_pred.append(result.category)

        metrics = evaluate_predictions(y_true, y_pred)

        print(f"\nImages evaluated: {len(samples)} ({fallbacks} could not be decoded)")
        print(f"Accuracy: {metrics['accuracy']:.4f}")

        print("\nClassification Report:")
        print(metrics['classification_report'])

        print_confusion_matrix(
            metrics['confusion_matrix'],
            metrics['class_names'],
            "Confusion Matrix"
        )

        print("\n" + "=" * 60)
        print("EVALUATION COMPLETE")
        print("=" * 60)

        return 0

    except KeyboardInterrupt:
        logger.info("\nEvaluation interrupted by user")
        return 1

if __name__ == '__main__':
    sys.exit(main())
