import argparse
from contextlib import contextmanager

from django.core.management.base import CommandError

from recognition.exceptions import RecognitionError
from recognition.recognizer import Recognition
from recognition.types import DistanceType


def threshold_fraction(value):
    threshold = float(value)
    if not 0.0 <= threshold <= 1.0:
        raise argparse.ArgumentTypeError(
            f"threshold is a confidence between 0 and 1, not a percent: {value}"
        )
    return threshold


def add_recognition_arguments(parser):
    parser.add_argument(
        '--training-file',
        type=str,
        help='Training data file (default: EIGENFACES_TRAINING_FILE)',
    )
    parser.add_argument(
        '--threshold',
        type=threshold_fraction,
        help='Minimum confidence (0-1) for a face to be recognized (default: EIGENFACES_THRESHOLD)',
    )
    parser.add_argument(
        '--distance',
        choices=[distance.name.lower() for distance in DistanceType],
        help='Distance used to find the closest training face (default: EIGENFACES_DISTANCE)',
    )


def build_recognizer(**kwargs):
    """Recognition configured from command options; invalid values become CommandError"""
    try:
        return Recognition(**kwargs)
    except ValueError as e:
        raise CommandError(str(e)) from e


@contextmanager
def command_errors():
    """Report recognition failures as CommandError, exiting with the failure's status code"""
    try:
        yield
    except RecognitionError as e:
        raise CommandError(str(e), returncode=int(e.code)) from e
