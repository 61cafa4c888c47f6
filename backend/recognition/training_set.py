import glob
import logging
import os
import re

import cv2
import numpy as np
from PIL import Image

from .exceptions import TrainingDataError, TrainingSetError
from .types import UNKNOWN_SUBJECT, TrainingImage

logger = logging.getLogger(__name__)

_TRAILING_DIGITS = re.compile(r'(\d+)$')


def prepare_face(pixels, image_size=None):
    """
    Bring a face image into the layout the eigenspace works on:
    - Convert to grayscale
    - Resize to standard dimensions (only when image_size is given)

    Args:
        pixels (numpy.ndarray): Grayscale, BGR or BGRA image
        image_size (tuple): Optional (width, height) to resize to

    Returns:
        numpy.ndarray: 2D grayscale image
    """
    pixels = np.asarray(pixels)

    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    elif pixels.ndim == 3 and pixels.shape[2] == 3:
        pixels = cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)
    elif pixels.ndim == 3 and pixels.shape[2] == 4:
        pixels = cv2.cvtColor(pixels, cv2.COLOR_BGRA2GRAY)
    elif pixels.ndim != 2:
        raise ValueError(f"Unsupported face image shape: {pixels.shape}")

    if image_size is not None:
        pixels = cv2.resize(pixels, tuple(image_size))

    return pixels


def read_face_image(image_path, image_size=None):
    """
    Read a face image from disk as grayscale

    Args:
        image_path (str): Path to the image file
        image_size (tuple): Optional (width, height) to resize to

    Returns:
        numpy.ndarray: 2D grayscale image

    Raises:
        OSError: If neither OpenCV nor Pillow can read the file
    """
    img = cv2.imread(image_path, cv2.IMREAD_GRAYSCALE)

    if img is None:
        # Try with PIL if OpenCV fails
        with Image.open(image_path) as pil_img:
            img = np.array(pil_img.convert('L'))

    return prepare_face(img, image_size)


def parse_subject_id(value, where='', allow_unknown=False):
    try:
        subject_id = int(value)
    except ValueError:
        raise TrainingSetError(f"Invalid subject id {value!r}{where}") from None
    if subject_id == UNKNOWN_SUBJECT and not allow_unknown:
        raise TrainingSetError(
            f"Subject id {UNKNOWN_SUBJECT} is reserved for unknown faces{where}"
        )
    return subject_id


def read_manifest(manifest_path, allow_unknown=False):
    """
    Read a face manifest. Each line contains: subjectID faceImage_Path

    Blank lines and lines starting with '#' are ignored; relative image paths
    are resolved against the manifest's directory. Subject id 0 (unknown face)
    is only accepted with allow_unknown, for labeling impostors in test manifests.

    Returns:
        list: (subject_id, image_path) tuples in file order
    """
    if not os.path.isfile(manifest_path):
        raise TrainingDataError(f"Face manifest not found: {manifest_path}")

    base_dir = os.path.dirname(os.path.abspath(manifest_path))
    entries = []

    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            lines = f.readlines()
    except UnicodeDecodeError as e:
        raise TrainingSetError(f"Face manifest {manifest_path} is not valid UTF-8: {e}") from e
    except OSError as e:
        raise TrainingDataError(f"Cannot read face manifest {manifest_path}: {e}") from e

    for line_no, line in enumerate(lines, start=1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue

        where = f" at {manifest_path}:{line_no}"
        parts = line.split(None, 1)
        if len(parts) != 2:
            raise TrainingSetError(f"Expected 'subjectID imagePath'{where}")

        subject_id = parse_subject_id(parts[0], where, allow_unknown)
        image_path = parts[1].strip()
        if not os.path.isabs(image_path):
            image_path = os.path.join(base_dir, image_path)

        entries.append((subject_id, image_path))

    return entries


def load_manifest_images(manifest_path, image_size=None):
    """
    Load training faces listed in a manifest file.
    Images that cannot be read are logged and skipped.
    """
    images = []

    for subject_id, image_path in read_manifest(manifest_path):
        try:
            pixels = read_face_image(image_path, image_size)
        except OSError as e:
            logger.warning("Error processing image %s: %s", image_path, e)
            continue
        images.append(TrainingImage(subject_id, image_path, pixels))

    logger.info("Loaded %d training faces from %s", len(images), manifest_path)
    return images


def subject_id_from_directory(name):
    """Subject id of a database directory: 's12' and '12' both map to 12"""
    match = _TRAILING_DIGITS.search(name)
    if not match:
        return None
    subject_id = int(match.group(1))
    if subject_id == UNKNOWN_SUBJECT:
        return None
    return subject_id


def load_database_images(database_path, image_extension='pgm', image_size=None):
    """
    Load all faces from a subjects database: one directory per person, the
    directory name carrying the person's id, holding that person's face images.
    """
    if not os.path.isdir(database_path):
        raise TrainingDataError(f"Database directory not found: {database_path}")

    extension = image_extension.lstrip('.')
    images = []

    subject_dirs = sorted(
        entry for entry in glob.glob(os.path.join(database_path, '*'))
        if os.path.isdir(entry)
    )

    for subject_dir in subject_dirs:
        subject_name = os.path.basename(subject_dir)
        subject_id = subject_id_from_directory(subject_name)

        if subject_id is None:
            logger.warning("Skipping %s: directory name carries no subject id", subject_dir)
            continue

        image_files = sorted(glob.glob(os.path.join(subject_dir, f'*.{extension}')))

        if not image_files:
            logger.warning("No images found for %s", subject_name)
            continue

        for image_path in image_files:
            try:
                pixels = read_face_image(image_path, image_size)
            except OSError as e:
                logger.warning("Error processing image %s: %s", image_path, e)
                continue
            images.append(TrainingImage(subject_id, image_path, pixels))

    logger.info(
        "Loaded %d training faces from %d subject directories in %s",
        len(images), len(subject_dirs), database_path,
    )
    return images
