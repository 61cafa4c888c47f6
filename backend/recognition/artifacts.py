import logging
import math
import os

import cv2
import numpy as np

from .conf import AVERAGE_IMAGE_FILE, EIGENFACES_IMAGE_FILE
from .exceptions import TrainingDataError

logger = logging.getLogger(__name__)


def to_uint8_image(vector, image_shape):
    """Reshape a face-space vector to an image and stretch it to the 0-255 range"""
    face = np.asarray(vector, dtype=np.float32).reshape(image_shape)
    return cv2.normalize(face, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)


def eigenfaces_mosaic(eigenfaces, image_shape):
    """Tile every eigenface, individually normalized, into a near-square grid"""
    height, width = image_shape
    count = len(eigenfaces)
    cols = int(math.ceil(math.sqrt(count)))
    rows = int(math.ceil(count / cols))

    mosaic = np.zeros((rows * height, cols * width), dtype=np.uint8)
    for i, eigenface in enumerate(eigenfaces):
        row, col = divmod(i, cols)
        mosaic[row * height:(row + 1) * height, col * width:(col + 1) * width] = \
            to_uint8_image(eigenface, image_shape)

    return mosaic


def _write_image(path, image):
    try:
        written = cv2.imwrite(path, image)
    except (cv2.error, SystemError) as e:
        raise TrainingDataError(f"Cannot write {path}: {e}") from e
    if not written:
        raise TrainingDataError(f"Cannot write {path}")


def save_eigenfaces(model, output_dir='.'):
    """
    Save the average face and the eigenfaces of a trained model as images

    Returns:
        tuple: (average_image_path, eigenfaces_image_path)
    """
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise TrainingDataError(f"Cannot create output directory {output_dir}: {e}") from e

    average_path = os.path.join(output_dir, AVERAGE_IMAGE_FILE)
    eigenfaces_path = os.path.join(output_dir, EIGENFACES_IMAGE_FILE)

    _write_image(average_path, to_uint8_image(model.mean_face, model.image_shape))
    _write_image(eigenfaces_path, eigenfaces_mosaic(model.eigenfaces, model.image_shape))

    logger.info("Saved average face to %s and %d eigenfaces to %s",
                average_path, model.eigen_count, eigenfaces_path)
    return average_path, eigenfaces_path
