"""
Reading and writing trained eigenspaces.

Models are stored with OpenCV's FileStorage; the serialization format
(XML, YAML or JSON) follows the file extension.
"""
import logging
import os

import cv2
import numpy as np

from .exceptions import TrainingDataError
from .types import EigenModel

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = ('.xml', '.yml', '.yaml', '.json')

_MATRIX_NODES = ('subject_ids', 'eigenvalues', 'projections', 'mean_face', 'eigenfaces')


def _check_extension(file_name):
    extension = os.path.splitext(file_name)[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise TrainingDataError(
            f"Unsupported training data format {extension or '(none)'!r} for {file_name}; "
            f"use one of {', '.join(SUPPORTED_EXTENSIONS)}"
        )


def save_model(model, file_name):
    """
    Save a trained eigenspace to file_name

    Args:
        model (EigenModel): Model to save
        file_name (str): Target .xml/.yml/.yaml/.json file
    """
    _check_extension(file_name)
    height, width = model.image_shape

    try:
        fs = cv2.FileStorage(file_name, cv2.FILE_STORAGE_WRITE)
    except (cv2.error, SystemError) as e:
        raise TrainingDataError(f"Cannot open {file_name} for writing: {e}") from e

    if not fs.isOpened():
        raise TrainingDataError(f"Cannot open {file_name} for writing")

    try:
        fs.write('image_height', int(height))
        fs.write('image_width', int(width))
        fs.write('eigen_count', model.eigen_count)
        fs.write('train_face_count', model.train_face_count)
        fs.write('subject_ids', np.asarray(model.subject_ids, dtype=np.int32).reshape(-1, 1))
        fs.write('eigenvalues', np.asarray(model.eigenvalues, dtype=np.float64).reshape(-1, 1))
        fs.write('projections', np.asarray(model.projections, dtype=np.float32))
        fs.write('mean_face', np.asarray(model.mean_face, dtype=np.float32).reshape(1, -1))
        fs.write('eigenfaces', np.asarray(model.eigenfaces, dtype=np.float32))
    except (cv2.error, SystemError) as e:
        raise TrainingDataError(f"Error writing training data to {file_name}: {e}") from e
    finally:
        fs.release()

    logger.info(
        "Saved %d eigenfaces and %d projected training faces to %s",
        model.eigen_count, model.train_face_count, file_name,
    )


def _read_int(fs, name, file_name):
    node = fs.getNode(name)
    if node.empty():
        raise TrainingDataError(f"Missing '{name}' in {file_name}")
    return int(node.real())


def _read_matrix(fs, name, file_name):
    node = fs.getNode(name)
    matrix = None if node.empty() else node.mat()
    if matrix is None:
        raise TrainingDataError(f"Missing '{name}' in {file_name}")
    return matrix


def load_model(file_name):
    """
    Load a trained eigenspace from file_name

    Returns:
        EigenModel: The loaded, validated model

    Raises:
        TrainingDataError: If the file is missing, unreadable or inconsistent
    """
    _check_extension(file_name)

    if not os.path.isfile(file_name):
        raise TrainingDataError(f"Training data file not found: {file_name}")

    try:
        fs = cv2.FileStorage(file_name, cv2.FILE_STORAGE_READ)
    except (cv2.error, SystemError) as e:
        raise TrainingDataError(f"Corrupt training data file {file_name}: {e}") from e

    if not fs.isOpened():
        raise TrainingDataError(f"Cannot open training data file {file_name}")

    try:
        height = _read_int(fs, 'image_height', file_name)
        width = _read_int(fs, 'image_width', file_name)
        eigen_count = _read_int(fs, 'eigen_count', file_name)
        train_face_count = _read_int(fs, 'train_face_count', file_name)
        matrices = {name: _read_matrix(fs, name, file_name) for name in _MATRIX_NODES}
    finally:
        fs.release()

    model = EigenModel(
        image_shape=(height, width),
        mean_face=matrices['mean_face'].astype(np.float32).reshape(1, -1),
        eigenfaces=matrices['eigenfaces'].astype(np.float32),
        eigenvalues=matrices['eigenvalues'].astype(np.float64).ravel(),
        projections=matrices['projections'].astype(np.float32),
        subject_ids=matrices['subject_ids'].astype(np.int64).ravel(),
    )
    model.validate()

    if model.eigen_count != eigen_count or model.train_face_count != train_face_count:
        raise TrainingDataError(
            f"Header of {file_name} declares {eigen_count} eigenfaces and "
            f"{train_face_count} training faces, data holds "
            f"{model.eigen_count} and {model.train_face_count}"
        )

    logger.info(
        "Loaded %d eigenfaces and %d projected training faces from %s",
        model.eigen_count, model.train_face_count, file_name,
    )
    return model
