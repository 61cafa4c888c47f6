"""
Recognition module - recognize persons provided by a face detection stage.

Training faces come either from a manifest file (one "subjectID imagePath"
pair per line) or from a subjects database: one directory per person, named
after the person's id, holding ~10 face pictures in different positions.
All faces are represented as the average face plus a combination of
eigenfaces; a face is recognized by finding the closest training face in
that eigenspace.
"""
import logging

import cv2
import numpy as np

from . import artifacts, storage
from .conf import get_setting
from .exceptions import (
    DimensionMismatchError,
    LibraryError,
    NoImagesError,
    NotTrainedError,
)
from .training_set import (
    load_database_images,
    load_manifest_images,
    prepare_face,
    read_face_image,
    read_manifest,
)
from .types import (
    UNKNOWN_SUBJECT,
    DistanceType,
    EigenModel,
    PerformanceReport,
    RecognitionOutcome,
    RecognitionResult,
    TrainingSource,
)

logger = logging.getLogger(__name__)

MIN_TRAINING_FACES = 2


class Recognition:
    def __init__(self, threshold=None, distance_type=None, image_extension=None,
                 training_file=None, max_eigenfaces=None, image_size=None,
                 output_dir=None):
        """
        Initialize the recognizer; see initialize() for the arguments.
        Arguments left as None take their value from the EIGENFACES_* settings.
        No model is available until train() or load_training_data() is called.
        """
        self.model = None
        self.threshold = None
        self.distance_type = None
        self.image_extension = None
        self.training_file = None
        self.max_eigenfaces = None
        self.image_size = None
        self.output_dir = None

        self.initialize(
            get_setting('EIGENFACES_THRESHOLD') if threshold is None else threshold,
            get_setting('EIGENFACES_DISTANCE') if distance_type is None else distance_type,
            image_extension or get_setting('EIGENFACES_IMAGE_EXTENSION'),
            training_file or get_setting('EIGENFACES_TRAINING_FILE'),
            max_eigenfaces=(
                get_setting('EIGENFACES_MAX_EIGENFACES') if max_eigenfaces is None else max_eigenfaces
            ),
            image_size=get_setting('EIGENFACES_IMAGE_SIZE') if image_size is None else image_size,
            output_dir=output_dir or get_setting('EIGENFACES_OUTPUT_DIR'),
        )

    def initialize(self, threshold=None, distance_type=None, image_extension=None,
                   training_file=None, max_eigenfaces=None, image_size=None,
                   output_dir=None):
        """
        Set recognition type and parameters. Arguments left as None keep
        their current value. Values are validated before any is applied.

        Args:
            threshold (float): Minimum confidence (0-1) for a person to be considered recognized
            distance_type (DistanceType): EUCLIDEAN or MAHALANOBIS (provides better results)
            image_extension (str): Face image file type in a subjects database (pgm, jpg, ...)
            training_file (str): Default file training data is saved to and loaded from
            max_eigenfaces (int): Maximum number of eigenfaces to retain
            image_size (tuple): (width, height) to resize every face to
            output_dir (str): Directory the average face and eigenfaces images are written to
        """
        if threshold is not None:
            threshold = float(threshold)
            if not 0.0 <= threshold <= 1.0:
                raise ValueError(f"Recognition threshold must be within [0, 1], got {threshold}")

        if distance_type is not None:
            distance_type = DistanceType.parse(distance_type)

        if max_eigenfaces is not None:
            max_eigenfaces = int(max_eigenfaces)
            if max_eigenfaces < 1:
                raise ValueError(f"max_eigenfaces must be positive, got {max_eigenfaces}")

        if image_size is not None:
            image_size = tuple(int(v) for v in image_size)

        if threshold is not None:
            self.threshold = threshold
        if distance_type is not None:
            self.distance_type = distance_type
        if image_extension:
            self.image_extension = image_extension.lstrip('.')
        if training_file:
            self.training_file = training_file
        if max_eigenfaces is not None:
            self.max_eigenfaces = max_eigenfaces
        if image_size is not None:
            self.image_size = image_size
        if output_dir:
            self.output_dir = output_dir

    def train(self, source, path, save_eigenfaces=False):
        """
        Perform the training phase - learn faces

        Args:
            source (TrainingSource): FILE - manifest with "subjectID imagePath" lines
                                     DATABASE - directory with one folder per subject
            path (str): Path to the manifest file or to the database directory
            save_eigenfaces (bool): If true, save eigenfaces and average image to image files

        Returns:
            EigenModel: The trained model, which replaces any previous one
        """
        source = TrainingSource.parse(source)

        if source == TrainingSource.FILE:
            faces = load_manifest_images(path, self.image_size)
        else:
            faces = load_database_images(path, self.image_extension, self.image_size)

        if len(faces) < MIN_TRAINING_FACES:
            raise NoImagesError(
                f"Need at least {MIN_TRAINING_FACES} face images to train the model, "
                f"found {len(faces)} in {path}"
            )

        image_shape = faces[0].shape
        for face in faces:
            if face.shape != image_shape:
                raise DimensionMismatchError(image_shape, face.shape, face.path)

        training_data = np.array([face.pixels.ravel() for face in faces], dtype=np.float32)
        subject_ids = np.array([face.subject_id for face in faces], dtype=np.int64)

        mean_face, eigenfaces, eigenvalues = self._perform_pca(training_data)
        projections = self._project(training_data, mean_face, eigenfaces)

        model = EigenModel(
            image_shape=image_shape,
            mean_face=mean_face,
            eigenfaces=eigenfaces,
            eigenvalues=eigenvalues,
            projections=projections,
            subject_ids=subject_ids,
        )
        model.validate()

        # a failed artifact write leaves the previous model in place
        if save_eigenfaces:
            artifacts.save_eigenfaces(model, self.output_dir)

        self.model = model

        logger.info(
            "Trained eigenspace with %d eigenfaces from %d faces of %d subjects",
            model.eigen_count, model.train_face_count, len(np.unique(subject_ids)),
        )

        return model

    def _perform_pca(self, training_data):
        """
        Apply PCA for dimensionality reduction. All training faces can be
        represented as a combination of the average face and the eigenvectors
        """
        eigen_count = training_data.shape[0] - 1
        if self.max_eigenfaces is not None:
            eigen_count = min(eigen_count, self.max_eigenfaces)

        try:
            mean_face, eigenfaces, eigenvalues = cv2.PCACompute2(
                training_data, np.empty((0)), maxComponents=eigen_count
            )
        except cv2.error as e:
            raise LibraryError(f"PCA computation failed: {e}") from e

        logger.debug("Using top %d eigenfaces out of %d possible",
                     eigenfaces.shape[0], training_data.shape[0] - 1)

        return (
            mean_face.astype(np.float32).reshape(1, -1),
            eigenfaces.astype(np.float32),
            eigenvalues.astype(np.float64).ravel(),
        )

    @staticmethod
    def _project(faces, mean_face, eigenfaces):
        """Project row-stacked face vectors onto the eigenspace"""
        try:
            return cv2.PCAProject(faces, mean_face, eigenfaces)
        except cv2.error as e:
            raise LibraryError(f"Eigenspace projection failed: {e}") from e

    def save_training_data(self, file_name=None):
        """
        Save data from the training phase into a file;
        if file_name is None the default training data file is used
        """
        if self.model is None:
            raise NotTrainedError()
        file_name = file_name or self.training_file
        storage.save_model(self.model, file_name)
        return file_name

    def load_training_data(self, file_name=None):
        """
        Load training data from a file;
        if file_name is None the default training data file is used
        """
        self.model = storage.load_model(file_name or self.training_file)
        return self.model

    def recognize_faces(self, faces, results_per_face=1):
        """
        Recognize faces against the trained model

        Args:
            faces (list): Face images (numpy arrays) with the same dimensions as the training images
            results_per_face (int): Number of best results for each face; if the best
                result for a face is under the threshold only one result, with
                subject id 0, is returned for it

        Returns:
            list: One list of RecognitionResult per face, best match first
        """
        if self.model is None:
            raise NotTrainedError()
        if results_per_face < 1:
            raise ValueError(f"results_per_face must be positive, got {results_per_face}")

        results = []
        for face in faces:
            pixels = prepare_face(face, self.image_size)
            if pixels.shape != tuple(self.model.image_shape):
                raise DimensionMismatchError(self.model.image_shape, pixels.shape)

            face_vector = pixels.reshape(1, -1).astype(np.float32)
            projected = self._project(face_vector, self.model.mean_face, self.model.eigenfaces)
            results.append(self._find_closest_faces(projected[0], results_per_face))

        return results

    def _distances(self, projected_face):
        """Squared distances from a projected face to every projected training face"""
        diff = self.model.projections.astype(np.float64) - projected_face.astype(np.float64)
        squared = diff * diff

        if self.distance_type == DistanceType.MAHALANOBIS:
            eigenvalues = np.maximum(self.model.eigenvalues, np.finfo(np.float64).eps)
            squared = squared / eigenvalues

        return squared.sum(axis=1)

    def _confidence(self, distance):
        scale = self.model.train_face_count * self.model.eigen_count
        confidence = 1.0 - np.sqrt(distance / scale) / 255.0
        return float(min(max(confidence, 0.0), 1.0))

    def _find_closest_faces(self, projected_face, results_per_face):
        """
        Find the closest training subjects for a projected face, at most one
        result per subject, ordered by decreasing confidence
        """
        distances = self._distances(projected_face)
        order = np.argsort(distances, kind='stable')

        results = []
        seen = set()
        for index in order:
            subject_id = int(self.model.subject_ids[index])
            if subject_id in seen:
                continue
            seen.add(subject_id)
            results.append(RecognitionResult(subject_id, self._confidence(distances[index])))
            if len(results) == results_per_face:
                break

        if results[0].confidence < self.threshold:
            return [RecognitionResult(UNKNOWN_SUBJECT, results[0].confidence)]

        return results

    def test_recognition_performance(self, manifest_path):
        """
        Test recognition performance against a manifest of labeled faces
        ("subjectID imagePath" per line; subject id 0 labels a face that should
        be rejected as unknown). Faces must have the same dimensions as the
        training images; a model must be trained or loaded first.

        Returns:
            PerformanceReport: Per-face outcomes and accuracy
        """
        if self.model is None:
            raise NotTrainedError()

        report = PerformanceReport()

        for expected_id, image_path in read_manifest(manifest_path, allow_unknown=True):
            try:
                face = read_face_image(image_path)
                best = self.recognize_faces([face], 1)[0][0]
            except (OSError, DimensionMismatchError) as e:
                logger.warning("Skipping %s: %s", image_path, e)
                report.skipped.append(image_path)
                continue

            outcome = RecognitionOutcome(image_path, expected_id, best.subject_id, best.confidence)
            report.outcomes.append(outcome)
            logger.info(
                "%s: expected %d, recognized %d (confidence %.4f) %s",
                image_path, expected_id, best.subject_id, best.confidence,
                'correct' if outcome.correct else 'wrong',
            )

        if report.total:
            logger.info("Recognition accuracy: %d/%d = %.2f%%",
                        report.correct, report.total, report.accuracy * 100)
        else:
            logger.warning("No faces were tested from %s", manifest_path)

        return report
