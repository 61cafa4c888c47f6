from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple

import numpy as np

from .exceptions import TrainingDataError

UNKNOWN_SUBJECT = 0


class DistanceType(IntEnum):
    EUCLIDEAN = 0
    MAHALANOBIS = 1

    @classmethod
    def parse(cls, value):
        """
        Accept a DistanceType, its integer value or its name
        ("euclidean", "mahalanobis"; case-insensitive)
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown distance type: {value!r}") from None
        return cls(value)


class TrainingSource(IntEnum):
    FILE = 0
    DATABASE = 1

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown training source: {value!r}") from None
        return cls(value)


@dataclass
class TrainingImage:
    subject_id: int
    path: str
    pixels: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return self.pixels.shape[:2]


@dataclass(frozen=True)
class RecognitionResult:
    subject_id: int
    confidence: float

    @property
    def recognized(self) -> bool:
        return self.subject_id != UNKNOWN_SUBJECT


@dataclass
class EigenModel:
    """
    A trained eigenspace.

    Attributes:
        image_shape (tuple): (height, width) of every face the model accepts
        mean_face (numpy.ndarray): 1 x (height * width) average training face
        eigenfaces (numpy.ndarray): eigen_count x (height * width) basis, one row per eigenface
        eigenvalues (numpy.ndarray): eigen_count eigenvalues, same order as eigenfaces
        projections (numpy.ndarray): train_face_count x eigen_count training face coordinates
        subject_ids (numpy.ndarray): train_face_count subject identifiers, parallel to projections
    """
    image_shape: Tuple[int, int]
    mean_face: np.ndarray
    eigenfaces: np.ndarray
    eigenvalues: np.ndarray
    projections: np.ndarray
    subject_ids: np.ndarray

    @property
    def eigen_count(self) -> int:
        return int(self.eigenfaces.shape[0])

    @property
    def train_face_count(self) -> int:
        return int(self.projections.shape[0])

    def validate(self):
        """Raise TrainingDataError if the arrays do not describe one consistent eigenspace"""
        height, width = self.image_shape
        pixel_count = height * width

        if self.eigen_count < 1:
            raise TrainingDataError("Model holds no eigenfaces")
        if self.mean_face.size != pixel_count:
            raise TrainingDataError(
                f"Mean face has {self.mean_face.size} values, expected {pixel_count}"
            )
        if self.eigenfaces.shape[1] != pixel_count:
            raise TrainingDataError(
                f"Eigenfaces have {self.eigenfaces.shape[1]} values, expected {pixel_count}"
            )
        if self.eigenvalues.size != self.eigen_count:
            raise TrainingDataError(
                f"{self.eigenvalues.size} eigenvalues for {self.eigen_count} eigenfaces"
            )
        if self.projections.ndim != 2 or self.projections.shape[1] != self.eigen_count:
            raise TrainingDataError(
                f"Projections of shape {self.projections.shape} do not match "
                f"{self.eigen_count} eigenfaces"
            )
        if self.subject_ids.size != self.train_face_count:
            raise TrainingDataError(
                f"{self.subject_ids.size} subject ids for {self.train_face_count} projections"
            )


@dataclass(frozen=True)
class RecognitionOutcome:
    path: str
    expected_id: int
    recognized_id: int
    confidence: float

    @property
    def correct(self) -> bool:
        return self.recognized_id == self.expected_id


@dataclass
class PerformanceReport:
    outcomes: List[RecognitionOutcome] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def correct(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.correct)

    @property
    def accuracy(self) -> Optional[float]:
        if not self.outcomes:
            return None
        return self.correct / self.total
