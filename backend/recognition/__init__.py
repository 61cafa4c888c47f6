from .exceptions import (
    DimensionMismatchError,
    LibraryError,
    NoImagesError,
    NotTrainedError,
    RecognitionError,
    StatusCode,
    TrainingDataError,
    TrainingSetError,
)
from .recognizer import Recognition
from .types import (
    UNKNOWN_SUBJECT,
    DistanceType,
    EigenModel,
    PerformanceReport,
    RecognitionOutcome,
    RecognitionResult,
    TrainingImage,
    TrainingSource,
)
