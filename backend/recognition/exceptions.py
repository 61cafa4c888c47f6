from enum import IntEnum


class StatusCode(IntEnum):
    OK = 0
    NO_IMAGES_FOUND = 1
    DIMENSION_MISMATCH = 2
    FILE_IO_ERROR = 3
    LIBRARY_ERROR = 4
    NOT_TRAINED = 5
    INVALID_TRAINING_SET = 6


class RecognitionError(Exception):
    """Base class for every failure raised by the recognition module"""

    code = StatusCode.LIBRARY_ERROR


class NoImagesError(RecognitionError):
    code = StatusCode.NO_IMAGES_FOUND


class DimensionMismatchError(RecognitionError):
    code = StatusCode.DIMENSION_MISMATCH

    def __init__(self, expected, actual, source=None):
        self.expected = tuple(expected)
        self.actual = tuple(actual)
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(
            f"Face image has dimensions {self.actual}, expected {self.expected}{where}"
        )


class TrainingDataError(RecognitionError):
    code = StatusCode.FILE_IO_ERROR


class LibraryError(RecognitionError):
    code = StatusCode.LIBRARY_ERROR


class NotTrainedError(RecognitionError):
    code = StatusCode.NOT_TRAINED

    def __init__(self, message="Eigenfaces model not trained"):
        super().__init__(message)


class TrainingSetError(RecognitionError):
    code = StatusCode.INVALID_TRAINING_SET
