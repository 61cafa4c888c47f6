"""
Default configuration for the recognition app.

Values come from Django settings when a settings module is configured and
fall back to the defaults below otherwise, so the recognizer can be embedded
in a pipeline that does not run Django.
"""
from django.conf import settings

DEFAULTS = {
    'EIGENFACES_THRESHOLD': 0.5,
    'EIGENFACES_DISTANCE': 'mahalanobis',
    'EIGENFACES_IMAGE_EXTENSION': 'pgm',
    'EIGENFACES_TRAINING_FILE': 'trainingData.xml',
    'EIGENFACES_MAX_EIGENFACES': None,
    'EIGENFACES_IMAGE_SIZE': None,
    'EIGENFACES_OUTPUT_DIR': '.',
}

AVERAGE_IMAGE_FILE = 'outAverageImage.pgm'
EIGENFACES_IMAGE_FILE = 'outEigenfacesImage.pgm'


def get_setting(name):
    if name not in DEFAULTS:
        raise KeyError(f"Unknown recognition setting: {name}")
    if settings.configured:
        return getattr(settings, name, DEFAULTS[name])
    return DEFAULTS[name]
