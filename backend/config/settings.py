"""
Django settings for the eigenfaces recognition project.
"""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'eigenfaces-insecure-development-key')

DEBUG = os.environ.get('DJANGO_DEBUG', '0') == '1'

ALLOWED_HOSTS = []

INSTALLED_APPS = [
    'recognition',
]

# Recognition does not store anything in a database
DATABASES = {}

USE_TZ = True

# Recognition
EIGENFACES_THRESHOLD = float(os.environ.get('EIGENFACES_THRESHOLD', 0.5))
EIGENFACES_DISTANCE = os.environ.get('EIGENFACES_DISTANCE', 'mahalanobis')
EIGENFACES_IMAGE_EXTENSION = os.environ.get('EIGENFACES_IMAGE_EXTENSION', 'pgm')
EIGENFACES_TRAINING_FILE = os.environ.get(
    'EIGENFACES_TRAINING_FILE', str(BASE_DIR / 'trainingData.xml')
)
EIGENFACES_MAX_EIGENFACES = None
EIGENFACES_IMAGE_SIZE = None
EIGENFACES_OUTPUT_DIR = os.environ.get('EIGENFACES_OUTPUT_DIR', str(BASE_DIR / 'output'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'recognition': {
            'handlers': ['console'],
            'level': os.environ.get('EIGENFACES_LOG_LEVEL', 'INFO'),
        },
    },
}
