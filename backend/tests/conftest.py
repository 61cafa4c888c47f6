import os

import cv2
import django
import numpy as np
import pytest
from django.conf import settings

if not settings.configured:
    settings.configure(
        INSTALLED_APPS=['recognition'],
        DATABASES={},
        USE_TZ=True,
    )
    django.setup()

from recognition.recognizer import Recognition  # noqa: E402
from recognition.types import TrainingSource  # noqa: E402

FACE_SIZE = 24
SUBJECTS = (1, 2, 3)
TRAINING_VARIANTS = 5


def make_face(subject, variant, size=FACE_SIZE):
    """
    Synthetic face: a per-subject pattern, brightened by the variant number,
    plus deterministic noise so that every training image adds a dimension
    """
    r, c = np.mgrid[0:size, 0:size]
    if subject == 1:
        base = (r + c) * 2
    elif subject == 2:
        base = (np.abs(r - size // 2) + np.abs(c - size // 2)) * 4
    else:
        base = ((r // 4) % 2) * 120 + c

    rng = np.random.default_rng(subject * 100 + variant)
    noise = rng.normal(0, 8, size=(size, size))
    img = base + variant * 10 + 40 + noise
    return np.clip(img, 0, 255).astype(np.uint8)


@pytest.fixture
def face_database(tmp_path):
    """Subjects database: s1, s2, s3 directories with TRAINING_VARIANTS faces each"""
    database = tmp_path / 'database'
    for subject in SUBJECTS:
        subject_dir = database / f's{subject}'
        subject_dir.mkdir(parents=True)
        for variant in range(TRAINING_VARIANTS):
            cv2.imwrite(str(subject_dir / f'{variant + 1}.pgm'), make_face(subject, variant))
    return database


@pytest.fixture
def training_manifest(face_database):
    manifest = face_database / 'train.txt'
    lines = ['# subjectID imagePath']
    for subject in SUBJECTS:
        for variant in range(TRAINING_VARIANTS):
            lines.append(f'{subject} s{subject}/{variant + 1}.pgm')
    manifest.write_text('\n'.join(lines) + '\n')
    return manifest


@pytest.fixture
def test_manifest(tmp_path):
    """Held-out faces, one variant past the training ones, for every subject"""
    test_dir = tmp_path / 'test_faces'
    test_dir.mkdir()
    lines = []
    for subject in SUBJECTS:
        path = test_dir / f'subject{subject}.png'
        cv2.imwrite(str(path), make_face(subject, TRAINING_VARIANTS))
        lines.append(f'{subject} {path}')
    manifest = tmp_path / 'test.txt'
    manifest.write_text('\n'.join(lines) + '\n')
    return manifest


@pytest.fixture
def recognizer(tmp_path):
    return Recognition(
        threshold=0.5,
        distance_type='euclidean',
        image_extension='pgm',
        training_file=str(tmp_path / 'trainingData.xml'),
        output_dir=str(tmp_path / 'output'),
    )


@pytest.fixture
def trained_recognizer(recognizer, face_database):
    recognizer.train(TrainingSource.DATABASE, str(face_database))
    return recognizer


@pytest.fixture
def training_file(trained_recognizer):
    path = trained_recognizer.save_training_data()
    assert os.path.isfile(path)
    return path
