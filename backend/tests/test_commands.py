from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

import eigenfaces
from recognition.conf import AVERAGE_IMAGE_FILE
from recognition.exceptions import StatusCode
from recognition.storage import load_model

from conftest import SUBJECTS, TRAINING_VARIANTS


@pytest.fixture
def model_file(tmp_path, face_database):
    path = str(tmp_path / 'model.xml')
    call_command(
        'train_faces', str(face_database),
        source='database', output=path, stdout=StringIO(),
    )
    return path


def test_train_faces_from_manifest(tmp_path, training_manifest):
    path = str(tmp_path / 'model.yml')
    out = StringIO()

    call_command(
        'train_faces', str(training_manifest),
        output=path, max_eigenfaces=5, save_eigenfaces=True,
        output_dir=str(tmp_path / 'images'), memory_report=True, stdout=out,
    )

    output = out.getvalue()
    assert 'Model trained successfully with 5 eigenfaces' in output
    assert 'Memory usage after training' in output
    assert load_model(path).train_face_count == len(SUBJECTS) * TRAINING_VARIANTS
    assert (tmp_path / 'images' / AVERAGE_IMAGE_FILE).is_file()


def test_train_faces_reports_status_code(tmp_path):
    (tmp_path / 'empty').mkdir()

    with pytest.raises(CommandError) as excinfo:
        call_command(
            'train_faces', str(tmp_path / 'empty'),
            source='database', output=str(tmp_path / 'model.xml'), stdout=StringIO(),
        )

    assert excinfo.value.returncode == StatusCode.NO_IMAGES_FOUND


def test_recognize_faces(model_file, face_database):
    out = StringIO()
    image = str(face_database / 's2' / '3.pgm')

    call_command(
        'recognize_faces', image,
        training_file=model_file, results=2, distance='euclidean', stdout=out,
    )

    lines = out.getvalue().splitlines()
    assert lines[0] == image
    assert lines[1].startswith('  1. subject 2 ')
    assert lines[2].startswith('  2. subject ')


def test_recognize_faces_missing_model(tmp_path, face_database):
    with pytest.raises(CommandError) as excinfo:
        call_command(
            'recognize_faces', str(face_database / 's1' / '1.pgm'),
            training_file=str(tmp_path / 'missing.xml'), stdout=StringIO(),
        )

    assert excinfo.value.returncode == StatusCode.FILE_IO_ERROR


def test_recognize_faces_unreadable_image(model_file, tmp_path):
    with pytest.raises(CommandError, match='Error reading image'):
        call_command(
            'recognize_faces', str(tmp_path / 'nope.pgm'),
            training_file=model_file, stdout=StringIO(),
        )


def test_test_recognition(model_file, test_manifest):
    out = StringIO()

    call_command(
        'test_recognition', str(test_manifest),
        training_file=model_file, distance='euclidean', stdout=out,
    )

    assert f'Recognition accuracy: {len(SUBJECTS)}/{len(SUBJECTS)} = 100.00%' in out.getvalue()


def test_cli_evaluate(model_file, test_manifest, capsys):
    exit_code = eigenfaces.main([
        'evaluate', str(test_manifest), '--training-file', model_file, '--threshold', '0.5',
    ])

    assert exit_code == 0
    assert 'Recognition accuracy' in capsys.readouterr().out


def test_cli_reports_errors(tmp_path, test_manifest, capsys):
    exit_code = eigenfaces.main([
        'evaluate', str(test_manifest), '--training-file', str(tmp_path / 'missing.xml'),
    ])

    assert exit_code == StatusCode.FILE_IO_ERROR
    assert 'Error:' in capsys.readouterr().out


def test_cli_without_command(capsys):
    assert eigenfaces.main([]) == 1


def test_recognize_faces_corrupt_model(tmp_path, face_database):
    broken = tmp_path / 'broken.xml'
    broken.write_text('<?xml version="1.0"?>\n<opencv_storage><eigen_count>3</eig')

    with pytest.raises(CommandError) as excinfo:
        call_command(
            'recognize_faces', str(face_database / 's1' / '1.pgm'),
            training_file=str(broken), stdout=StringIO(),
        )

    assert excinfo.value.returncode == StatusCode.FILE_IO_ERROR


def test_threshold_given_as_percent_is_rejected(model_file, test_manifest):
    with pytest.raises(CommandError, match='not a percent'):
        call_command(
            'test_recognition', str(test_manifest),
            '--training-file', model_file, '--threshold', '50', stdout=StringIO(),
        )

    with pytest.raises(CommandError, match='threshold'):
        call_command(
            'recognize_faces', str(test_manifest),
            training_file=model_file, threshold=50.0, stdout=StringIO(),
        )


def test_cli_rejects_percent_threshold(model_file, test_manifest, capsys):
    exit_code = eigenfaces.main([
        'evaluate', str(test_manifest), '--training-file', model_file, '--threshold', '50',
    ])

    assert exit_code == 1
    assert 'threshold' in capsys.readouterr().out


def test_cli_train_forwards_options(tmp_path, face_database, capsys):
    (face_database / 's1' / '1.pgm').rename(face_database / 's1' / '1.pnm')
    model_path = str(tmp_path / 'cli_model.xml')

    exit_code = eigenfaces.main([
        'train', str(face_database), '--database', '--output', model_path,
        '--extension', 'pgm', '--image-size', '12', '10', '--save-eigenfaces',
        '--output-dir', str(tmp_path / 'cli_images'),
    ])

    assert exit_code == 0
    model = load_model(model_path)
    assert model.image_shape == (10, 12)
    assert model.train_face_count == len(SUBJECTS) * TRAINING_VARIANTS - 1
    assert (tmp_path / 'cli_images' / AVERAGE_IMAGE_FILE).is_file()


def test_cli_evaluate_forwards_distance(model_file, test_manifest, capsys):
    exit_code = eigenfaces.main([
        'evaluate', str(test_manifest), '--training-file', model_file,
        '--distance', 'euclidean', '--threshold', '0.5',
    ])

    assert exit_code == 0
    assert f'Recognition accuracy: {len(SUBJECTS)}/{len(SUBJECTS)} = 100.00%' in capsys.readouterr().out
