import os

import psutil  # For memory monitoring
from django.core.management.base import BaseCommand

from recognition.types import TrainingSource

from ._common import build_recognizer, command_errors


class Command(BaseCommand):
    help = 'Train an eigenfaces model from a face manifest or a subjects database and save it'

    def add_arguments(self, parser):
        parser.add_argument(
            'path',
            help='Manifest file ("subjectID imagePath" per line) or subjects database directory',
        )
        parser.add_argument(
            '--source',
            choices=['file', 'database'],
            default='file',
            help='Kind of training set at PATH (default: file)',
        )
        parser.add_argument(
            '--output',
            type=str,
            help='File the training data is saved to (default: EIGENFACES_TRAINING_FILE)',
        )
        parser.add_argument(
            '--save-eigenfaces',
            action='store_true',
            help='Save the average face and the eigenfaces as images',
        )
        parser.add_argument(
            '--output-dir',
            type=str,
            help='Directory for the eigenfaces images (default: EIGENFACES_OUTPUT_DIR)',
        )
        parser.add_argument(
            '--max-eigenfaces',
            type=int,
            help='Maximum number of eigenfaces to compute',
        )
        parser.add_argument(
            '--image-size',
            type=int,
            nargs=2,
            metavar=('WIDTH', 'HEIGHT'),
            help='Resize every face to WIDTH x HEIGHT before training',
        )
        parser.add_argument(
            '--extension',
            type=str,
            help='Face image extension in a subjects database (default: EIGENFACES_IMAGE_EXTENSION)',
        )
        parser.add_argument(
            '--memory-report',
            action='store_true',
            help='Show memory usage during training',
        )

    def handle(self, *args, **options):
        memory_report = options['memory_report']

        if memory_report:
            process = psutil.Process(os.getpid())
            initial_memory = process.memory_info().rss / 1024 / 1024
            self.stdout.write(f'Initial memory usage: {initial_memory:.2f} MB')

        recognizer = build_recognizer(
            image_extension=options['extension'],
            training_file=options['output'],
            max_eigenfaces=options['max_eigenfaces'],
            image_size=options['image_size'],
            output_dir=options['output_dir'],
        )

        self.stdout.write(f"Training eigenfaces model from {options['source']} {options['path']}...")

        with command_errors():
            model = recognizer.train(
                TrainingSource.parse(options['source']),
                options['path'],
                save_eigenfaces=options['save_eigenfaces'],
            )

            if memory_report:
                current_memory = process.memory_info().rss / 1024 / 1024
                self.stdout.write(
                    f'Memory usage after training: {current_memory:.2f} MB '
                    f'(Δ {current_memory - initial_memory:.2f} MB)'
                )

            file_name = recognizer.save_training_data()

        self.stdout.write(self.style.SUCCESS(
            f'Model trained successfully with {model.eigen_count} eigenfaces '
            f'from {model.train_face_count} images'
        ))
        self.stdout.write(f'Mean face shape: {model.image_shape}')
        self.stdout.write(f'Training data saved to {file_name}')
        if options['save_eigenfaces']:
            self.stdout.write(f'Eigenfaces images saved to {recognizer.output_dir}')
