from django.core.management.base import BaseCommand, CommandError

from recognition.training_set import read_face_image

from ._common import add_recognition_arguments, build_recognizer, command_errors


class Command(BaseCommand):
    help = 'Recognize face images against a saved eigenfaces model'

    def add_arguments(self, parser):
        parser.add_argument('image_paths', nargs='+', help='Face image files')
        parser.add_argument(
            '--results',
            type=int,
            default=1,
            help='Number of best results to show for each face (default: 1)',
        )
        add_recognition_arguments(parser)

    def handle(self, *args, **options):
        if options['results'] < 1:
            raise CommandError('--results must be at least 1')

        recognizer = build_recognizer(
            threshold=options['threshold'],
            distance_type=options['distance'],
            training_file=options['training_file'],
        )

        faces = []
        for image_path in options['image_paths']:
            try:
                faces.append(read_face_image(image_path))
            except OSError as e:
                raise CommandError(f'Error reading image {image_path}: {e}') from e

        with command_errors():
            recognizer.load_training_data()
            results = recognizer.recognize_faces(faces, options['results'])

        for image_path, face_results in zip(options['image_paths'], results):
            self.stdout.write(image_path)
            for rank, result in enumerate(face_results, start=1):
                line = f'  {rank}. subject {result.subject_id} (confidence {result.confidence:.4f})'
                if result.recognized:
                    self.stdout.write(line)
                else:
                    self.stdout.write(self.style.WARNING(f'{line} - not recognized'))
