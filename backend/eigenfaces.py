#!/usr/bin/env python
"""
Eigenfaces System - Command-line interface
"""
import argparse
import os

import django
from django.core.management import call_command
from django.core.management.base import CommandError


def setup_django():
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')
    django.setup()


def build_parser():
    parser = argparse.ArgumentParser(description='Eigenfaces Facial Recognition System')
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Train model command
    train_parser = subparsers.add_parser('train', help='Train and save the model')
    train_parser.add_argument('path', help='Training manifest file or subjects database directory')
    train_parser.add_argument('--database', action='store_true',
                              help='PATH is a subjects database directory')
    train_parser.add_argument('--output', help='Training data file to write')
    train_parser.add_argument('--save-eigenfaces', action='store_true',
                              help='Save the average face and eigenfaces images')
    train_parser.add_argument('--max-eigenfaces', type=int,
                              help='Maximum number of eigenfaces to compute')
    train_parser.add_argument('--image-size', type=int, nargs=2, metavar=('WIDTH', 'HEIGHT'),
                              help='Resize every face to WIDTH x HEIGHT')
    train_parser.add_argument('--extension',
                              help='Face image extension in a subjects database')
    train_parser.add_argument('--output-dir',
                              help='Directory for the eigenfaces images')
    train_parser.add_argument('--memory-report', action='store_true',
                              help='Show memory usage during training')

    # Recognize command
    recognize_parser = subparsers.add_parser('recognize', help='Recognize face images')
    recognize_parser.add_argument('image_paths', nargs='+', help='Face image files')
    recognize_parser.add_argument('--results', type=int, default=1,
                                  help='Number of best results for each face (default: 1)')
    recognize_parser.add_argument('--threshold', type=float,
                                  help='Minimum confidence for a face to be recognized')
    recognize_parser.add_argument('--training-file', help='Training data file to load')
    recognize_parser.add_argument('--distance', choices=['euclidean', 'mahalanobis'],
                                  help='Distance used to find the closest training face')

    # Evaluate model command
    evaluate_parser = subparsers.add_parser('evaluate', help='Evaluate model accuracy')
    evaluate_parser.add_argument('manifest', help='Manifest of labeled test faces')
    evaluate_parser.add_argument('--threshold', type=float,
                                 help='Minimum confidence for a face to be recognized')
    evaluate_parser.add_argument('--training-file', help='Training data file to load')
    evaluate_parser.add_argument('--distance', choices=['euclidean', 'mahalanobis'],
                                 help='Distance used to find the closest training face')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    setup_django()

    try:
        if args.command == 'train':
            call_command(
                'train_faces', args.path,
                source='database' if args.database else 'file',
                output=args.output,
                save_eigenfaces=args.save_eigenfaces,
                max_eigenfaces=args.max_eigenfaces,
                image_size=args.image_size,
                extension=args.extension,
                output_dir=args.output_dir,
                memory_report=args.memory_report,
            )

        elif args.command == 'recognize':
            call_command(
                'recognize_faces', *args.image_paths,
                results=args.results,
                threshold=args.threshold,
                training_file=args.training_file,
                distance=args.distance,
            )

        elif args.command == 'evaluate':
            call_command(
                'test_recognition', args.manifest,
                threshold=args.threshold,
                training_file=args.training_file,
                distance=args.distance,
            )
    except CommandError as e:
        print(f"Error: {e}")
        return e.returncode

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
