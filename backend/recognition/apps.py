from django.apps import AppConfig


class RecognitionConfig(AppConfig):
    name = 'recognition'
    verbose_name = 'Eigenfaces recognition'
