from django.apps import AppConfig


class AssignmentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'assignments'
    verbose_name = 'Assignments'

    def ready(self):
        # Registers the profile signal handlers.
        from . import models  # noqa: F401
