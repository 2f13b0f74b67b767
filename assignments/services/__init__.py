from .assignments import AssignmentService
from .progression import ProgressionService

__all__ = ['AssignmentService', 'ProgressionService']
