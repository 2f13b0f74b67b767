from .user_profile import UserProfile, approved_students
from .assignment import Assignment, OptionSet, rounded_percentage
from .progress import StudentProgress, Answer
from .token import BlacklistedToken
from .audit import AuditLog

__all__ = [
    'UserProfile', 'approved_students', 'Assignment', 'OptionSet',
    'StudentProgress', 'Answer', 'rounded_percentage',
    'BlacklistedToken', 'AuditLog'
]
