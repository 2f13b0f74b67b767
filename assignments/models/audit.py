import logging

from django.contrib.auth.models import User
from django.db import models

logger = logging.getLogger(__name__)


class AuditLog(models.Model):
    class EventType(models.TextChoices):
        LOGIN = 'login', 'User Login'
        LOGOUT = 'logout', 'User Logout'
        LOGIN_FAILED = 'login_failed', 'Failed Login Attempt'
        REGISTER = 'register', 'Registration'
        STUDENT_APPROVED = 'student_approved', 'Student Approved'
        STUDENT_REJECTED = 'student_rejected', 'Student Rejected'
        ASSIGNMENT_CREATED = 'assignment_created', 'Assignment Created'
        STUDENTS_ASSIGNED = 'students_assigned', 'Students Assigned'
        ASSIGNMENT_START = 'assignment_start', 'Assignment Started'
        ANSWER_SUBMIT = 'answer_submit', 'Answer Submitted'
        STATUS_CHANGE = 'status_change', 'Student Status Changed'

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_logs'
    )
    event_type = models.CharField(max_length=30, choices=EventType.choices, db_index=True)
    description = models.TextField()
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'event_type'], name='audit_user_event_idx'),
            models.Index(fields=['created_at', 'event_type'], name='audit_created_event_idx'),
        ]

    def __str__(self):
        return f"{self.get_event_type_display()} by {self.user or 'anonymous'} at {self.created_at}"

    @classmethod
    def log(cls, event_type, description, request=None, user=None, metadata=None):
        """Store an audit entry; the acting user defaults to the request's user."""
        ip_address, user_agent = client_info(request)
        if user is None and request is not None and getattr(request, 'user', None) is not None \
                and request.user.is_authenticated:
            user = request.user

        logger.info(f"[{event_type}] {description} (user={user.username if user else '-'}, ip={ip_address or '-'})")
        return cls.objects.create(
            user=user,
            event_type=event_type,
            description=description,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata or {}
        )


def client_info(request):
    """(ip_address, user_agent) of a request, honouring the first X-Forwarded-For hop."""
    if request is None:
        return None, ''
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    ip_address = forwarded.split(',')[0].strip() if forwarded else request.META.get('REMOTE_ADDR')
    return ip_address or None, request.META.get('HTTP_USER_AGENT', '')[:500]
