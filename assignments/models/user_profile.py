from django.db import models
from django.contrib.auth.models import User
from django.db.models.signals import post_save
from django.dispatch import receiver
from django.utils import timezone


class UserProfile(models.Model):
    class Role(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        STUDENT = 'student', 'Student'

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending Approval'
        APPROVED = 'approved', 'Approved'
        REJECTED = 'rejected', 'Rejected'

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='profile')
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.STUDENT, db_index=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True)

    # Student details
    nickname = models.CharField(max_length=100, blank=True)
    school = models.CharField(max_length=200, blank=True)
    purpose = models.TextField(max_length=500, blank=True)

    # Approval trail
    approved_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='approved_profiles'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.CharField(max_length=200, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'role'], name='profile_status_role_idx'),
        ]

    def __str__(self):
        return f"{self.user.username} ({self.get_role_display()}, {self.status})"

    @property
    def is_admin(self):
        return self.role == self.Role.ADMIN

    @property
    def is_student(self):
        return self.role == self.Role.STUDENT

    @property
    def is_approved_student(self):
        return self.is_student and self.status == self.Status.APPROVED

    def approve(self, admin_user):
        self.status = self.Status.APPROVED
        self.approved_by = admin_user
        self.approved_at = timezone.now()
        self.rejected_at = None
        self.rejection_reason = ''
        self.save()

    def reject(self, reason=''):
        self.status = self.Status.REJECTED
        self.rejected_at = timezone.now()
        self.rejection_reason = (reason or '')[:200]
        self.save()

    def get_public_profile(self):
        user = self.user
        return {
            'id': user.id,
            'username': user.username,
            'first_name': user.first_name,
            'last_name': user.last_name,
            'full_name': user.get_full_name() or user.username,
            'role': self.role,
            'status': self.status,
            'nickname': self.nickname,
            'school': self.school,
            'purpose': self.purpose,
            'approved_by': self.approved_by.username if self.approved_by else None,
            'approved_at': self.approved_at,
            'rejected_at': self.rejected_at,
            'rejection_reason': self.rejection_reason or None,
            'created_at': self.created_at,
        }


@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    if created:
        UserProfile.objects.create(user=instance)


@receiver(post_save, sender=User)
def save_user_profile(sender, instance, **kwargs):
    if hasattr(instance, 'profile'):
        instance.profile.save()


def approved_students(ids=None):
    """Users registered as students whose registration has been approved."""
    students = User.objects.filter(
        profile__role=UserProfile.Role.STUDENT,
        profile__status=UserProfile.Status.APPROVED,
    )
    if ids is not None:
        students = students.filter(pk__in=ids)
    return students
