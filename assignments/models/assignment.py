from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone


def rounded_percentage(part, whole):
    """Whole-number percentage, rounding halves up (2/3 -> 67, 1/8 -> 13)."""
    if not whole:
        return 0
    value = Decimal(part) * 100 / Decimal(whole)
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


class Assignment(models.Model):
    title = models.CharField(max_length=200)
    description = models.TextField(max_length=1000)
    total_questions = models.PositiveIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(100)]
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='created_assignments',
        db_index=True
    )
    due_date = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['created_by', '-created_at'], name='assignment_owner_created_idx'),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if self._state.adding and self.due_date and self.due_date < timezone.now():
            raise ValidationError("Due date cannot be in the past.")
        super().save(*args, **kwargs)

    @property
    def is_overdue(self):
        return timezone.now() > self.due_date

    @property
    def time_remaining(self):
        """Days/hours left before the due date, or None once it has passed."""
        remaining = self.due_date - timezone.now()
        total_seconds = int(remaining.total_seconds())
        if total_seconds <= 0:
            return None
        total_hours = total_seconds // 3600
        return {
            'days': total_hours // 24,
            'hours': total_hours % 24,
            'total_hours': total_hours,
        }

    def get_option_sets(self):
        # Uses the prefetch cache when the caller loaded option sets up front.
        return list(self.option_sets.all())

    def current_option_set(self, progress):
        """
        Resolve the option set a student is working through.

        Returns (option_set, index, questions_completed); index is -1 once the
        student's pointer has run past the last set or when the assignment
        has no option sets at all.
        """
        option_sets = self.get_option_sets()
        index = progress.current_question_set
        if not option_sets or index >= len(option_sets):
            return None, -1, 0
        return option_sets[index], index, progress.questions_completed_in_current_set

    def should_progress_to_next_set(self, progress):
        option_set, index, completed = self.current_option_set(progress)
        if option_set is None:
            return False
        return completed >= option_set.num_questions

    def get_statistics(self, progresses=None):
        if progresses is None:
            progresses = list(self.student_progress.all())
        from .progress import StudentProgress
        Status = StudentProgress.Status

        total = len(progresses)
        breakdown = {choice: 0 for choice in Status.values}
        for progress in progresses:
            breakdown[progress.status] += 1
        finished = breakdown[Status.COMPLETE] + breakdown[Status.DONE]
        return {
            'total_students': total,
            'status_breakdown': breakdown,
            'completion_rate': rounded_percentage(finished, total),
        }

    def summary(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'total_questions': self.total_questions,
            'due_date': self.due_date,
            'created_by': {
                'id': self.created_by_id,
                'username': self.created_by.username,
                'first_name': self.created_by.first_name,
                'last_name': self.created_by.last_name,
            },
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'is_overdue': self.is_overdue,
            'time_remaining': self.time_remaining,
        }

    def with_progress(self):
        """Assignment document enriched with every student's progress and statistics."""
        progresses = list(
            self.student_progress.select_related('student', 'student__profile')
            .prefetch_related('answers')
        )
        data = self.summary()
        data['option_sets'] = [option_set.as_dict() for option_set in self.get_option_sets()]
        data['students'] = [progress.as_progress(include_student=True) for progress in progresses]
        data['statistics'] = self.get_statistics(progresses)
        return data


class OptionSet(models.Model):
    """One segment of question-generation parameters, in assignment order."""
    assignment = models.ForeignKey(
        Assignment,
        on_delete=models.CASCADE,
        related_name='option_sets'
    )
    position = models.PositiveIntegerField()
    options = models.JSONField(default=dict)
    num_questions = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    set_label = models.CharField(max_length=100, blank=True)

    class Meta:
        ordering = ['assignment', 'position']
        constraints = [
            models.UniqueConstraint(
                fields=['assignment', 'position'],
                name='unique_option_set_position'
            )
        ]

    def __str__(self):
        return f"{self.assignment.title} - {self.set_label or self.position + 1}"

    @property
    def is_lock_pos(self):
        return bool(self.options.get('isLockPos', False))

    def as_dict(self):
        return {
            'options': self.options,
            'num_questions': self.num_questions,
            'set_label': self.set_label,
        }
