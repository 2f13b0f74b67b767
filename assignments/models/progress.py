from django.db import models
from django.contrib.auth.models import User
from django.core.validators import MinValueValidator
from django.utils import timezone

from .assignment import rounded_percentage


class StudentProgress(models.Model):
    """Per-student state inside an assignment: status, answers and the pinned question."""

    class Status(models.TextChoices):
        TODO = 'todo', 'To Do'
        INPROGRESS = 'inprogress', 'In Progress'
        COMPLETE = 'complete', 'Complete'
        DONE = 'done', 'Done'

    assignment = models.ForeignKey(
        'Assignment',
        on_delete=models.CASCADE,
        related_name='student_progress',
        db_index=True
    )
    student = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='assignment_progress',
        db_index=True
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.TODO,
        db_index=True
    )
    started_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    marked_done_at = models.DateTimeField(null=True, blank=True)

    # Option-set progression
    current_question_set = models.PositiveIntegerField(default=0)
    questions_completed_in_current_set = models.PositiveIntegerField(default=0)

    # Pinned in-flight question
    current_question_elements = models.JSONField(null=True, blank=True, default=None)
    current_question_solution_tokens = models.JSONField(null=True, blank=True, default=None)
    current_question_list_pos_lock = models.JSONField(null=True, blank=True, default=None)

    assigned_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['assigned_at', 'id']
        indexes = [
            models.Index(fields=['student', 'status'], name='progress_student_status_idx'),
            models.Index(fields=['assignment', 'status'], name='progress_assign_status_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['assignment', 'student'],
                name='unique_assignment_student'
            )
        ]

    def __str__(self):
        return f"{self.student.username} - {self.assignment.title} ({self.status})"

    @property
    def answered_count(self):
        return len(self.answers.all())

    @property
    def has_pinned_question(self):
        return bool(self.current_question_elements)

    def clear_pinned_question(self):
        self.current_question_elements = None
        self.current_question_solution_tokens = None
        self.current_question_list_pos_lock = None

    def mark_complete(self):
        self.status = self.Status.COMPLETE
        self.completed_at = timezone.now()

    def as_progress(self, include_student=False):
        answers = list(self.answers.all())
        total = self.assignment.total_questions
        data = {
            'student_id': self.student_id,
            'status': self.status,
            'started_at': self.started_at,
            'completed_at': self.completed_at,
            'marked_done_at': self.marked_done_at,
            'answers': [answer.as_dict() for answer in answers],
            'current_question_set': self.current_question_set,
            'questions_completed_in_current_set': self.questions_completed_in_current_set,
            'current_question_elements': self.current_question_elements,
            'current_question_solution_tokens': self.current_question_solution_tokens,
            'current_question_list_pos_lock': self.current_question_list_pos_lock,
            'progress_percentage': rounded_percentage(len(answers), total),
            'answered_questions': len(answers),
            'remaining_questions': total - len(answers),
        }
        if include_student:
            student = self.student
            profile = getattr(student, 'profile', None)
            data['student'] = {
                'id': student.id,
                'username': student.username,
                'first_name': student.first_name,
                'last_name': student.last_name,
                'nickname': profile.nickname if profile else '',
                'school': profile.school if profile else '',
            }
        return data

    def as_student_assignment(self):
        data = self.assignment.summary()
        data['student_progress'] = self.as_progress()
        return data


class Answer(models.Model):
    progress = models.ForeignKey(
        StudentProgress,
        on_delete=models.CASCADE,
        related_name='answers',
        db_index=True
    )
    question_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    question_text = models.TextField(max_length=1000)
    answer_text = models.TextField(max_length=2000)
    answered_at = models.DateTimeField(default=timezone.now)
    list_pos_lock = models.JSONField(null=True, blank=True, default=None)
    # Insertion order; a resubmission keeps the original slot.
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ['position', 'id']
        constraints = [
            models.UniqueConstraint(
                fields=['progress', 'question_number'],
                name='unique_progress_question_number'
            )
        ]

    def __str__(self):
        return f"Q{self.question_number} by {self.progress.student.username}"

    def as_dict(self, include_lock=True):
        data = {
            'question_number': self.question_number,
            'question_text': self.question_text,
            'answer_text': self.answer_text,
            'answered_at': self.answered_at,
        }
        if include_lock:
            data['list_pos_lock'] = self.list_pos_lock
        return data
