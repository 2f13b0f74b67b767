"""
Assignment service: creation, student assignment and admin/student reads.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from assignments.models import Assignment, OptionSet, StudentProgress, approved_students
from assignments.option_sets import normalize_option_sets
from assignments.permissions import can_act_for_student

logger = logging.getLogger(__name__)


def parse_identity(value):
    """Return ``value`` as a positive integer id, or None when it is malformed."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def parse_identities(values):
    """Parse a list of ids, rejecting the whole list if any entry is malformed."""
    invalid = [value for value in values if parse_identity(value) is None]
    if invalid:
        raise ValidationError(f"Invalid student IDs: {', '.join(str(value) for value in invalid)}")

    parsed = [parse_identity(value) for value in values]
    seen = set()
    duplicates = []
    for student_id in parsed:
        if student_id in seen and student_id not in duplicates:
            duplicates.append(student_id)
        seen.add(student_id)
    if duplicates:
        raise ValidationError(f"Duplicate student IDs: {', '.join(str(i) for i in duplicates)}")
    return parsed


def require_identity(value, label='ID'):
    parsed = parse_identity(value)
    if parsed is None:
        raise ValidationError(f"Invalid {label}.")
    return parsed


def get_assignment(assignment_id, queryset=None):
    queryset = queryset if queryset is not None else Assignment.objects.all()
    try:
        return queryset.get(pk=assignment_id)
    except Assignment.DoesNotExist:
        raise NotFound("Assignment not found.")


def ensure_approved(student_ids):
    found = set(approved_students(student_ids).values_list('pk', flat=True))
    missing = [student_id for student_id in student_ids if student_id not in found]
    if missing:
        raise ValidationError(
            f"Approved students not found: {', '.join(str(i) for i in missing)}"
        )


def ensure_can_act_for_student(caller, student_id):
    if not can_act_for_student(caller, student_id):
        logger.warning(f"User {caller.id} denied access to student {student_id}")
        raise PermissionDenied("You do not have permission to act for this student.")


class AssignmentService:
    """Owns the assignment aggregate: option sets, student roster and reads."""

    @classmethod
    def create(cls, created_by, title, description, total_questions, due_date,
               student_ids=None, option_sets=None) -> Assignment:
        title = (title or '').strip()
        description = (description or '').strip()
        if not title or not description or total_questions is None or due_date is None:
            raise ValidationError(
                "title, description, total_questions and due_date are required."
            )

        max_questions = settings.ASSIGNMENT_SETTINGS['MAX_TOTAL_QUESTIONS']
        if isinstance(total_questions, bool) or not isinstance(total_questions, int) \
                or not 1 <= total_questions <= max_questions:
            raise ValidationError(f"total_questions must be a number between 1 and {max_questions}.")

        if due_date < timezone.now():
            raise ValidationError("Due date cannot be in the past.")

        validated_sets = normalize_option_sets(option_sets, total_questions)

        parsed_ids = []
        if student_ids:
            parsed_ids = parse_identities(student_ids)
            ensure_approved(parsed_ids)

        with transaction.atomic():
            assignment = Assignment.objects.create(
                title=title,
                description=description,
                total_questions=total_questions,
                created_by=created_by,
                due_date=due_date,
            )
            OptionSet.objects.bulk_create([
                OptionSet(assignment=assignment, position=position, **option_set)
                for position, option_set in enumerate(validated_sets)
            ])
            StudentProgress.objects.bulk_create([
                StudentProgress(assignment=assignment, student_id=student_id)
                for student_id in parsed_ids
            ])

        logger.info(
            f"Assignment {assignment.id} created by {created_by.username} "
            f"({len(validated_sets)} option sets, {len(parsed_ids)} students)"
        )
        return assignment

    @classmethod
    def assign_students(cls, assignment_id, caller, student_ids) -> Assignment:
        assignment_id = require_identity(assignment_id, 'assignment ID')
        if not isinstance(student_ids, (list, tuple)) or not student_ids:
            raise ValidationError("student_ids must be a non-empty list.")
        parsed_ids = parse_identities(student_ids)

        assignment = get_assignment(assignment_id)
        if assignment.created_by_id != caller.id:
            raise PermissionDenied("You do not have permission to modify this assignment.")
        if assignment.is_overdue:
            raise ValidationError("Cannot assign students to an overdue assignment.")

        ensure_approved(parsed_ids)

        with transaction.atomic():
            # Roster changes for one assignment are serialized on its row.
            Assignment.objects.select_for_update().get(pk=assignment.pk)
            existing = set(
                assignment.student_progress.filter(student_id__in=parsed_ids)
                .values_list('student_id', flat=True)
            )
            already_assigned = [student_id for student_id in parsed_ids if student_id in existing]
            if already_assigned:
                raise ValidationError(
                    f"Students already assigned: {', '.join(str(i) for i in already_assigned)}"
                )
            StudentProgress.objects.bulk_create([
                StudentProgress(assignment=assignment, student_id=student_id)
                for student_id in parsed_ids
            ])

        logger.info(f"Assigned {len(parsed_ids)} students to assignment {assignment.id}")
        return assignment

    @classmethod
    def get(cls, assignment_id, caller) -> dict:
        assignment_id = require_identity(assignment_id, 'assignment ID')
        assignment = get_assignment(
            assignment_id,
            Assignment.objects.select_related('created_by').prefetch_related('option_sets'),
        )
        if assignment.created_by_id != caller.id:
            raise PermissionDenied("You do not have permission to view this assignment.")
        return assignment.with_progress()

    @classmethod
    def list_for_admin(cls, caller, search=None):
        assignments = (
            Assignment.objects.filter(created_by=caller)
            .select_related('created_by')
            .prefetch_related('option_sets')
            .order_by('-created_at', '-id')
        )
        if search:
            assignments = assignments.filter(
                Q(title__icontains=search) | Q(description__icontains=search)
            )
        return assignments

    @classmethod
    def available_students(cls):
        return (
            approved_students()
            .select_related('profile')
            .order_by('first_name', 'last_name', 'id')
        )

    @classmethod
    def student_assignments(cls, student_id, caller, status=None):
        student_id = require_identity(student_id, 'student ID')
        ensure_can_act_for_student(caller, student_id)

        if status and status not in StudentProgress.Status.values:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(StudentProgress.Status.values)}"
            )

        progresses = (
            StudentProgress.objects.filter(student_id=student_id)
            .select_related('assignment', 'assignment__created_by')
            .prefetch_related('answers')
            .order_by('-assignment__created_at', '-assignment_id')
        )
        if status:
            progresses = progresses.filter(status=status)
        return progresses

    @classmethod
    def student_assignment(cls, student_id, assignment_id, caller) -> dict:
        student_id = require_identity(student_id, 'student ID')
        assignment_id = require_identity(assignment_id, 'assignment ID')
        ensure_can_act_for_student(caller, student_id)

        progress = (
            StudentProgress.objects.filter(student_id=student_id, assignment_id=assignment_id)
            .select_related('assignment', 'assignment__created_by')
            .prefetch_related('answers')
            .first()
        )
        if progress is None:
            raise NotFound("Assignment not found or not assigned to this student.")
        return progress.as_student_assignment()

