"""
Student progression through an assignment.

Every mutation here touches exactly one ``StudentProgress`` row and holds a
row lock on it for the duration of the transaction, so concurrent requests
for different students of the same assignment never wait on each other.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from assignments.models import Assignment, StudentProgress, Answer
from assignments.option_sets import lock_mode_enabled
from .assignments import ensure_can_act_for_student, get_assignment, require_identity

logger = logging.getLogger(__name__)

MISSING = object()

Status = StudentProgress.Status


def _parse_ids(assignment_id, student_id):
    try:
        return require_identity(assignment_id), require_identity(student_id)
    except ValidationError:
        raise ValidationError("Invalid assignment ID or student ID.")


def _load_assignment(assignment_id):
    return get_assignment(assignment_id, Assignment.objects.prefetch_related('option_sets'))


def _get_progress(assignment, student_id, for_update=False):
    progresses = StudentProgress.objects.filter(assignment=assignment, student_id=student_id)
    if for_update:
        progresses = progresses.select_for_update()
    progress = progresses.first()
    if progress is None:
        raise NotFound("Student is not assigned to this assignment.")
    # Reuse the already-loaded assignment (and its prefetched option sets).
    progress.assignment = assignment
    return progress


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def validate_lock_positions(entries, max_position=None):
    """
    Check a list of ``{'pos', 'value'}`` lock entries.

    ``pos`` must be a non-negative integer (below ``max_position`` when given)
    and ``value`` a non-blank string. Returns the entries as plain dicts.
    """
    if not isinstance(entries, (list, tuple)):
        raise ValidationError("list_pos_lock must be a list.")

    cleaned = []
    for index, item in enumerate(entries):
        if not isinstance(item, dict):
            raise ValidationError(f"list_pos_lock[{index}] must be an object.")
        pos = item.get('pos')
        value = item.get('value')
        if not _is_int(pos) or pos < 0:
            raise ValidationError(f"list_pos_lock[{index}].pos must be an integer >= 0, got: {pos!r}")
        if max_position is not None and pos >= max_position:
            raise ValidationError(
                f"list_pos_lock[{index}].pos ({pos}) exceeds the maximum allowed ({max_position})."
            )
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"list_pos_lock[{index}].value must be a non-empty string.")
        cleaned.append({'pos': pos, 'value': value})
    return cleaned


def _lock_key(entries):
    if not entries:
        return None
    return tuple(sorted((entry['pos'], entry['value']) for entry in entries))


class ProgressionService:
    """Status transitions, answer submission and the pinned in-flight question."""

    @classmethod
    def start(cls, assignment_id, student_id, caller) -> dict:
        assignment_id, student_id = _parse_ids(assignment_id, student_id)
        assignment = _load_assignment(assignment_id)
        if assignment.is_overdue:
            raise ValidationError("This assignment is overdue.")

        with transaction.atomic():
            progress = _get_progress(assignment, student_id, for_update=True)
            ensure_can_act_for_student(caller, student_id)
            if progress.status != Status.TODO:
                raise ValidationError(f"Cannot start from current status: {progress.status}")

            progress.status = Status.INPROGRESS
            progress.started_at = timezone.now()
            progress.save(update_fields=['status', 'started_at', 'updated_at'])

        logger.info(f"Student {student_id} started assignment {assignment_id}")
        return progress.as_progress()

    @classmethod
    def update_status(cls, assignment_id, student_id, caller, new_status) -> dict:
        """
        Set a student's status directly. Only ``done`` is guarded: it needs
        the student to be ``complete`` first. Other targets are accepted as-is,
        including moves back to an earlier status.
        """
        assignment_id, student_id = _parse_ids(assignment_id, student_id)
        if new_status not in Status.values:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(Status.values)}")

        assignment = _load_assignment(assignment_id)
        if assignment.created_by_id != caller.id:
            raise PermissionDenied("You do not have permission to modify this assignment.")

        with transaction.atomic():
            progress = _get_progress(assignment, student_id, for_update=True)
            previous = progress.status
            if new_status == Status.DONE and previous != Status.COMPLETE:
                raise ValidationError("Status can only be set to done from complete.")

            progress.status = new_status
            update_fields = ['status', 'updated_at']
            if new_status == Status.DONE:
                progress.marked_done_at = timezone.now()
                update_fields.append('marked_done_at')
            progress.save(update_fields=update_fields)

        logger.info(f"Student {student_id} status on assignment {assignment_id}: {previous} -> {new_status}")
        return progress.as_progress()

    @classmethod
    def submit_answer(cls, assignment_id, student_id, caller, question_number,
                      question_text, answer_text, list_pos_lock=MISSING):
        """
        Record an answer, replacing any earlier answer to the same question.

        Returns ``(progress, replaced)`` where ``replaced`` tells whether an
        existing answer was overwritten. Only a first answer to a question
        counts towards the current option set's quota.
        """
        assignment_id, student_id = _parse_ids(assignment_id, student_id)

        question_text = question_text.strip() if isinstance(question_text, str) else ''
        answer_text = answer_text.strip() if isinstance(answer_text, str) else ''
        if question_number is None or not question_text or not answer_text:
            raise ValidationError("question_number, question_text and answer_text are required.")
        if not _is_int(question_number) or question_number < 1:
            raise ValidationError("question_number must be a number greater than 0.")
        for field, text in (('question_text', question_text), ('answer_text', answer_text)):
            limit = Answer._meta.get_field(field).max_length
            if len(text) > limit:
                raise ValidationError(f"{field} must be at most {limit} characters.")

        assignment = _load_assignment(assignment_id)
        if assignment.is_overdue:
            raise ValidationError("This assignment is overdue.")
        if question_number > assignment.total_questions:
            raise ValidationError(
                f"Invalid question_number. The last question is {assignment.total_questions}."
            )

        with transaction.atomic():
            progress = _get_progress(assignment, student_id, for_update=True)
            ensure_can_act_for_student(caller, student_id)

            option_set, _, _ = assignment.current_option_set(progress)
            lock_mode = option_set is not None and lock_mode_enabled(option_set.options)
            supplied_lock = None
            if lock_mode and list_pos_lock is not MISSING and list_pos_lock is not None:
                supplied_lock = validate_lock_positions(list_pos_lock)

            if progress.status != Status.INPROGRESS:
                raise ValidationError(f"Cannot submit answers. Current status: {progress.status}")

            snapshot = supplied_lock if supplied_lock is not None else progress.current_question_list_pos_lock
            now = timezone.now()

            answer = progress.answers.filter(question_number=question_number).first()
            replaced = answer is not None
            if replaced:
                answer.question_text = question_text
                answer.answer_text = answer_text
                answer.answered_at = now
                answer.list_pos_lock = snapshot
                answer.save(update_fields=['question_text', 'answer_text', 'answered_at', 'list_pos_lock'])
            else:
                Answer.objects.create(
                    progress=progress,
                    question_number=question_number,
                    question_text=question_text,
                    answer_text=answer_text,
                    answered_at=now,
                    list_pos_lock=snapshot,
                    position=progress.answers.count(),
                )
                progress.questions_completed_in_current_set += 1

            # The in-flight question has been consumed.
            progress.clear_pinned_question()

            if assignment.should_progress_to_next_set(progress):
                next_index = progress.current_question_set + 1
                if next_index < len(assignment.get_option_sets()):
                    progress.current_question_set = next_index
                    progress.questions_completed_in_current_set = 0
                    logger.info(f"Student {student_id} advanced to option set {next_index} on assignment {assignment_id}")

            if progress.answers.count() >= assignment.total_questions:
                progress.mark_complete()
                logger.info(f"Student {student_id} completed assignment {assignment_id}")

            progress.save()

        logger.info(
            f"Answer {'updated' if replaced else 'recorded'} for question {question_number} "
            f"by student {student_id} on assignment {assignment_id}"
        )
        return progress.as_progress(), replaced

    @classmethod
    def current_option_set(cls, assignment_id, student_id, caller) -> dict:
        assignment_id, student_id = _parse_ids(assignment_id, student_id)
        assignment = _load_assignment(assignment_id)
        progress = _get_progress(assignment, student_id)
        ensure_can_act_for_student(caller, student_id)

        option_set, index, completed = assignment.current_option_set(progress)
        return {
            'current_set': option_set.as_dict() if option_set else None,
            'current_set_index': index,
            'questions_completed': completed,
            'should_progress': assignment.should_progress_to_next_set(progress),
            'total_sets': len(assignment.get_option_sets()),
            'current_question_elements': progress.current_question_elements or None,
            'current_question_solution_tokens': progress.current_question_solution_tokens or None,
            'current_question_list_pos_lock': progress.current_question_list_pos_lock or None,
        }

    @classmethod
    def pin_current_question(cls, assignment_id, student_id, caller, elements,
                             solution_tokens=None, list_pos_lock=MISSING) -> dict:
        """
        Persist the generated question so a refresh shows the same one.

        Elements are written once and kept until an answer clears them.
        Solution tokens are refreshed whenever a non-empty list is sent.
        Lock positions are written when none are pinned, or when a different
        non-empty set is sent; an empty or missing value never erases them.
        """
        assignment_id, student_id = _parse_ids(assignment_id, student_id)
        if not isinstance(elements, (list, tuple)) or not elements:
            raise ValidationError("elements must be a non-empty list.")
        if solution_tokens is not None and not isinstance(solution_tokens, (list, tuple)):
            raise ValidationError("solution_tokens must be a list.")
        lock_supplied = list_pos_lock is not MISSING and list_pos_lock is not None
        if lock_supplied:
            list_pos_lock = validate_lock_positions(
                list_pos_lock, settings.ASSIGNMENT_SETTINGS['MAX_LOCK_POSITION']
            )

        assignment = _load_assignment(assignment_id)

        with transaction.atomic():
            progress = _get_progress(assignment, student_id, for_update=True)
            ensure_can_act_for_student(caller, student_id)

            update_fields = []
            if not progress.current_question_elements:
                progress.current_question_elements = list(elements)
                update_fields.append('current_question_elements')

            if solution_tokens:
                progress.current_question_solution_tokens = list(solution_tokens)
                update_fields.append('current_question_solution_tokens')

            if lock_supplied:
                pinned_key = _lock_key(progress.current_question_list_pos_lock)
                new_key = _lock_key(list_pos_lock)
                if pinned_key is None or (new_key is not None and new_key != pinned_key):
                    progress.current_question_list_pos_lock = list_pos_lock or None
                    update_fields.append('current_question_list_pos_lock')

            if update_fields:
                progress.save(update_fields=update_fields + ['updated_at'])

        logger.info(
            f"Pinned question for student {student_id} on assignment {assignment_id}: "
            f"{', '.join(update_fields) or 'unchanged'}"
        )
        return {
            'current_question_elements': progress.current_question_elements,
            'current_question_solution_tokens': progress.current_question_solution_tokens,
            'current_question_list_pos_lock': progress.current_question_list_pos_lock,
        }

    @classmethod
    def student_answers(cls, assignment_id, student_id, caller) -> dict:
        assignment_id, student_id = _parse_ids(assignment_id, student_id)
        assignment = get_assignment(assignment_id)
        ensure_can_act_for_student(caller, student_id)
        progress = _get_progress(assignment, student_id)

        answers = sorted(
            progress.answers.all(),
            key=lambda answer: (answer.question_number, answer.answered_at),
        )
        return {
            'student_id': student_id,
            'assignment_id': assignment_id,
            'total_questions': assignment.total_questions,
            'answers': [answer.as_dict(include_lock=False) for answer in answers],
            'answered_count': len(answers),
        }
