"""
Tests for the assignment and progression HTTP endpoints.
"""
from unittest import mock

from django.core.cache import cache
from django.db import DatabaseError
from rest_framework import status
from rest_framework.test import APITestCase

from assignments.authentication import issue_token
from assignments.models import Answer, Assignment, AuditLog, StudentProgress, UserProfile
from assignments.services import AssignmentService
from assignments.throttling import AnswerRateThrottle
from .helpers import future, make_admin, make_student, option_set


class APITestBase(APITestCase):

    def setUp(self):
        cache.clear()
        self.admin = make_admin()
        self.student = make_student('student1', first_name='Somchai', last_name='Dee', nickname='Chai')
        self.other_student = make_student('student2', first_name='Suda', last_name='Jaidee')
        self.assignment = AssignmentService.create(
            created_by=self.admin,
            title='Tiles',
            description='Arithmetic tiles',
            total_questions=3,
            due_date=future(),
            student_ids=[self.student.id, self.other_student.id],
            option_sets=[option_set(2), option_set(1, total_count=10, lockMode=True)],
        )

    def authenticate(self, user):
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}')

    def progress_url(self, action, student=None, assignment_id=None):
        student_id = (student or self.student).id
        assignment_id = assignment_id if assignment_id is not None else self.assignment.id
        return f'/api/assignments/{assignment_id}/students/{student_id}/{action}/'

    def answer(self, number, **extra):
        payload = {'question_number': number, 'question_text': f'Q{number}', 'answer_text': f'A{number}'}
        payload.update(extra)
        return self.client.post(self.progress_url('answers'), payload, format='json')


class HealthTests(APITestCase):

    def test_health(self):
        """Test the health endpoint needs no authentication."""
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'status': 'ok'})


class AssignmentEndpointTests(APITestBase):
    """Tests for the admin assignment endpoints."""

    def create_payload(self, **overrides):
        payload = {
            'title': 'New drill',
            'description': 'Two sets',
            'total_questions': 3,
            'due_date': future().isoformat(),
            'student_ids': [self.student.id],
            'option_sets': [option_set(2), option_set(1)],
        }
        payload.update(overrides)
        return payload

    def test_create(self):
        """Test an admin creates an assignment with option sets and students."""
        self.authenticate(self.admin)
        response = self.client.post('/api/assignments/', self.create_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        assignment = response.data['assignment']
        self.assertEqual(len(assignment['option_sets']), 2)
        self.assertEqual(assignment['students'][0]['status'], 'todo')
        self.assertIn('1 students', response.data['message'])
        self.assertTrue(AuditLog.objects.filter(event_type=AuditLog.EventType.ASSIGNMENT_CREATED).exists())

    def test_create_option_set_mismatch(self):
        """Test option sets must cover total_questions exactly."""
        self.authenticate(self.admin)
        response = self.client.post(
            '/api/assignments/', self.create_payload(option_sets=[option_set(1)]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('detail', response.data)

    def test_create_with_pending_student(self):
        """Test only approved students can be assigned."""
        pending = make_student('waiting', status=UserProfile.Status.PENDING)
        self.authenticate(self.admin)
        response = self.client.post(
            '/api/assignments/', self.create_payload(student_ids=[pending.id]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Assignment.objects.count(), 1)

    def test_create_too_many_questions(self):
        self.authenticate(self.admin)
        response = self.client.post(
            '/api/assignments/', self.create_payload(total_questions=101, option_sets=[]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_student_cannot_create(self):
        """Test students cannot create assignments."""
        self.authenticate(self.student)
        response = self.client.post('/api/assignments/', self.create_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_only_own_assignments(self):
        """Test the list shows only the caller's assignments."""
        other_admin = make_admin('other-admin')
        AssignmentService.create(other_admin, 'Theirs', 'Not mine', 1, future())
        self.authenticate(self.admin)
        response = self.client.get('/api/assignments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['title'], 'Tiles')

    def test_list_search(self):
        AssignmentService.create(self.admin, 'Fractions', 'Halves', 1, future())
        self.authenticate(self.admin)
        response = self.client.get('/api/assignments/', {'search': 'fraction'})
        self.assertEqual([a['title'] for a in response.data['results']], ['Fractions'])

    def test_detail(self):
        """Test the owner sees progress and statistics."""
        self.authenticate(self.admin)
        response = self.client.get(f'/api/assignments/{self.assignment.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        stats = response.data['assignment']['statistics']
        self.assertEqual(stats['total_students'], 2)
        self.assertEqual(stats['status_breakdown']['todo'], 2)

    def test_detail_of_other_admin(self):
        """Test another admin cannot read the assignment."""
        self.authenticate(make_admin('other-admin'))
        response = self.client.get(f'/api/assignments/{self.assignment.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_not_found(self):
        self.authenticate(self.admin)
        response = self.client.get('/api/assignments/9999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_detail_malformed_id(self):
        """Test a malformed id is a bad request, not a 404."""
        self.authenticate(self.admin)
        response = self.client.get('/api/assignments/not-a-number/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_available_students(self):
        """Test only approved students are offered, with display names."""
        make_student('waiting', status=UserProfile.Status.PENDING)
        self.authenticate(self.admin)
        response = self.client.get('/api/assignments/available-students/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        somchai = next(s for s in response.data['students'] if s['username'] == 'student1')
        self.assertEqual(somchai['full_name'], 'Somchai Dee (Chai)')
        self.assertEqual(somchai['display_name'], 'Somchai Dee - Demo School')

    def test_assign_students(self):
        third = make_student('student3')
        self.authenticate(self.admin)
        response = self.client.post(
            f'/api/assignments/{self.assignment.id}/assign/', {'student_ids': [third.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['assignment']['students']), 3)

    def test_assign_already_assigned(self):
        self.authenticate(self.admin)
        response = self.client.post(
            f'/api/assignments/{self.assignment.id}/assign/', {'student_ids': [self.student.id]}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('already assigned', response.data['detail'])

    def test_assign_requires_list(self):
        self.authenticate(self.admin)
        response = self.client.post(
            f'/api/assignments/{self.assignment.id}/assign/', {'student_ids': 'abc'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class ProgressionEndpointTests(APITestBase):
    """Tests for the student progression endpoints."""

    def test_full_walkthrough(self):
        """Test a student starts, answers every question and is marked done."""
        self.authenticate(self.student)
        response = self.client.patch(self.progress_url('start'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['student_progress']['status'], 'inprogress')

        self.answer(1)
        response = self.answer(2)
        self.assertEqual(response.data['student_progress']['current_question_set'], 1)

        response = self.client.get(self.progress_url('current-set'))
        self.assertEqual(response.data['current_set_index'], 1)
        self.assertTrue(response.data['current_set']['options']['isLockPos'])

        response = self.answer(3, list_pos_lock=[{'pos': 0, 'value': '1'}])
        self.assertEqual(response.data['message'], 'Answer recorded.')
        self.assertEqual(response.data['student_progress']['status'], 'complete')

        self.authenticate(self.admin)
        response = self.client.patch(self.progress_url('status'), {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['student_progress']['status'], 'done')

    def test_resubmission_message(self):
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        self.answer(1)
        response = self.answer(1, answer_text='A1 again')
        self.assertEqual(response.data['message'], 'Answer updated.')
        self.assertEqual(response.data['student_progress']['questions_completed_in_current_set'], 1)

    def test_answer_before_start(self):
        """Test answers are refused until the student has started."""
        self.authenticate(self.student)
        response = self.answer(1)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_string_question_number_rejected(self):
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        response = self.answer('1')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_over_length_text_rejected(self):
        """Test question and answer text are bounded at 1000 and 2000 characters."""
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        response = self.answer(1, question_text='q' * 1001)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('question_text', response.data)
        response = self.answer(1, answer_text='a' * 2001)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('answer_text', response.data)
        self.assertEqual(StudentProgress.objects.get(student=self.student).answers.count(), 0)

    def test_database_error_is_internal_error(self):
        """Test a database failure while answering returns 500 with a detail message."""
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        with mock.patch.object(Answer.objects, 'create', side_effect=DatabaseError('disk full')):
            response = self.answer(1)
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertIn('detail', response.data)

    def test_student_cannot_act_for_another(self):
        """Test a student cannot start or read another student's work."""
        self.authenticate(self.other_student)
        self.assertEqual(self.client.patch(self.progress_url('start')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(self.progress_url('answers')).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(self.progress_url('current-set')).status_code, status.HTTP_403_FORBIDDEN)

    def test_student_cannot_set_status(self):
        self.authenticate(self.student)
        response = self.client.patch(self.progress_url('status'), {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_done_requires_complete(self):
        self.authenticate(self.admin)
        response = self.client.patch(self.progress_url('status'), {'status': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(StudentProgress.objects.get(student=self.student).status, 'todo')

    def test_malformed_ids(self):
        """Test malformed ids in progression routes are a bad request."""
        self.authenticate(self.admin)
        response = self.client.patch('/api/assignments/x/students/1/start/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get(f'/api/assignments/{self.assignment.id}/students/0/current-set/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unassigned_student(self):
        third = make_student('student3')
        self.authenticate(third)
        response = self.client.patch(self.progress_url('start', student=third))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_unknown_assignment(self):
        self.authenticate(self.student)
        response = self.client.patch(self.progress_url('start', assignment_id=9999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_pin_current_question(self):
        """Test the pinned question survives a reload and clears on answer."""
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        response = self.client.patch(
            self.progress_url('current-question'),
            {'elements': ['1', '+', '1', '=', '2'], 'solution_tokens': ['1', '+', '1', '=', '2']},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client.patch(self.progress_url('current-question'), {'elements': ['9']}, format='json')

        response = self.client.get(self.progress_url('current-set'))
        self.assertEqual(response.data['current_question_elements'], ['1', '+', '1', '=', '2'])

        self.answer(1)
        response = self.client.get(self.progress_url('current-set'))
        self.assertIsNone(response.data['current_question_elements'])

    def test_pin_rejects_out_of_range_lock(self):
        self.authenticate(self.student)
        response = self.client.patch(
            self.progress_url('current-question'),
            {'elements': ['1'], 'list_pos_lock': [{'pos': 20, 'value': '+'}]},
            format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_answers_listing(self):
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        self.answer(2)
        self.answer(1)
        response = self.client.get(self.progress_url('answers'))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([a['question_number'] for a in response.data['answers']], [1, 2])

    def test_pending_student_blocked(self):
        """Test a token issued before approval was withdrawn is refused on progression routes."""
        self.student.profile.status = UserProfile.Status.PENDING
        self.student.profile.save()
        self.authenticate(self.student)
        response = self.client.patch(self.progress_url('start'))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @mock.patch.object(AnswerRateThrottle, 'THROTTLE_RATES', {'answer': '2/minute'})
    def test_answer_rate_limit(self):
        """Test answer submission is throttled per user."""
        self.authenticate(self.student)
        self.client.patch(self.progress_url('start'))
        self.answer(1)
        self.answer(1)
        response = self.answer(1)
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)


class StudentViewTests(APITestBase):
    """Tests for the student-facing assignment list."""

    def test_own_assignments(self):
        self.authenticate(self.student)
        response = self.client.get(f'/api/students/{self.student.id}/assignments/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        entry = response.data['results'][0]
        self.assertEqual(entry['title'], 'Tiles')
        self.assertEqual(entry['student_progress']['status'], 'todo')

    def test_status_filter(self):
        self.authenticate(self.student)
        response = self.client.get(f'/api/students/{self.student.id}/assignments/', {'status': 'complete'})
        self.assertEqual(response.data['count'], 0)
        response = self.client.get(f'/api/students/{self.student.id}/assignments/', {'status': 'bogus'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_students_assignments_forbidden(self):
        self.authenticate(self.other_student)
        response = self.client.get(f'/api/students/{self.student.id}/assignments/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_can_view_student(self):
        self.authenticate(self.admin)
        response = self.client.get(f'/api/students/{self.student.id}/assignments/{self.assignment.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['assignment']['id'], self.assignment.id)

    def test_detail_not_assigned(self):
        third = make_student('student3')
        self.authenticate(third)
        response = self.client.get(f'/api/students/{third.id}/assignments/{self.assignment.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
