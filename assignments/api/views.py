from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse

from assignments.models import AuditLog
from assignments.permissions import IsAdmin, IsApprovedUser
from assignments.services import AssignmentService, ProgressionService
from assignments.services.progression import MISSING
from assignments.throttling import AnswerRateThrottle
from .pagination import StandardPagination
from .serializers import (
    AssignmentCreateSerializer, AssignStudentsSerializer, StatusUpdateSerializer,
    AnswerSubmitSerializer, PinQuestionSerializer, AvailableStudentSerializer
)


@extend_schema(tags=['Health'])
class HealthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(summary="Health check", responses={200: dict})
    def get(self, request):
        return Response({"status": "ok"})


# =============================================================================
# ASSIGNMENTS (ADMIN)
# =============================================================================

@extend_schema(tags=['Assignments'])
class AssignmentListCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="List my assignments",
        description="Assignments created by the calling admin, newest first, with every student's progress.",
        parameters=[
            OpenApiParameter('search', str, description="Case-insensitive match on title or description"),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: dict}
    )
    def get(self, request):
        assignments = AssignmentService.list_for_admin(request.user, request.query_params.get('search'))
        paginator = StandardPagination()
        page = paginator.paginate_queryset(assignments, request, view=self)
        return paginator.get_paginated_response([assignment.with_progress() for assignment in page])

    @extend_schema(
        summary="Create assignment",
        description="""
**Create an assignment, optionally assigning approved students right away.**

When `option_sets` are given, their `num_questions` must add up to
`total_questions`. Each set's `options` are normalized: the lock position
flag is accepted under several names and stored as `isLockPos`/`lockMode`
with a derived `lockCount`.
""",
        request=AssignmentCreateSerializer,
        responses={
            201: OpenApiResponse(description="Assignment created"),
            400: OpenApiResponse(description="Validation error")
        },
        examples=[
            OpenApiExample(
                'Two option sets',
                request_only=True,
                value={
                    "title": "Addition drill",
                    "description": "Warm-up then locked tiles",
                    "total_questions": 3,
                    "due_date": "2030-01-01T00:00:00Z",
                    "student_ids": [2, 3],
                    "option_sets": [
                        {"options": {"totalCount": 8, "operatorMode": "random", "operatorCount": 1}, "num_questions": 2},
                        {"options": {"totalCount": 10, "operatorMode": "random", "operatorCount": 2, "lockMode": True}, "num_questions": 1}
                    ]
                }
            )
        ]
    )
    def post(self, request):
        serializer = AssignmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        assignment = AssignmentService.create(
            created_by=request.user,
            title=data['title'],
            description=data['description'],
            total_questions=data['total_questions'],
            due_date=data['due_date'],
            student_ids=data.get('student_ids'),
            option_sets=data.get('option_sets'),
        )

        student_count = assignment.student_progress.count()
        AuditLog.log(
            event_type=AuditLog.EventType.ASSIGNMENT_CREATED,
            description=f"Assignment created: {assignment.title}",
            request=request,
            metadata={'assignment_id': assignment.id, 'students': student_count}
        )

        message = (
            f"Assignment created and assigned to {student_count} students."
            if student_count else "Assignment created."
        )
        return Response(
            {"message": message, "assignment": assignment.with_progress()},
            status=status.HTTP_201_CREATED
        )


@extend_schema(tags=['Assignments'])
class AvailableStudentsView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(summary="Approved students that can be assigned", responses={200: AvailableStudentSerializer(many=True)})
    def get(self, request):
        data = AvailableStudentSerializer(AssignmentService.available_students(), many=True).data
        return Response({"students": data, "count": len(data)})


@extend_schema(tags=['Assignments'])
class AssignmentDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(summary="Assignment with student progress and statistics", responses={200: dict, 403: dict, 404: dict})
    def get(self, request, assignment_id):
        return Response({"assignment": AssignmentService.get(assignment_id, request.user)})


@extend_schema(tags=['Assignments'])
class AssignStudentsView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="Assign students",
        request=AssignStudentsSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict}
    )
    def post(self, request, assignment_id):
        serializer = AssignStudentsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        student_ids = serializer.validated_data['student_ids']

        assignment = AssignmentService.assign_students(assignment_id, request.user, student_ids)

        AuditLog.log(
            event_type=AuditLog.EventType.STUDENTS_ASSIGNED,
            description=f"{len(student_ids)} students assigned to {assignment.title}",
            request=request,
            metadata={'assignment_id': assignment.id, 'student_ids': student_ids}
        )
        return Response({
            "message": f"Assigned {len(student_ids)} students.",
            "assignment": assignment.with_progress()
        })


# =============================================================================
# STUDENT PROGRESSION
# =============================================================================

@extend_schema(tags=['Progression'])
class StartAssignmentView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    @extend_schema(summary="Start an assignment", request=None, responses={200: dict, 400: dict, 403: dict, 404: dict})
    def patch(self, request, assignment_id, student_id):
        progress = ProgressionService.start(assignment_id, student_id, request.user)
        AuditLog.log(
            event_type=AuditLog.EventType.ASSIGNMENT_START,
            description=f"Assignment {assignment_id} started for student {student_id}",
            request=request,
            metadata={'assignment_id': assignment_id, 'student_id': student_id}
        )
        return Response({"message": "Assignment started.", "student_progress": progress})


@extend_schema(tags=['Progression'])
class StudentStatusView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="Update a student's status",
        description="Setting `done` requires the student to be `complete`. Other values are applied directly.",
        request=StatusUpdateSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict}
    )
    def patch(self, request, assignment_id, student_id):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        progress = ProgressionService.update_status(assignment_id, student_id, request.user, new_status)
        AuditLog.log(
            event_type=AuditLog.EventType.STATUS_CHANGE,
            description=f"Student {student_id} set to {new_status} on assignment {assignment_id}",
            request=request,
            metadata={'assignment_id': assignment_id, 'student_id': student_id, 'status': new_status}
        )
        return Response({"message": f"Status updated to {new_status}.", "student_progress": progress})


@extend_schema(tags=['Progression'])
class StudentAnswersView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    def get_throttles(self):
        if self.request.method == 'POST':
            return [AnswerRateThrottle()]
        return super().get_throttles()

    @extend_schema(summary="A student's answers, by question number", responses={200: dict, 403: dict, 404: dict})
    def get(self, request, assignment_id, student_id):
        return Response(ProgressionService.student_answers(assignment_id, student_id, request.user))

    @extend_schema(
        summary="Submit an answer",
        description="""
**Record an answer for one question.**

Resubmitting the same `question_number` replaces the earlier answer. The
student moves to the next option set once the current set's quota is met,
and to `complete` once every question has an answer.
""",
        request=AnswerSubmitSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict, 429: OpenApiResponse(description="Rate limit exceeded")}
    )
    def post(self, request, assignment_id, student_id):
        serializer = AnswerSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        progress, replaced = ProgressionService.submit_answer(
            assignment_id, student_id, request.user,
            question_number=data['question_number'],
            question_text=data['question_text'],
            answer_text=data['answer_text'],
            list_pos_lock=data.get('list_pos_lock', MISSING),
        )
        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_SUBMIT,
            description=f"Answer to question {data['question_number']} by student {student_id}",
            request=request,
            metadata={
                'assignment_id': assignment_id,
                'student_id': student_id,
                'question_number': data['question_number'],
                'replaced': replaced,
            }
        )
        return Response({
            "message": "Answer updated." if replaced else "Answer recorded.",
            "student_progress": progress
        })


@extend_schema(tags=['Progression'])
class CurrentOptionSetView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    @extend_schema(summary="Current option set and pinned question", responses={200: dict, 403: dict, 404: dict})
    def get(self, request, assignment_id, student_id):
        return Response(ProgressionService.current_option_set(assignment_id, student_id, request.user))


@extend_schema(tags=['Progression'])
class CurrentQuestionView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    @extend_schema(
        summary="Pin the generated question",
        description="""
Stores the question shown to the student so a refresh returns the same one.
Elements are kept until an answer is submitted; lock positions are only
replaced by a different non-empty set.
""",
        request=PinQuestionSerializer,
        responses={200: dict, 400: dict, 403: dict, 404: dict}
    )
    def patch(self, request, assignment_id, student_id):
        serializer = PinQuestionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        pinned = ProgressionService.pin_current_question(
            assignment_id, student_id, request.user,
            elements=data['elements'],
            solution_tokens=data.get('solution_tokens'),
            list_pos_lock=data.get('list_pos_lock', MISSING),
        )
        return Response({"message": "Current question saved.", **pinned})


# =============================================================================
# STUDENT VIEWS
# =============================================================================

@extend_schema(tags=['Student Assignments'])
class StudentAssignmentsView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    @extend_schema(
        summary="Assignments given to a student",
        parameters=[
            OpenApiParameter('status', str, description="todo, inprogress, complete or done"),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: dict, 403: dict}
    )
    def get(self, request, student_id):
        progresses = AssignmentService.student_assignments(
            student_id, request.user, status=request.query_params.get('status')
        )
        paginator = StandardPagination()
        page = paginator.paginate_queryset(progresses, request, view=self)
        return paginator.get_paginated_response([progress.as_student_assignment() for progress in page])


@extend_schema(tags=['Student Assignments'])
class StudentAssignmentDetailView(APIView):
    permission_classes = [IsAuthenticated, IsApprovedUser]

    @extend_schema(summary="One assignment with the student's progress", responses={200: dict, 403: dict, 404: dict})
    def get(self, request, student_id, assignment_id):
        return Response({"assignment": AssignmentService.student_assignment(student_id, assignment_id, request.user)})
