"""
Authentication views: registration, JWT login/logout and student approval.
"""
import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.contrib.auth.models import User
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, OpenApiExample, OpenApiParameter, OpenApiResponse

from assignments.authentication import issue_token
from assignments.models import AuditLog, BlacklistedToken, UserProfile
from assignments.permissions import IsAdmin
from assignments.throttling import AuthRateThrottle
from .auth_serializers import (
    StudentRegistrationSerializer, AdminRegistrationSerializer, LoginSerializer,
    RejectStudentSerializer, UserProfileSerializer
)
from .filters import StudentFilter
from .pagination import StandardPagination

logger = logging.getLogger(__name__)


# =============================================================================
# REGISTRATION
# =============================================================================

@extend_schema(
    tags=['Authentication'],
    summary="Register student",
    description="""
**Register a student account.**

The account starts as `pending` and cannot log in until an admin approves it
at `/api/auth/admin/students/{id}/approve/`.
""",
    request=StudentRegistrationSerializer,
    responses={
        201: OpenApiResponse(description="Registered, waiting for approval"),
        400: OpenApiResponse(description="Validation error")
    }
)
class StudentRegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]

    def post(self, request):
        serializer = StudentRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = serializer.save()

        AuditLog.log(
            event_type=AuditLog.EventType.REGISTER,
            description=f"Student registered: {user.username} (pending approval)",
            request=request,
            user=user
        )

        return Response({
            "message": "Registration successful. Please wait for admin approval.",
            "user": user.profile.get_public_profile()
        }, status=status.HTTP_201_CREATED)


@extend_schema(
    tags=['Authentication'],
    summary="Register admin",
    description="Only the configured admin username may register, and only while no admin exists.",
    request=AdminRegistrationSerializer,
    responses={
        201: OpenApiResponse(description="Admin created"),
        400: OpenApiResponse(description="Validation error or admin already exists"),
        403: OpenApiResponse(description="Username not allowed to register as admin")
    }
)
class AdminRegisterView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]

    def post(self, request):
        serializer = AdminRegistrationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        allowed = (settings.ADMIN_REGISTRATION['ALLOWED_USERNAME'] or '').strip().lower()
        username = serializer.validated_data['username']
        if not allowed or username != allowed:
            logger.warning(f"Rejected admin registration for {username}")
            return Response(
                {"detail": "This username is not allowed to register as admin."},
                status=status.HTTP_403_FORBIDDEN
            )

        if UserProfile.objects.filter(role=UserProfile.Role.ADMIN).exists():
            return Response(
                {"detail": "An admin account already exists."},
                status=status.HTTP_400_BAD_REQUEST
            )

        user = serializer.save()
        AuditLog.log(
            event_type=AuditLog.EventType.REGISTER,
            description=f"Admin registered: {user.username}",
            request=request,
            user=user
        )

        return Response({
            "message": "Admin registered successfully.",
            "user": user.profile.get_public_profile()
        }, status=status.HTTP_201_CREATED)


# =============================================================================
# LOGIN / LOGOUT
# =============================================================================

@extend_schema(
    tags=['Authentication'],
    summary="Login",
    description="""
**Authenticate and receive a bearer token.**

Use the token in subsequent requests:
```
Authorization: Bearer <your-token>
```
Students can log in only after an admin has approved them.
""",
    request=LoginSerializer,
    responses={
        200: OpenApiResponse(
            description="Login successful",
            examples=[
                OpenApiExample(
                    'Success',
                    value={
                        "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "user": {"id": 2, "username": "student1", "role": "student", "status": "approved"}
                    }
                )
            ]
        ),
        400: OpenApiResponse(description="Invalid credentials"),
        403: OpenApiResponse(description="Account pending approval or rejected")
    }
)
class LoginView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthRateThrottle]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        username = serializer.validated_data['username']
        user = authenticate(username=username, password=serializer.validated_data['password'])

        if not user:
            AuditLog.log(
                event_type=AuditLog.EventType.LOGIN_FAILED,
                description=f"Failed login attempt: {username}",
                request=request
            )
            return Response(
                {"detail": "Invalid username or password."},
                status=status.HTTP_400_BAD_REQUEST
            )

        profile = user.profile
        if profile.is_student and profile.status == UserProfile.Status.PENDING:
            return Response(
                {"detail": "Your account is waiting for admin approval."},
                status=status.HTTP_403_FORBIDDEN
            )
        if profile.is_student and profile.status == UserProfile.Status.REJECTED:
            detail = "Your registration was rejected."
            if profile.rejection_reason:
                detail = f"{detail} Reason: {profile.rejection_reason}"
            return Response({"detail": detail}, status=status.HTTP_403_FORBIDDEN)

        AuditLog.log(
            event_type=AuditLog.EventType.LOGIN,
            description=f"User logged in: {user.username}",
            request=request,
            user=user
        )

        return Response({
            "token": issue_token(user),
            "user": profile.get_public_profile()
        })


@extend_schema(tags=['Authentication'])
class LogoutView(APIView):
    """Revoke the bearer token used for this request."""
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Logout", request=None, responses={200: dict})
    def post(self, request):
        BlacklistedToken.revoke(request.auth)
        BlacklistedToken.purge_expired()

        AuditLog.log(
            event_type=AuditLog.EventType.LOGOUT,
            description=f"User logged out: {request.user.username}",
            request=request,
            user=request.user
        )

        return Response({"message": "Logged out successfully."})


@extend_schema(tags=['Authentication'])
class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get current user profile", responses={200: UserProfileSerializer})
    def get(self, request):
        return Response(UserProfileSerializer(request.user).data)


# =============================================================================
# STUDENT APPROVAL
# =============================================================================

def _students():
    return (
        User.objects.filter(profile__role=UserProfile.Role.STUDENT)
        .select_related('profile')
        .order_by('-profile__created_at', '-id')
    )


@extend_schema(tags=['Student Approval'])
class StudentListView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(
        summary="List students",
        parameters=[
            OpenApiParameter('status', str, description="pending, approved or rejected"),
            OpenApiParameter('page', int),
            OpenApiParameter('limit', int),
        ],
        responses={200: UserProfileSerializer(many=True)}
    )
    def get(self, request):
        filterset = StudentFilter(request.query_params, queryset=_students())
        if not filterset.is_valid():
            return Response(
                {"detail": f"Invalid status. Must be one of: {', '.join(UserProfile.Status.values)}"},
                status=status.HTTP_400_BAD_REQUEST
            )
        students = filterset.qs

        paginator = StandardPagination()
        page = paginator.paginate_queryset(students, request, view=self)
        return paginator.get_paginated_response(UserProfileSerializer(page, many=True).data)


@extend_schema(tags=['Student Approval'])
class PendingStudentListView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(summary="List students waiting for approval", responses={200: UserProfileSerializer(many=True)})
    def get(self, request):
        students = _students().filter(profile__status=UserProfile.Status.PENDING)
        data = UserProfileSerializer(students, many=True).data
        return Response({"students": data, "count": len(data)})


def _get_pending_student(user_id):
    try:
        user = User.objects.select_related('profile').get(pk=user_id)
    except User.DoesNotExist:
        return None, Response({"detail": "User not found."}, status=status.HTTP_404_NOT_FOUND)
    if not user.profile.is_student:
        return None, Response({"detail": "This user is not a student."}, status=status.HTTP_400_BAD_REQUEST)
    if user.profile.status != UserProfile.Status.PENDING:
        return None, Response(
            {"detail": f"This student is already {user.profile.status}."},
            status=status.HTTP_400_BAD_REQUEST
        )
    return user, None


@extend_schema(tags=['Student Approval'])
class ApproveStudentView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(summary="Approve a pending student", request=None, responses={200: dict, 400: dict, 404: dict})
    def put(self, request, user_id):
        user, error = _get_pending_student(user_id)
        if error:
            return error

        user.profile.approve(request.user)
        AuditLog.log(
            event_type=AuditLog.EventType.STUDENT_APPROVED,
            description=f"Student approved: {user.username}",
            request=request,
            metadata={'student_id': user.id}
        )
        logger.info(f"Student {user.username} approved by {request.user.username}")

        return Response({
            "message": "Student approved.",
            "user": user.profile.get_public_profile()
        })


@extend_schema(tags=['Student Approval'])
class RejectStudentView(APIView):
    permission_classes = [IsAuthenticated, IsAdmin]

    @extend_schema(summary="Reject a pending student", request=RejectStudentSerializer, responses={200: dict, 400: dict, 404: dict})
    def put(self, request, user_id):
        serializer = RejectStudentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, error = _get_pending_student(user_id)
        if error:
            return error

        reason = serializer.validated_data.get('reason', '')
        user.profile.reject(reason)
        AuditLog.log(
            event_type=AuditLog.EventType.STUDENT_REJECTED,
            description=f"Student rejected: {user.username}",
            request=request,
            metadata={'student_id': user.id, 'reason': reason}
        )
        logger.info(f"Student {user.username} rejected by {request.user.username}")

        return Response({
            "message": "Student rejected.",
            "user": user.profile.get_public_profile()
        })
