from django.urls import path

from .api.views import (
    HealthView,
    # Assignments
    AssignmentListCreateView, AvailableStudentsView, AssignmentDetailView, AssignStudentsView,
    # Progression
    StartAssignmentView, StudentStatusView, StudentAnswersView,
    CurrentOptionSetView, CurrentQuestionView,
    # Student views
    StudentAssignmentsView, StudentAssignmentDetailView,
)
from .api.auth_views import (
    StudentRegisterView, AdminRegisterView, LoginView, LogoutView, ProfileView,
    StudentListView, PendingStudentListView, ApproveStudentView, RejectStudentView,
)

# IDs are matched as strings; the services answer malformed values with a 400.
progress_prefix = 'assignments/<str:assignment_id>/students/<str:student_id>/'

urlpatterns = [
    path('health/', HealthView.as_view(), name='health'),

    # ============================================
    # AUTHENTICATION
    # ============================================
    path('auth/register/student/', StudentRegisterView.as_view(), name='register-student'),
    path('auth/register/admin/', AdminRegisterView.as_view(), name='register-admin'),
    path('auth/login/', LoginView.as_view(), name='login'),
    path('auth/logout/', LogoutView.as_view(), name='logout'),
    path('auth/profile/', ProfileView.as_view(), name='profile'),
    path('auth/admin/students/', StudentListView.as_view(), name='admin-students'),
    path('auth/admin/students/pending/', PendingStudentListView.as_view(), name='admin-students-pending'),
    path('auth/admin/students/<int:user_id>/approve/', ApproveStudentView.as_view(), name='approve-student'),
    path('auth/admin/students/<int:user_id>/reject/', RejectStudentView.as_view(), name='reject-student'),

    # ============================================
    # ASSIGNMENTS
    # ============================================
    path('assignments/', AssignmentListCreateView.as_view(), name='assignments'),
    path('assignments/available-students/', AvailableStudentsView.as_view(), name='available-students'),
    path('assignments/<str:assignment_id>/', AssignmentDetailView.as_view(), name='assignment-detail'),
    path('assignments/<str:assignment_id>/assign/', AssignStudentsView.as_view(), name='assign-students'),

    # ============================================
    # PROGRESSION
    # ============================================
    path(progress_prefix + 'start/', StartAssignmentView.as_view(), name='start-assignment'),
    path(progress_prefix + 'status/', StudentStatusView.as_view(), name='student-status'),
    path(progress_prefix + 'answers/', StudentAnswersView.as_view(), name='student-answers'),
    path(progress_prefix + 'current-set/', CurrentOptionSetView.as_view(), name='current-set'),
    path(progress_prefix + 'current-question/', CurrentQuestionView.as_view(), name='current-question'),

    # ============================================
    # STUDENT VIEWS
    # ============================================
    path('students/<str:student_id>/assignments/', StudentAssignmentsView.as_view(), name='student-assignments'),
    path(
        'students/<str:student_id>/assignments/<str:assignment_id>/',
        StudentAssignmentDetailView.as_view(),
        name='student-assignment-detail'
    ),
]
