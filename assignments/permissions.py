from rest_framework import permissions


class IsAdmin(permissions.BasePermission):
    message = "Only admins can perform this action."

    def has_permission(self, request, view):
        return is_admin(request.user)


class IsApprovedUser(permissions.BasePermission):
    """Admins, or students whose registration has been approved."""
    message = "Your account is not approved yet."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return is_admin(user) or is_approved_student(user)


def is_admin(user):
    if not user or not user.is_authenticated:
        return False
    return user.is_staff or (hasattr(user, 'profile') and user.profile.role == 'admin')


def is_student(user):
    return hasattr(user, 'profile') and user.profile.role == 'student'


def is_approved_student(user):
    return is_student(user) and user.profile.status == 'approved'


def can_act_for_student(user, student_id):
    """Admins act for anyone; a student only for themselves."""
    return is_admin(user) or user.id == student_id
