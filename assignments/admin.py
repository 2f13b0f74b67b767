from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.models import User

from .models import (
    Assignment, OptionSet, StudentProgress, Answer, AuditLog, BlacklistedToken, UserProfile
)


class UserProfileInline(admin.StackedInline):
    model = UserProfile
    fk_name = 'user'
    can_delete = False
    verbose_name_plural = 'Profile'


class UserAdmin(BaseUserAdmin):
    inlines = [UserProfileInline]
    list_display = ['username', 'first_name', 'last_name', 'get_role', 'get_status', 'is_staff']
    list_filter = ['is_staff', 'is_active', 'profile__role', 'profile__status']

    def get_role(self, obj):
        return obj.profile.get_role_display() if hasattr(obj, 'profile') else '-'
    get_role.short_description = 'Role'

    def get_status(self, obj):
        return obj.profile.get_status_display() if hasattr(obj, 'profile') else '-'
    get_status.short_description = 'Approval'


admin.site.unregister(User)
admin.site.register(User, UserAdmin)


class OptionSetInline(admin.TabularInline):
    model = OptionSet
    extra = 0
    fields = ['position', 'set_label', 'num_questions', 'options']
    readonly_fields = fields
    can_delete = False


class StudentProgressInline(admin.TabularInline):
    model = StudentProgress
    extra = 0
    fields = ['student', 'status', 'current_question_set', 'questions_completed_in_current_set', 'completed_at']
    readonly_fields = fields
    can_delete = False


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ['title', 'created_by', 'total_questions', 'due_date', 'created_at']
    list_filter = ['created_by']
    search_fields = ['title', 'description']
    inlines = [OptionSetInline, StudentProgressInline]
    readonly_fields = ['created_at', 'updated_at']


class AnswerInline(admin.TabularInline):
    model = Answer
    extra = 0
    readonly_fields = ['question_number', 'question_text', 'answer_text', 'answered_at', 'list_pos_lock']
    can_delete = False


@admin.register(StudentProgress)
class StudentProgressAdmin(admin.ModelAdmin):
    list_display = ['student', 'assignment', 'status', 'current_question_set', 'started_at', 'completed_at']
    list_filter = ['status']
    search_fields = ['student__username', 'assignment__title']
    inlines = [AnswerInline]
    readonly_fields = ['assigned_at', 'updated_at']


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['event_type', 'user', 'ip_address', 'created_at']
    list_filter = ['event_type']
    search_fields = ['user__username', 'description', 'ip_address']
    readonly_fields = ['user', 'event_type', 'description', 'ip_address', 'user_agent', 'metadata', 'created_at']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(BlacklistedToken)
class BlacklistedTokenAdmin(admin.ModelAdmin):
    list_display = ['__str__', 'created_at']
    readonly_fields = ['token', 'created_at']
