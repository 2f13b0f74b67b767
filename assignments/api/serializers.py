from django.contrib.auth.models import User
from rest_framework import serializers

from assignments.models import StudentProgress


class AssignmentCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200, trim_whitespace=True)
    description = serializers.CharField(max_length=1000, trim_whitespace=True)
    total_questions = serializers.IntegerField(min_value=1, max_value=100)
    due_date = serializers.DateTimeField()
    student_ids = serializers.ListField(
        child=serializers.JSONField(),
        required=False,
        help_text="IDs of approved students to assign right away"
    )
    option_sets = serializers.JSONField(
        required=False,
        help_text="Ordered option sets; num_questions must add up to total_questions"
    )


class AssignStudentsSerializer(serializers.Serializer):
    student_ids = serializers.JSONField(help_text="Non-empty list of approved student IDs")


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.CharField(help_text=f"One of: {', '.join(StudentProgress.Status.values)}")


class AnswerSubmitSerializer(serializers.Serializer):
    question_number = serializers.JSONField(help_text="1-based question number")
    question_text = serializers.CharField(max_length=1000, allow_blank=True)
    answer_text = serializers.CharField(max_length=2000, allow_blank=True)
    list_pos_lock = serializers.JSONField(
        required=False,
        allow_null=True,
        help_text="Lock positions in effect for this answer (list of {pos, value})"
    )


class PinQuestionSerializer(serializers.Serializer):
    elements = serializers.JSONField(help_text="Rack tiles of the generated question")
    solution_tokens = serializers.JSONField(required=False, allow_null=True)
    list_pos_lock = serializers.JSONField(required=False, allow_null=True)


class AvailableStudentSerializer(serializers.ModelSerializer):
    nickname = serializers.CharField(source='profile.nickname', read_only=True)
    school = serializers.CharField(source='profile.school', read_only=True)
    full_name = serializers.SerializerMethodField()
    display_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'first_name', 'last_name', 'nickname', 'school', 'full_name', 'display_name']
        read_only_fields = fields

    def get_full_name(self, obj) -> str:
        name = f"{obj.first_name} {obj.last_name}"
        nickname = obj.profile.nickname
        return f"{name} ({nickname})" if nickname else name

    def get_display_name(self, obj) -> str:
        return f"{obj.first_name} {obj.last_name} - {obj.profile.school}"
