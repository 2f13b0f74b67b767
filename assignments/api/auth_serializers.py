"""
Authentication serializers with validation.
"""
from django.contrib.auth.models import User
from rest_framework import serializers

from assignments.models import UserProfile


class StudentRegistrationSerializer(serializers.ModelSerializer):
    """Registers a student account that waits for admin approval."""
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        style={'input_type': 'password'},
        help_text="Minimum 6 characters"
    )
    nickname = serializers.CharField(max_length=100, required=False, allow_blank=True)
    school = serializers.CharField(max_length=200)
    purpose = serializers.CharField(max_length=500)

    class Meta:
        model = User
        fields = ['username', 'password', 'first_name', 'last_name', 'nickname', 'school', 'purpose']
        extra_kwargs = {
            'first_name': {'required': True, 'allow_blank': False},
            'last_name': {'required': True, 'allow_blank': False},
        }

    def validate_username(self, value):
        value = value.strip().lower()
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("A user with this username already exists.")
        return value

    def create(self, validated_data):
        profile_fields = {
            'nickname': validated_data.pop('nickname', ''),
            'school': validated_data.pop('school'),
            'purpose': validated_data.pop('purpose'),
        }
        user = User.objects.create_user(**validated_data)

        profile = user.profile
        profile.role = UserProfile.Role.STUDENT
        profile.status = UserProfile.Status.PENDING
        for field, value in profile_fields.items():
            setattr(profile, field, value)
        profile.save()
        return user


class AdminRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(
        write_only=True,
        min_length=6,
        style={'input_type': 'password'}
    )

    class Meta:
        model = User
        fields = ['username', 'password', 'first_name', 'last_name']
        extra_kwargs = {
            'first_name': {'required': False},
            'last_name': {'required': False},
        }

    def validate_username(self, value):
        value = value.strip().lower()
        if User.objects.filter(username=value).exists():
            raise serializers.ValidationError("A user with this username already exists.")
        return value

    def create(self, validated_data):
        user = User.objects.create_user(**validated_data)
        profile = user.profile
        profile.role = UserProfile.Role.ADMIN
        profile.status = UserProfile.Status.APPROVED
        profile.save()
        return user


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(style={'input_type': 'password'})

    def validate_username(self, value):
        return value.strip().lower()


class RejectStudentSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=200, required=False, allow_blank=True)


class UserProfileSerializer(serializers.ModelSerializer):
    role = serializers.CharField(source='profile.role', read_only=True)
    status = serializers.CharField(source='profile.status', read_only=True)
    nickname = serializers.CharField(source='profile.nickname', read_only=True)
    school = serializers.CharField(source='profile.school', read_only=True)
    purpose = serializers.CharField(source='profile.purpose', read_only=True)
    rejection_reason = serializers.CharField(source='profile.rejection_reason', read_only=True)
    created_at = serializers.DateTimeField(source='profile.created_at', read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'first_name', 'last_name', 'role', 'status',
            'nickname', 'school', 'purpose', 'rejection_reason', 'created_at'
        ]
        read_only_fields = fields
