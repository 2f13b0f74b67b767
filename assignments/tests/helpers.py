from datetime import timedelta

from django.contrib.auth.models import User
from django.utils import timezone

from assignments.models import UserProfile


def make_admin(username='admin1', password='adminpass'):
    user = User.objects.create_user(username, password=password, first_name='Ada', last_name='Admin')
    user.profile.role = UserProfile.Role.ADMIN
    user.profile.status = UserProfile.Status.APPROVED
    user.profile.save()
    return user


def make_student(username, status=UserProfile.Status.APPROVED, password='studentpass',
                 first_name='Sam', last_name='Student', nickname='', school='Demo School'):
    user = User.objects.create_user(username, password=password, first_name=first_name, last_name=last_name)
    profile = user.profile
    profile.role = UserProfile.Role.STUDENT
    profile.status = status
    profile.nickname = nickname
    profile.school = school
    profile.purpose = 'Practice'
    profile.save()
    return user


def future(days=7):
    return timezone.now() + timedelta(days=days)


def option_set(num_questions, total_count=8, **options):
    return {
        'options': {'totalCount': total_count, 'operatorMode': 'random', 'operatorCount': 1, **options},
        'num_questions': num_questions,
    }
