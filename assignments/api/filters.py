import django_filters
from django.contrib.auth.models import User

from assignments.models import UserProfile


class StudentFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(field_name='profile__status', choices=UserProfile.Status.choices)

    class Meta:
        model = User
        fields = ['status']
