"""
Management command to set up demo data.
Creates an admin, approved and pending students, and a two-set assignment.
"""
from datetime import timedelta

from django.contrib.auth.models import User
from django.core.management.base import BaseCommand
from django.utils import timezone

from assignments.authentication import issue_token
from assignments.models import Assignment, UserProfile
from assignments.services import AssignmentService

DEMO_STUDENTS = [
    ('student1', 'Somchai', 'Dee', 'Chai', UserProfile.Status.APPROVED),
    ('student2', 'Suda', 'Jaidee', '', UserProfile.Status.APPROVED),
    ('student3', 'Nok', 'Sailom', 'Noknoi', UserProfile.Status.PENDING),
]


class Command(BaseCommand):
    help = 'Set up demo data for testing'

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE('\nSetting up demo data...\n'))

        admin, created = User.objects.get_or_create(
            username='admin',
            defaults={'first_name': 'Demo', 'last_name': 'Admin', 'is_active': True}
        )
        if created:
            admin.set_password('admin123')
            admin.save()
            admin.profile.role = UserProfile.Role.ADMIN
            admin.profile.status = UserProfile.Status.APPROVED
            admin.profile.save()
            self.stdout.write(self.style.SUCCESS('✓ Created admin: admin / admin123'))
        else:
            self.stdout.write('  Admin user already exists')

        approved = []
        for username, first_name, last_name, nickname, status in DEMO_STUDENTS:
            student, created = User.objects.get_or_create(
                username=username,
                defaults={'first_name': first_name, 'last_name': last_name, 'is_active': True}
            )
            if created:
                student.set_password('student123')
                student.save()
                profile = student.profile
                profile.role = UserProfile.Role.STUDENT
                profile.nickname = nickname
                profile.school = 'Demo School'
                profile.purpose = 'Practice arithmetic tiles'
                profile.save()
                if status == UserProfile.Status.APPROVED:
                    profile.approve(admin)
                self.stdout.write(self.style.SUCCESS(f'✓ Created {status} student: {username} / student123'))
            else:
                self.stdout.write(f'  Student {username} already exists')
            if student.profile.status == UserProfile.Status.APPROVED:
                approved.append(student)

        if not Assignment.objects.filter(created_by=admin, title='Demo: Tile Arithmetic').exists():
            assignment = AssignmentService.create(
                created_by=admin,
                title='Demo: Tile Arithmetic',
                description='Two warm-up questions, then one with locked tile positions.',
                total_questions=3,
                due_date=timezone.now() + timedelta(days=14),
                student_ids=[student.id for student in approved],
                option_sets=[
                    {
                        'options': {'totalCount': 8, 'operatorMode': 'random', 'operatorCount': 1},
                        'num_questions': 2,
                        'set_label': 'Warm-up',
                    },
                    {
                        'options': {'totalCount': 10, 'operatorMode': 'random', 'operatorCount': 2, 'lockMode': True},
                        'num_questions': 1,
                    },
                ],
            )
            self.stdout.write(self.style.SUCCESS(f'✓ Created assignment: {assignment.title}'))
        else:
            self.stdout.write('  Demo assignment already exists')

        self.stdout.write(self.style.NOTICE('\nBearer tokens:'))
        self.stdout.write(f'  admin: {issue_token(admin)}')
        for student in approved:
            self.stdout.write(f'  {student.username}: {issue_token(student)}')
        self.stdout.write(self.style.SUCCESS('\nDone. Swagger UI: /api/docs/\n'))
