from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


class BlacklistedToken(models.Model):
    """Access tokens revoked by logout; kept until they would have expired anyway."""
    token = models.CharField(max_length=512, unique=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.token[:20]}... (revoked {self.created_at:%Y-%m-%d %H:%M})"

    @classmethod
    def revoke(cls, token):
        entry, _ = cls.objects.get_or_create(token=token)
        return entry

    @classmethod
    def is_revoked(cls, token):
        return cls.objects.filter(token=token).exists()

    @classmethod
    def purge_expired(cls):
        lifetime = settings.JWT_SETTINGS['ACCESS_TOKEN_LIFETIME_MINUTES']
        cutoff = timezone.now() - timedelta(minutes=lifetime)
        deleted, _ = cls.objects.filter(created_at__lt=cutoff).delete()
        return deleted
