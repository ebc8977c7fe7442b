from django.db import models

from django.utils.translation import gettext_lazy as _
from django.conf import settings


class AuditLog(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True)

    action_type = models.CharField(
        max_length=100)

    target_type = models.CharField(
        max_length=100)

    target_id = models.CharField(
        max_length=255)
    description = models.TextField()
    timestamp = models.DateTimeField(
        auto_now_add=True)

    class Meta:
        ordering = ['-timestamp']
        verbose_name = _('Audit Log')
        verbose_name_plural = _('Audit Logs')

    def __str__(self):
        actor = self.user.username if self.user else 'system'
        return f"Action: {self.action_type} on {self.target_type} ID {self.target_id} by {actor}"
