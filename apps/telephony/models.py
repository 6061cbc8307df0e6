from django.db import models


class ErrorLog(models.Model):
    SEVERITY_INFO = 'info'
    SEVERITY_WARNING = 'warning'
    SEVERITY_ERROR = 'error'
    SEVERITY_CRITICAL = 'critical'
    SEVERITY_CHOICES = [
        (SEVERITY_INFO, 'Info'),
        (SEVERITY_WARNING, 'Warning'),
        (SEVERITY_ERROR, 'Error'),
        (SEVERITY_CRITICAL, 'Critical'),
    ]

    source = models.CharField(max_length=100)  # e.g. 'cron:release-numbers', 'webhook:recording'
    message = models.TextField()
    stack = models.TextField(blank=True, default='')
    context = models.JSONField(null=True, blank=True)
    severity = models.CharField(max_length=10, choices=SEVERITY_CHOICES, default=SEVERITY_ERROR)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['severity', 'created_at'], name='errorlog_severity_idx'),
        ]

    def __str__(self):
        return f'ErrorLog({self.severity}, {self.source})'
