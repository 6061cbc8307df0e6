from django.contrib import admin
from .models import ErrorLog


@admin.register(ErrorLog)
class ErrorLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'severity', 'source', 'message']
    list_filter = ['severity', 'source']
    search_fields = ['source', 'message']
    readonly_fields = ['source', 'message', 'stack', 'context', 'severity', 'created_at']
    ordering = ['-created_at']
