"""
Django Admin Configuration for the hit log
"""
from django.contrib import admin
from .models import EndpointHit


@admin.register(EndpointHit)
class EndpointHitAdmin(admin.ModelAdmin):
    list_display = ['app', 'uri', 'ip', 'timestamp']
    list_filter = ['app', 'timestamp']
    search_fields = ['uri', 'ip']
    readonly_fields = ['app', 'uri', 'ip', 'timestamp']

    def has_add_permission(self, request):
        # Hits arrive only through POST /hit
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        # Retention is handled outside the service
        return False
