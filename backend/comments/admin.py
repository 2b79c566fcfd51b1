"""
Django Admin Configuration for events and comments
"""
from django.contrib import admin
from .models import Event, Comment


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ['title', 'state', 'comment_count', 'created_on', 'published_on']
    list_filter = ['state', 'created_on']
    search_fields = ['title']
    # Maintained by comments.services only
    readonly_fields = ['comment_count', 'created_on']


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ['id', 'event', 'author', 'status', 'created', 'edited']
    list_filter = ['status', 'created']
    search_fields = ['text', 'author__username']
    # Text and status changes go through the API so length bounds and the counter hold
    readonly_fields = ['text', 'event', 'author', 'status', 'created', 'edited']

    def has_delete_permission(self, request, obj=None):
        # DELETE /admin/comments/<id> adjusts the event counter, this would not
        return False
