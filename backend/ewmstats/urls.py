"""
EWM Stats URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'EWM Stats Service',
        'version': '1.0',
        'endpoints': {
            'hit': '/hit',
            'stats': '/stats',
            'user_comments': '/users/<userId>/events/<eventId>/comments',
            'event_comments': '/events/<eventId>/comments',
            'recent_comments': '/comments/recent',
            'moderation': '/admin/comments',
        },
        'admin': '/django-admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    # Kept off /admin/ so it never shadows /admin/comments/...
    path('django-admin/', admin.site.urls),
    path('', include('hits.urls')),
    path('', include('comments.urls')),
]
