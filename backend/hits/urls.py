"""
Hits App URL Configuration
"""
from django.urls import path
from .views import HitView, StatsView

urlpatterns = [
    path('hit', HitView.as_view(), name='hit'),
    path('stats', StatsView.as_view(), name='stats'),
]
