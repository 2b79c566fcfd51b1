"""
Comments App URL Configuration
"""
from django.urls import path
from .views import (
    UserEventCommentsView,
    UserEventCommentDetailView,
    EventCommentsView,
    EventCommentCountView,
    EventCommentDetailView,
    RecentCommentsView,
    AdminCommentsView,
    AdminPendingCommentsView,
    AdminCommentSearchView,
    AdminCommentDetailView,
    AdminUserCommentsView,
    AdminUserCommentStatsView,
    AdminEventCommentsView,
)

urlpatterns = [
    # Author
    path(
        'users/<int:user_id>/events/<int:event_id>/comments',
        UserEventCommentsView.as_view(),
        name='user-event-comments'
    ),
    path(
        'users/<int:user_id>/events/<int:event_id>/comments/<int:comment_id>',
        UserEventCommentDetailView.as_view(),
        name='user-event-comment-detail'
    ),

    # Public
    path('events/<int:event_id>/comments', EventCommentsView.as_view(), name='event-comments'),
    path('events/<int:event_id>/comments/count', EventCommentCountView.as_view(), name='event-comment-count'),
    path(
        'events/<int:event_id>/comments/<int:comment_id>',
        EventCommentDetailView.as_view(),
        name='event-comment-detail'
    ),
    path('comments/recent', RecentCommentsView.as_view(), name='recent-comments'),

    # Admin
    path('admin/comments', AdminCommentsView.as_view(), name='admin-comments'),
    path('admin/comments/pending', AdminPendingCommentsView.as_view(), name='admin-pending-comments'),
    path('admin/comments/search', AdminCommentSearchView.as_view(), name='admin-comment-search'),
    path('admin/comments/<int:comment_id>', AdminCommentDetailView.as_view(), name='admin-comment-detail'),
    path('admin/comments/users/<int:user_id>', AdminUserCommentsView.as_view(), name='admin-user-comments'),
    path(
        'admin/comments/users/<int:user_id>/stats',
        AdminUserCommentStatsView.as_view(),
        name='admin-user-comment-stats'
    ),
    path('admin/comments/events/<int:event_id>', AdminEventCommentsView.as_view(), name='admin-event-comments'),
]
