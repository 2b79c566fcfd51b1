"""
Management command to seed the database with sample data.

Usage: python manage.py seed_data
"""

import random
from datetime import timedelta
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.utils import timezone

from comments.models import Event, Comment, CommentStatus
from comments.services import create_comment, moderate_comment
from hits.models import EndpointHit
from hits.services import record_hit


class Command(BaseCommand):
    help = 'Seed the database with sample users, events, comments and hits'

    def add_arguments(self, parser):
        parser.add_argument(
            '--users',
            type=int,
            default=10,
            help='Number of users to create'
        )
        parser.add_argument(
            '--events',
            type=int,
            default=5,
            help='Number of events to create'
        )
        parser.add_argument(
            '--comments',
            type=int,
            default=30,
            help='Number of comments to attempt (one per user and event at most)'
        )
        parser.add_argument(
            '--hits',
            type=int,
            default=200,
            help='Number of endpoint hits to record'
        )
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Clear existing data before seeding'
        )

    def handle(self, *args, **options):
        if options['clear']:
            self.stdout.write('Clearing existing data...')
            EndpointHit.objects.all().delete()
            Comment.objects.all().delete()
            Event.objects.all().delete()
            User.objects.filter(is_superuser=False).delete()

        self.stdout.write('Creating users...')
        users = self._create_users(options['users'])

        self.stdout.write('Creating events...')
        events = self._create_events(options['events'])

        self.stdout.write('Creating and moderating comments...')
        comments = self._create_comments(users, events, options['comments'])

        self.stdout.write('Recording hits...')
        hit_count = self._create_hits(events, options['hits'])

        self.stdout.write(self.style.SUCCESS(
            f'Successfully created:\n'
            f'  - {len(users)} users\n'
            f'  - {len(events)} events\n'
            f'  - {len(comments)} comments\n'
            f'  - {hit_count} hits'
        ))

    def _create_users(self, count):
        users = []
        for i in range(count):
            username = f'user{i+1}'
            user, _ = User.objects.get_or_create(
                username=username,
                defaults={
                    'email': f'{username}@example.com',
                    'first_name': f'User {i+1}',
                }
            )
            users.append(user)
        return users

    def _create_events(self, count):
        titles = [
            "Jazz evening in the park",
            "City marathon",
            "Open-air cinema night",
            "Board games meetup",
            "Photography walk",
        ]

        events = []
        for i in range(count):
            # Every fourth event stays unpublished and cannot be commented on
            published = i % 4 != 3
            events.append(Event.objects.create(
                title=f"{random.choice(titles)} #{i+1}",
                state=Event.State.PUBLISHED if published else Event.State.PENDING,
                published_on=timezone.now() if published else None,
            ))
        return events

    def _create_comments(self, users, events, count):
        comment_texts = [
            "Great event, totally worth the ticket!",
            "The organisation could have been better this time.",
            "Thanks to everyone who came, see you next year.",
            "Does anyone know whether parking is available nearby?",
            "Loved the atmosphere, the music was fantastic.",
        ]
        decisions = [
            CommentStatus.PUBLISHED,
            CommentStatus.PUBLISHED,
            CommentStatus.REJECTED,
            None,  # left in the moderation queue
        ]

        published_events = [e for e in events if e.state == Event.State.PUBLISHED]
        pairs = [(u, e) for u in users for e in published_events]
        random.shuffle(pairs)

        comments = []
        for user, event in pairs[:count]:
            if Comment.objects.filter(event=event, author=user).exists():
                continue
            comment = create_comment(user.id, event.id, random.choice(comment_texts))
            decision = random.choice(decisions)
            if decision is not None:
                comment = moderate_comment(comment.id, decision)
            comments.append(comment)
        return comments

    def _create_hits(self, events, count):
        uris = ['/events'] + [f'/events/{event.id}' for event in events]
        now = timezone.now()

        for _ in range(count):
            record_hit(
                app='ewm-main-service',
                uri=random.choice(uris),
                ip=f'192.168.0.{random.randint(1, 20)}',
                timestamp=now - timedelta(minutes=random.randint(0, 60 * 24 * 7)),
            )
        return count
