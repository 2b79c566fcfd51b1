from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Event',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('state', models.CharField(choices=[('PENDING', 'Pending'), ('PUBLISHED', 'Published'), ('CANCELED', 'Canceled')], db_index=True, default='PENDING', max_length=20)),
                ('comment_count', models.PositiveIntegerField(default=0)),
                ('created_on', models.DateTimeField(default=django.utils.timezone.now)),
                ('published_on', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'ordering': ['-created_on'],
            },
        ),
        migrations.CreateModel(
            name='Comment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('text', models.TextField()),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('PUBLISHED', 'Published'), ('REJECTED', 'Rejected'), ('DELETED', 'Deleted')], default='PENDING', max_length=20)),
                ('created', models.DateTimeField(default=django.utils.timezone.now)),
                ('edited', models.DateTimeField(blank=True, null=True)),
                ('moderator_message', models.TextField(blank=True, null=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='event_comments', to=settings.AUTH_USER_MODEL)),
                ('event', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='comments', to='comments.event')),
            ],
            options={
                'ordering': ['-created'],
                'indexes': [
                    models.Index(fields=['event', 'status', 'created'], name='comment_event_status_idx'),
                    models.Index(fields=['status', 'created'], name='comment_status_created_idx'),
                    models.Index(fields=['author', 'created'], name='comment_author_created_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('event', 'author'), name='unique_comment_per_event_author'),
                ],
            },
        ),
    ]
