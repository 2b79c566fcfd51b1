from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='EndpointHit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('app', models.CharField(max_length=255)),
                ('uri', models.CharField(max_length=512)),
                ('ip', models.CharField(max_length=45)),
                ('timestamp', models.DateTimeField(db_index=True)),
            ],
            options={
                'indexes': [models.Index(fields=['uri', 'timestamp'], name='hits_uri_ts_idx')],
            },
        ),
    ]
