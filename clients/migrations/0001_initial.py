import uuid
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Client',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('uuid', models.UUIDField(db_index=True, default=uuid.uuid4, editable=False, help_text='Public identifier for API and URL usage (non-enumerable)', unique=True)),
                ('name', models.CharField(blank=True, max_length=255)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('sentiment', models.CharField(choices=[('unreviewed', 'Unreviewed'), ('good', 'Good'), ('bad', 'Bad')], default='unreviewed', help_text="Denormalized from the client's review", max_length=20)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clients', to='core.business')),
            ],
            options={
                'db_table': 'clients',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='ClientAction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('invited', 'Invitation email sent'), ('clicked', 'Review link clicked'), ('submitted', 'Review submitted')], max_length=20)),
                ('meta', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='client_actions', to=settings.AUTH_USER_MODEL)),
                ('business', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='client_actions', to='core.business')),
                ('client', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='actions', to='clients.client')),
            ],
            options={
                'db_table': 'client_actions',
                'ordering': ['created_at', 'id'],
            },
        ),
        migrations.AddIndex(
            model_name='clientaction',
            index=models.Index(fields=['business', 'client', 'action'], name='client_actions_lookup_idx'),
        ),
        migrations.AddConstraint(
            model_name='clientaction',
            constraint=models.UniqueConstraint(condition=models.Q(('action', 'submitted')), fields=('business', 'client'), name='client_actions_one_submission'),
        ),
    ]
