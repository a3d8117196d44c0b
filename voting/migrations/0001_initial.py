import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='Candidate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('registration_number', models.CharField(max_length=32, unique=True)),
                ('program', models.CharField(blank=True, default='', max_length=200)),
                ('photo', models.CharField(blank=True, default='', help_text='Photo URL or path (upload handled elsewhere)', max_length=500)),
                ('vision', models.TextField(blank=True, default='')),
                ('mission', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['created_at', 'pk'],
            },
        ),
        migrations.CreateModel(
            name='Voter',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('registration_number', models.CharField(help_text='Student registration number (NIM)', max_length=32, unique=True)),
                ('name', models.CharField(max_length=200, validators=[django.core.validators.MaxLengthValidator(200)])),
                ('program', models.CharField(blank=True, default='', help_text='Program of study', max_length=200)),
                ('role', models.CharField(choices=[('VOTER', 'Voter'), ('ADMIN', 'Admin'), ('SUPER_ADMIN', 'Super admin'), ('MONITORING', 'Monitoring')], default='VOTER', max_length=20)),
                ('has_voted', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['program'], name='voter_program_idx'),
                    models.Index(fields=['role'], name='voter_role_idx'),
                    models.Index(fields=['has_voted'], name='voter_has_voted_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AdminLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('target', models.CharField(blank=True, default='', max_length=255)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admin_logs', to='voting.voter')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['-created_at'], name='adminlog_created_idx'),
                    models.Index(fields=['action'], name='adminlog_action_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Vote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('candidate', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='votes', to='voting.candidate')),
                ('voter', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='vote', to='voting.voter')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='VotingSession',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('redeem_code', models.CharField(max_length=16, unique=True)),
                ('is_validated', models.BooleanField(default=False)),
                ('validated_at', models.DateTimeField(blank=True, null=True)),
                ('is_used', models.BooleanField(default=False)),
                ('is_current', models.BooleanField(default=True)),
                ('expires_at', models.DateTimeField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('validated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='validated_sessions', to='voting.voter')),
                ('voter', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='voting_sessions', to='voting.voter')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['voter', 'is_current'], name='session_voter_current_idx'),
                    models.Index(fields=['is_validated', 'validated_at'], name='session_validated_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(condition=models.Q(('is_current', True)), fields=('voter',), name='one_current_session_per_voter'),
                    models.CheckConstraint(condition=models.Q(('is_used', False), ('is_validated', True), _connector='OR'), name='session_used_only_after_validation'),
                ],
            },
        ),
    ]
