import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Folder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('trashed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='folders', to=settings.AUTH_USER_MODEL)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='drive.folder')),
            ],
            options={
                'verbose_name': 'Folder',
                'verbose_name_plural': 'Folders',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['owner', 'trashed_at'], name='folders_owner_trashed_idx'),
                    models.Index(fields=['parent', 'trashed_at'], name='folders_parent_trashed_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('owner', 'parent', 'name'), name='folders_owner_parent_name_unique'),
                    models.UniqueConstraint(condition=models.Q(('parent__isnull', True)), fields=('owner', 'name'), name='folders_owner_root_name_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='File',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('size_bytes', models.BigIntegerField(help_text='File size in bytes')),
                ('format', models.CharField(help_text='MIME type', max_length=100)),
                ('storage_path', models.CharField(help_text='Object store key: {owner_id}/{uuid}_{name}', max_length=1024, unique=True)),
                ('share_token', models.CharField(blank=True, max_length=255, null=True, unique=True)),
                ('is_public', models.BooleanField(default=False)),
                ('trashed_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('folder', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='files', to='drive.folder')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='files', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File',
                'verbose_name_plural': 'Files',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['owner', 'trashed_at'], name='files_owner_trashed_idx'),
                    models.Index(fields=['folder', 'trashed_at'], name='files_folder_trashed_idx'),
                    models.Index(fields=['-created_at'], name='files_created_idx'),
                    models.Index(fields=['format'], name='files_format_idx'),
                    models.Index(fields=['size_bytes'], name='files_size_idx'),
                ],
                'constraints': [
                    models.CheckConstraint(condition=models.Q(('size_bytes__gte', 0)), name='files_size_non_negative'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FolderPermission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.PositiveSmallIntegerField(choices=[(1, 'view'), (2, 'edit'), (3, 'owner')])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('folder', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='permissions', to='drive.folder')),
                ('grantee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Folder permission',
                'verbose_name_plural': 'Folder permissions',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['grantee', 'folder'], name='folder_perms_grantee_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('folder', 'grantee'), name='folder_permissions_unique'),
                ],
            },
        ),
        migrations.CreateModel(
            name='FilePermission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.PositiveSmallIntegerField(choices=[(1, 'view'), (2, 'edit'), (3, 'owner')])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('file', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='permissions', to='drive.file')),
                ('grantee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='+', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'File permission',
                'verbose_name_plural': 'File permissions',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['grantee', 'file'], name='file_perms_grantee_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(fields=('file', 'grantee'), name='file_permissions_unique'),
                ],
            },
        ),
    ]
