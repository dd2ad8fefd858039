"""Shared fixtures for drive app tests."""

import boto3
import pytest
from django.contrib.auth import get_user_model
from django.core.files.base import ContentFile
from moto import mock_aws

from server.apps.drive.models import (
    File,
    FilePermission,
    Folder,
    FolderPermission,
    PermissionLevel,
)

User = get_user_model()

BUCKET_NAME = 'drive-files'


@pytest.fixture
def user(db):
    """Create test user.

    Returns:
        User instance for testing.
    """
    return User.objects.create_user(
        username='testuser',
        password='testpass123',
        email='test@example.com',
    )


@pytest.fixture
def other_user(db):
    """Create second test user for isolation tests.

    Returns:
        Second user instance.
    """
    return User.objects.create_user(
        username='otheruser',
        password='testpass123',
        email='other@example.com',
    )


@pytest.fixture
def third_user(db):
    """Create a user that holds no grants at all."""
    return User.objects.create_user(
        username='stranger',
        password='testpass123',
        email='stranger@example.com',
    )


@pytest.fixture
def mock_s3():
    """Mock S3 service with drive-files bucket.

    Yields:
        boto3 S3 resource with drive-files bucket created.
    """
    with mock_aws():
        conn = boto3.resource('s3', region_name='us-east-1')
        conn.create_bucket(Bucket=BUCKET_NAME)

        yield conn


@pytest.fixture
def sample_file_content():
    """Sample file content for testing.

    Returns:
        ContentFile with test data.
    """
    return ContentFile(b'test file content', name='test.txt')


@pytest.fixture
def make_folder(db):
    """Factory creating folder rows directly.

    Returns:
        Callable ``(owner, name, parent=None) -> Folder``.
    """
    def factory(owner, name, parent=None):
        return Folder.objects.create(owner=owner, name=name, parent=parent)

    return factory


@pytest.fixture
def make_file(db):
    """Factory creating file rows without touching storage.

    Returns:
        Callable ``(owner, name, folder=None, **fields) -> File``.
    """
    counter = iter(range(1, 10_000))

    def factory(owner, name, folder=None, **fields):
        fields.setdefault('size_bytes', 100)
        fields.setdefault('format', 'text/plain')
        fields.setdefault(
            'storage_path',
            f'{owner.id}/{next(counter):032x}_{name}',
        )
        return File.objects.create(
            owner=owner,
            name=name,
            folder=folder,
            **fields,
        )

    return factory


@pytest.fixture
def grant(db):
    """Factory writing a grant row directly.

    Returns:
        Callable ``(resource, grantee, level) -> grant``.
    """
    def factory(resource, grantee, level):
        if isinstance(resource, File):
            return FilePermission.objects.create(
                file=resource,
                grantee=grantee,
                level=PermissionLevel.parse(level),
            )
        return FolderPermission.objects.create(
            folder=resource,
            grantee=grantee,
            level=PermissionLevel.parse(level),
        )

    return factory
