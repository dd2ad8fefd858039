"""Tests for drive models."""

import pytest
from django.db import IntegrityError, transaction

from server.apps.drive.exceptions import InvalidArgumentError
from server.apps.drive.models import (
    File,
    FilePermission,
    Folder,
    PermissionLevel,
    ResourceKind,
)


def test_permission_levels_are_ordered():
    """Test view < edit < owner on the enum itself."""
    assert PermissionLevel.VIEW < PermissionLevel.EDIT < PermissionLevel.OWNER


@pytest.mark.parametrize(('raw', 'expected'), [
    ('view', PermissionLevel.VIEW),
    (' EDIT ', PermissionLevel.EDIT),
    ('owner', PermissionLevel.OWNER),
    (PermissionLevel.EDIT, PermissionLevel.EDIT),
])
def test_permission_level_parse(raw, expected):
    """Test level names parse case-insensitively."""
    assert PermissionLevel.parse(raw) is expected


def test_permission_level_parse_unknown():
    """Test unknown level name is rejected."""
    with pytest.raises(InvalidArgumentError):
        PermissionLevel.parse('admin')


def test_resource_kind_parse_unknown():
    """Test unknown resource kind is rejected."""
    assert ResourceKind.parse('folder') is ResourceKind.FOLDER
    with pytest.raises(InvalidArgumentError):
        ResourceKind.parse('archive')


@pytest.mark.django_db
def test_folder_str_and_trash_state(user, make_folder):
    """Test Folder __str__ and is_trashed."""
    folder = make_folder(user, 'Reports')

    assert str(folder) == f'{user.id}:Reports'
    assert not folder.is_trashed
    assert Folder.objects.active().filter(pk=folder.pk).exists()
    assert not Folder.objects.trashed().exists()


@pytest.mark.django_db
def test_root_folder_names_are_unique_per_owner(user, other_user, make_folder):
    """Test two root folders of one owner cannot share a name."""
    make_folder(user, 'Reports')
    make_folder(other_user, 'Reports')

    with pytest.raises(IntegrityError), transaction.atomic():
        make_folder(user, 'Reports')


@pytest.mark.django_db
def test_sibling_folder_names_are_unique(user, make_folder):
    """Test folders under one parent cannot share a name."""
    parent = make_folder(user, 'Work')
    make_folder(user, 'Reports', parent=parent)
    make_folder(user, 'Reports')

    with pytest.raises(IntegrityError), transaction.atomic():
        make_folder(user, 'Reports', parent=parent)


@pytest.mark.django_db
def test_file_size_cannot_be_negative(user, make_file):
    """Test check constraint on size_bytes."""
    with pytest.raises(IntegrityError), transaction.atomic():
        make_file(user, 'broken.txt', size_bytes=-1)


@pytest.mark.django_db
def test_folder_delete_cascades(user, other_user, make_folder, make_file, grant):
    """Test deleting a folder removes descendants, files and grants."""
    root = make_folder(user, 'Root')
    child = make_folder(user, 'Child', parent=root)
    file_instance = make_file(user, 'deep.txt', folder=child, storage_path='')
    grant(file_instance, other_user, 'view')

    root.delete()

    assert not Folder.objects.exists()
    assert not File.objects.exists()
    assert not FilePermission.objects.exists()


@pytest.mark.django_db
def test_grant_str(user, other_user, make_file, grant):
    """Test grant __str__ shows the level label."""
    file_instance = make_file(user, 'a.txt')
    permission = grant(file_instance, other_user, 'edit')

    assert permission.permission is PermissionLevel.EDIT
    assert str(permission) == f'file {file_instance.id}: {other_user.id}=edit'
