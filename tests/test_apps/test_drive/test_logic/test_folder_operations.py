"""Tests for folder operations business logic."""

import pytest
from django.utils import timezone

from server.apps.drive.exceptions import (
    AccessDeniedError,
    ConflictError,
    InsufficientPermissionError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.drive.logic.folder_operations import (
    create_folder,
    get_folder,
    list_folders,
    rename_folder,
)
from server.apps.drive.models import Folder


@pytest.mark.django_db
def test_create_folder_success(user):
    """Test creating a root folder."""
    result = create_folder(user.id, 'Reports')

    assert result.message == 'Folder created successfully'
    assert result.resource.owner_id == user.id
    assert result.resource.parent_id is None
    assert result.resource.trashed_at is None


@pytest.mark.django_db
def test_create_folder_duplicate_conflicts(user):
    """Test an identical create is rejected."""
    create_folder(user.id, 'Reports')

    with pytest.raises(ConflictError):
        create_folder(user.id, 'Reports')

    assert Folder.objects.filter(owner=user).count() == 1


@pytest.mark.django_db
def test_create_folder_same_name_other_owner(user, other_user):
    """Test names are unique per owner only."""
    create_folder(user.id, 'Reports')

    assert create_folder(other_user.id, 'Reports').resource.name == 'Reports'


@pytest.mark.django_db
def test_create_folder_invalid_name(user):
    """Test name validation."""
    with pytest.raises(InvalidArgumentError):
        create_folder(user.id, '  ')


@pytest.mark.django_db
def test_create_folder_in_parent_requires_edit(
    user, other_user, make_folder, grant,
):
    """Test creating inside someone else's folder needs edit."""
    parent = make_folder(user, 'Shared')
    grant(parent, other_user, 'view')

    with pytest.raises(InsufficientPermissionError):
        create_folder(other_user.id, 'Mine', parent_id=parent.id)


@pytest.mark.django_db
def test_create_folder_in_trashed_parent(user, make_folder):
    """Test a trashed parent cannot receive children."""
    parent = make_folder(user, 'Old')
    Folder.objects.filter(pk=parent.pk).update(trashed_at=timezone.now())

    with pytest.raises(NotFoundError):
        create_folder(user.id, 'New', parent_id=parent.id)


@pytest.mark.django_db
def test_rename_folder(user, make_folder):
    """Test rename updates name and updated_at."""
    folder = make_folder(user, 'Draft')
    before = folder.updated_at

    result = rename_folder(user.id, folder.id, 'Final')

    folder.refresh_from_db()
    assert result.message == 'Folder renamed successfully'
    assert folder.name == 'Final'
    assert folder.updated_at >= before


@pytest.mark.django_db
def test_rename_folder_conflict(user, make_folder):
    """Test rename onto a sibling's name."""
    make_folder(user, 'Final')
    folder = make_folder(user, 'Draft')

    with pytest.raises(ConflictError):
        rename_folder(user.id, folder.id, 'Final')

    folder.refresh_from_db()
    assert folder.name == 'Draft'


@pytest.mark.django_db
def test_rename_folder_view_grant_denied(user, other_user, make_folder, grant):
    """Test a viewer cannot rename."""
    folder = make_folder(user, 'Draft')
    grant(folder, other_user, 'view')

    with pytest.raises(InsufficientPermissionError):
        rename_folder(other_user.id, folder.id, 'Mine')


@pytest.mark.django_db
def test_get_folder_stranger_denied(user, third_user, make_folder):
    """Test a stranger cannot read a folder."""
    folder = make_folder(user, 'Private')

    with pytest.raises(AccessDeniedError):
        get_folder(third_user.id, folder.id)


@pytest.mark.django_db
def test_get_folder_trashed(user, make_folder):
    """Test trashed folders are not returned."""
    folder = make_folder(user, 'Old')
    Folder.objects.filter(pk=folder.pk).update(trashed_at=timezone.now())

    with pytest.raises(NotFoundError):
        get_folder(user.id, folder.id)


@pytest.mark.django_db
def test_list_folders(user, other_user, make_folder):
    """Test listing root level and children, owner only, by name."""
    parent = make_folder(user, 'Work')
    make_folder(user, 'Zeta', parent=parent)
    make_folder(user, 'Alpha', parent=parent)
    trashed = make_folder(user, 'Gone', parent=parent)
    Folder.objects.filter(pk=trashed.pk).update(trashed_at=timezone.now())
    make_folder(other_user, 'Theirs')

    assert [f.name for f in list_folders(user.id)] == ['Work']
    assert [f.name for f in list_folders(user.id, parent.id)] == ['Alpha', 'Zeta']


@pytest.mark.django_db
def test_list_folders_limit(user):
    """Test limit bounds."""
    with pytest.raises(InvalidArgumentError):
        list_folders(user.id, limit=0)
    with pytest.raises(InvalidArgumentError):
        list_folders(user.id, limit=101)
