"""Tests for trash operations business logic."""

import pytest
from botocore.exceptions import EndpointConnectionError
from django.core.files.base import ContentFile
from django.db import transaction
from django.forms.models import model_to_dict

from server.apps.drive.exceptions import (
    AccessDeniedError,
    ConflictError,
    InsufficientPermissionError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.drive.infrastructure.storage import get_storage
from server.apps.drive.logic.file_operations import get_file, list_files, upload_file
from server.apps.drive.logic.folder_operations import create_folder, list_folders
from server.apps.drive.logic.trash_operations import (
    empty_trash,
    list_trash,
    permanent_delete_file,
    permanent_delete_folder,
    restore_file,
    restore_folder,
    soft_delete_file,
    soft_delete_folder,
)
from server.apps.drive.models import File, FilePermission, Folder, FolderPermission


def _row(instance):
    row = model_to_dict(instance)
    row['created_at'] = instance.created_at
    row['updated_at'] = instance.updated_at
    return row


@pytest.mark.django_db
class TestSoftDeleteAndRestore:
    """Tests for the trash round trip."""

    def test_soft_delete_file(self, user, make_file):
        """Test soft delete sets trashed_at only."""
        file_instance = make_file(user, 'a.txt')

        result = soft_delete_file(user.id, file_instance.id)

        assert result.message == 'File moved to trash'
        assert result.resource.trashed_at is not None
        assert result.resource.updated_at == file_instance.updated_at

    def test_round_trip_leaves_other_fields_unchanged(self, user, make_file):
        """Test delete then restore only touches trashed_at."""
        file_instance = make_file(user, 'a.txt', share_token='tok', is_public=True)
        before = _row(file_instance)

        soft_delete_file(user.id, file_instance.id)
        restored = restore_file(user.id, file_instance.id).resource

        assert restored.trashed_at is None
        assert _row(restored) == before

    def test_folder_round_trip(self, user, make_folder):
        """Test folders round trip the same way."""
        folder = make_folder(user, 'Docs')
        before = _row(folder)

        soft_delete_folder(user.id, folder.id)
        restored = restore_folder(user.id, folder.id).resource

        assert _row(restored) == before

    def test_double_soft_delete_fails(self, user, make_file):
        """Test a second delete observes a clean failure."""
        file_instance = make_file(user, 'a.txt')
        soft_delete_file(user.id, file_instance.id)

        with pytest.raises(NotFoundError):
            soft_delete_file(user.id, file_instance.id)

    def test_restore_active_fails(self, user, make_folder):
        """Test restoring an active resource fails."""
        folder = make_folder(user, 'Docs')

        with pytest.raises(NotFoundError):
            restore_folder(user.id, folder.id)

    def test_soft_delete_folder_does_not_cascade(
        self, user, make_folder, make_file,
    ):
        """Test children keep their own lifecycle state."""
        folder = make_folder(user, 'Docs')
        child = make_folder(user, 'Inner', parent=folder)
        inner_file = make_file(user, 'a.txt', folder=folder)

        soft_delete_folder(user.id, folder.id)

        child.refresh_from_db()
        inner_file.refresh_from_db()
        assert child.trashed_at is None
        assert inner_file.trashed_at is None

    def test_trash_and_active_listings_flip(self, user, make_file, make_folder):
        """Test a trashed resource moves from active listings to trash."""
        file_instance = make_file(user, 'a.txt')
        folder = make_folder(user, 'Docs')

        soft_delete_file(user.id, file_instance.id)
        soft_delete_folder(user.id, folder.id)

        assert list_files(user.id).items == []
        assert list_folders(user.id) == []
        assert list_trash(user.id, 'file').items == [file_instance]
        assert list_trash(user.id, 'folder').items == [folder]

        restore_file(user.id, file_instance.id)
        restore_folder(user.id, folder.id)

        assert list_files(user.id).items == [file_instance]
        assert list_folders(user.id) == [folder]
        assert list_trash(user.id, 'file').items == []

    def test_trashed_folder_keeps_name_reserved(self, user, make_folder):
        """Test a trashed name blocks a new sibling and restore succeeds."""
        folder = make_folder(user, 'Docs')
        soft_delete_folder(user.id, folder.id)

        with pytest.raises(ConflictError):
            create_folder(user.id, 'Docs')

        restored = restore_folder(user.id, folder.id).resource

        assert restored.name == 'Docs'
        assert list_folders(user.id) == [folder]

    def test_editor_cannot_trash(self, user, other_user, make_file, grant):
        """Test soft delete needs owner level."""
        file_instance = make_file(user, 'a.txt')
        grant(file_instance, other_user, 'edit')

        with pytest.raises(InsufficientPermissionError):
            soft_delete_file(other_user.id, file_instance.id)

    def test_stranger_denied(self, user, third_user, make_file):
        """Test lifecycle operations deny strangers."""
        file_instance = make_file(user, 'a.txt')

        for operation in (soft_delete_file, restore_file, permanent_delete_file):
            with pytest.raises(AccessDeniedError):
                operation(third_user.id, file_instance.id)


@pytest.mark.django_db
class TestPermanentDelete:
    """Tests for purging trashed resources."""

    def test_purge_file(self, user, mock_s3):
        """Test purge removes the object and the row."""
        file_instance = upload_file(user.id, 'a.txt', ContentFile(b'x')).resource
        soft_delete_file(user.id, file_instance.id)

        result = permanent_delete_file(user.id, file_instance.id)

        assert result.resource is None
        assert not File.objects.filter(pk=file_instance.pk).exists()
        assert not FilePermission.objects.exists()
        assert not get_storage().exists(file_instance.storage_path)

    def test_purge_active_file_fails(self, user, make_file):
        """Test purge is only legal from the trash."""
        file_instance = make_file(user, 'a.txt')

        with pytest.raises(NotFoundError):
            permanent_delete_file(user.id, file_instance.id)

        assert get_file(user.id, file_instance.id) == file_instance

    def test_purge_tolerates_storage_failure(self, user, make_file, monkeypatch):
        """Test the row is deleted even if the object cannot be."""
        file_instance = make_file(user, 'a.txt')
        soft_delete_file(user.id, file_instance.id)

        def failing_delete(name):
            raise EndpointConnectionError(endpoint_url='http://minio:9000')

        monkeypatch.setattr(get_storage(), 'delete', failing_delete)

        permanent_delete_file(user.id, file_instance.id)

        assert not File.objects.filter(pk=file_instance.pk).exists()

    def test_purge_folder_cascades(
        self,
        user,
        other_user,
        mock_s3,
        make_folder,
        grant,
        django_capture_on_commit_callbacks,
    ):
        """Test purging a folder removes its subtree and objects."""
        root = make_folder(user, 'Root')
        child = make_folder(user, 'Child', parent=root)
        grant(child, other_user, 'view')
        deep_file = upload_file(
            user.id, 'deep.txt', ContentFile(b'x'), folder_id=child.id,
        ).resource
        soft_delete_folder(user.id, root.id)

        with django_capture_on_commit_callbacks(execute=True):
            result = permanent_delete_folder(user.id, root.id)

        assert result.message == 'Folder permanently deleted'
        assert not Folder.objects.exists()
        assert not File.objects.exists()
        assert not FolderPermission.objects.exists()
        assert not get_storage().exists(deep_file.storage_path)

    def test_purge_active_folder_fails(self, user, make_folder):
        """Test an active folder cannot be purged."""
        folder = make_folder(user, 'Docs')

        with pytest.raises(NotFoundError):
            permanent_delete_folder(user.id, folder.id)


@pytest.mark.django_db(transaction=True)
class TestPurgeCommit:
    """Tests for cascaded object deletes and transaction outcome."""

    def test_committed_purge_deletes_objects(self, user, mock_s3, make_folder):
        """Test cascaded objects are deleted once the purge commits."""
        root = make_folder(user, 'Root')
        deep_file = upload_file(
            user.id, 'deep.txt', ContentFile(b'x'), folder_id=root.id,
        ).resource
        soft_delete_folder(user.id, root.id)

        permanent_delete_folder(user.id, root.id)

        assert not File.objects.exists()
        assert not get_storage().exists(deep_file.storage_path)

    def test_rolled_back_purge_keeps_objects(self, user, mock_s3, make_folder):
        """Test a purge rolled back by the caller leaves rows and objects."""
        root = make_folder(user, 'Root')
        deep_file = upload_file(
            user.id, 'deep.txt', ContentFile(b'x'), folder_id=root.id,
        ).resource
        soft_delete_folder(user.id, root.id)

        with pytest.raises(RuntimeError), transaction.atomic():
            permanent_delete_folder(user.id, root.id)
            raise RuntimeError('purge aborted')

        assert File.objects.filter(pk=deep_file.pk).exists()
        assert get_storage().exists(deep_file.storage_path)


@pytest.mark.django_db
class TestTrashListing:
    """Tests for listing and emptying the trash."""

    def test_list_trash_pagination(self, user, other_user, make_file):
        """Test newest trashed first with totals."""
        files = [make_file(user, f'{index}.txt') for index in range(3)]
        for file_instance in files:
            soft_delete_file(user.id, file_instance.id)
        theirs = make_file(other_user, 'theirs.txt')
        soft_delete_file(other_user.id, theirs.id)

        first_page = list_trash(user.id, 'file', page=1, limit=2)

        assert first_page.total == 3
        assert first_page.total_pages == 2
        assert first_page.has_more
        assert first_page.items == [files[2], files[1]]

        second_page = list_trash(user.id, 'file', page=2, limit=2)

        assert second_page.items == [files[0]]
        assert not second_page.has_more

    def test_list_trash_invalid_arguments(self, user):
        """Test kind, page and limit validation."""
        with pytest.raises(InvalidArgumentError):
            list_trash(user.id, 'archive')
        with pytest.raises(InvalidArgumentError):
            list_trash(user.id, 'file', page=0)
        with pytest.raises(InvalidArgumentError):
            list_trash(user.id, 'file', limit=101)

    def test_empty_trash(self, user, other_user, mock_s3, make_folder, make_file):
        """Test emptying purges only the caller's trash."""
        parent = make_folder(user, 'Alpha')
        child = make_folder(user, 'Beta', parent=parent)
        trashed_file = make_file(user, 'a.txt')
        kept_file = make_file(user, 'b.txt')
        theirs = make_file(other_user, 'c.txt')
        soft_delete_file(other_user.id, theirs.id)
        soft_delete_file(user.id, trashed_file.id)
        soft_delete_folder(user.id, child.id)
        soft_delete_folder(user.id, parent.id)

        result = empty_trash(user.id)

        # Beta went with Alpha's cascade
        assert result.resource.files == 1
        assert result.resource.folders == 1
        assert set(File.objects.all()) == {kept_file, theirs}
        assert not Folder.objects.exists()
