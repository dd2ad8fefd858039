"""Tests for share link operations."""

import dataclasses

import pytest

from server.apps.drive.exceptions import (
    ConflictError,
    InsufficientPermissionError,
    InvalidArgumentError,
    NotFoundError,
)
from server.apps.drive.logic import share_operations
from server.apps.drive.logic.share_operations import (
    build_share_url,
    get_shared_download_url,
    get_shared_file,
    issue_share_link,
    revoke_share_link,
)
from server.apps.drive.logic.trash_operations import soft_delete_file
from server.apps.drive.models import File


@pytest.mark.django_db
def test_issue_share_link(user, make_file, settings):
    """Test issuing a link makes the file public under a fresh token."""
    settings.DRIVE_SHARE_BASE_URL = 'https://drive.example.com/'
    file_instance = make_file(user, 'report.pdf')

    link = issue_share_link(user.id, file_instance.id)

    file_instance.refresh_from_db()
    assert file_instance.is_public
    assert file_instance.share_token == link.token
    assert len(link.token) >= 43
    assert link.url == f'https://drive.example.com/share/{link.token}'


@pytest.mark.django_db
def test_reissue_replaces_token(user, make_file):
    """Test a new link invalidates the previous token."""
    file_instance = make_file(user, 'report.pdf')
    first = issue_share_link(user.id, file_instance.id)

    second = issue_share_link(user.id, file_instance.id)

    assert first.token != second.token
    with pytest.raises(NotFoundError):
        get_shared_file(first.token)


@pytest.mark.django_db
def test_anonymous_fetch_omits_private_fields(user, make_file):
    """Test the public projection has no owner or storage path."""
    file_instance = make_file(user, 'report.pdf', format='application/pdf')
    link = issue_share_link(user.id, file_instance.id)

    shared = get_shared_file(link.token)

    fields = {field.name for field in dataclasses.fields(shared)}
    assert fields == {'id', 'name', 'size_bytes', 'format', 'created_at'}
    assert shared.id == file_instance.id
    assert shared.name == 'report.pdf'
    assert shared.format == 'application/pdf'


@pytest.mark.django_db
def test_shared_download_url(user, mock_s3, make_file):
    """Test a token grants a signed URL without authentication."""
    file_instance = make_file(user, 'report.pdf')
    link = issue_share_link(user.id, file_instance.id)

    download = get_shared_download_url(link.token)

    assert file_instance.storage_path.split('/')[-1] in download.url
    assert download.file_name == 'report.pdf'


@pytest.mark.django_db
def test_revoked_token_behaves_like_never_shared(user, make_file):
    """Test revocation makes the token unknown."""
    file_instance = make_file(user, 'report.pdf')
    link = issue_share_link(user.id, file_instance.id)

    result = revoke_share_link(user.id, file_instance.id)

    assert result.resource.share_token is None
    assert not result.resource.is_public
    with pytest.raises(NotFoundError):
        get_shared_file(link.token)
    with pytest.raises(NotFoundError):
        get_shared_download_url(link.token)


@pytest.mark.django_db
def test_trashed_file_is_not_shared(user, make_file):
    """Test a token stops resolving once the file is trashed."""
    file_instance = make_file(user, 'report.pdf')
    link = issue_share_link(user.id, file_instance.id)

    soft_delete_file(user.id, file_instance.id)

    with pytest.raises(NotFoundError):
        get_shared_file(link.token)


@pytest.mark.django_db
def test_non_public_token_is_not_shared(user, make_file):
    """Test a token on a private file does not resolve."""
    make_file(user, 'report.pdf', share_token='known', is_public=False)

    with pytest.raises(NotFoundError):
        get_shared_file('known')


@pytest.mark.parametrize('token', ['', 'x' * 256, None])
def test_invalid_token(token):
    """Test empty and oversized tokens are rejected."""
    with pytest.raises(InvalidArgumentError):
        get_shared_file(token)


@pytest.mark.django_db
def test_only_owner_can_share(user, other_user, make_file, grant):
    """Test an editor cannot issue links."""
    file_instance = make_file(user, 'report.pdf')
    grant(file_instance, other_user, 'edit')

    with pytest.raises(InsufficientPermissionError):
        issue_share_link(other_user.id, file_instance.id)


@pytest.mark.django_db
def test_issue_share_link_retries_on_collision(user, make_file, monkeypatch):
    """Test a token collision is retried and then reported."""
    taken = make_file(user, 'taken.pdf', share_token='taken', is_public=True)
    file_instance = make_file(user, 'report.pdf')
    monkeypatch.setattr(
        share_operations.secrets,
        'token_urlsafe',
        lambda nbytes: taken.share_token,
    )

    with pytest.raises(ConflictError):
        issue_share_link(user.id, file_instance.id)

    file_instance.refresh_from_db()
    assert file_instance.share_token is None
    assert not File.objects.filter(share_token='taken').exclude(pk=taken.pk).exists()


@pytest.mark.django_db
def test_issue_share_link_second_attempt_succeeds(user, make_file, monkeypatch):
    """Test a fresh token is used after one collision."""
    make_file(user, 'taken.pdf', share_token='taken', is_public=True)
    file_instance = make_file(user, 'report.pdf')
    tokens = iter(['taken', 'fresh'])
    monkeypatch.setattr(
        share_operations.secrets,
        'token_urlsafe',
        lambda nbytes: next(tokens),
    )

    link = issue_share_link(user.id, file_instance.id)

    assert link.token == 'fresh'


def test_build_share_url_quotes_token(settings):
    """Test the token is escaped in the URL."""
    settings.DRIVE_SHARE_BASE_URL = 'http://localhost:3000'

    assert build_share_url('a/b') == 'http://localhost:3000/share/a%2Fb'
