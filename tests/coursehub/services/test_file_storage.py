import pytest

from coursehub.core import config
from coursehub.core.errors import FileRejected
from coursehub.services import file_storage


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config, 'UPLOAD_DIR', str(tmp_path))
    monkeypatch.setattr(config, 'PUBLIC_BASE_URL', 'http://files.test')
    monkeypatch.setattr(config, 'MAX_UPLOAD_BYTES', 16)
    return tmp_path


def test_store_upload_writes_bytes_and_returns_locator(upload_dir) -> None:
    stored = file_storage.store_upload('syllabus', 'Week 1 Notes.PDF', b'%PDF-1.4')

    assert stored.filename.startswith('Week-1-Notes-')
    assert stored.filename.endswith('.pdf')
    assert stored.locator == f'http://files.test/uploads/syllabus/{stored.filename}'
    assert (upload_dir / 'syllabus' / stored.filename).read_bytes() == b'%PDF-1.4'


def test_stored_names_are_unique() -> None:
    assert file_storage.build_stored_name('a.png') != file_storage.build_stored_name('a.png')


@pytest.mark.parametrize(
    ('name', 'payload', 'error_detail'),
    [
        ('script.exe', b'MZ', 'Only the following file types are allowed: .jpg, .jpeg, .png, .pdf'),
        ('empty.png', b'', 'File is required.'),
        ('big.jpg', b'x' * 17, 'File exceeds the 16 byte upload limit.'),
    ],
)
def test_upload_policy_rejections(name: str, payload: bytes, error_detail: str) -> None:
    with pytest.raises(FileRejected) as exception_info:
        file_storage.store_upload('slides', name, payload)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == error_detail


@pytest.mark.parametrize('section', ['../etc', 'a/b', '', 'x' * 65])
def test_section_must_be_a_single_path_segment(section: str, upload_dir) -> None:
    with pytest.raises(FileRejected):
        file_storage.store_upload(section, 'a.png', b'png')

    assert list(upload_dir.iterdir()) == []


def test_discard_upload_removes_stored_bytes(upload_dir) -> None:
    stored = file_storage.store_upload('slides', 'week1.png', b'png')

    file_storage.discard_upload(stored)

    assert not stored.path.exists()
    assert list((upload_dir / 'slides').iterdir()) == []
