"""目录服务测试：合并、回退、权限过滤、上传命名、删除与描述覆盖。"""

import httpx
import pytest

from app.packages.ivr.core.enums import EntryKind, ListingSourceEnum
from app.packages.ivr.core.exceptions import AppException, Unauthorized
from app.packages.ivr.services.access_policy import Principal
from app.packages.ivr.services.directory_service import DirectoryService, next_upload_name
from app.packages.ivr.services.entries import Entry


def _paths(entries) -> set[str]:
    return {entry.path for entry in entries}


def _file(path: str) -> Entry:
    return Entry(id=path, name=path.rsplit("/", 1)[-1], path=path, kind=EntryKind.MEDIA, modified_at="---")


def _folder(path: str) -> Entry:
    return Entry(id=path, name=path.rsplit("/", 1)[-1], path=path, kind=EntryKind.FOLDER, modified_at="---")


def _ok_listing(dirs=(), files=()):
    def handler(request: httpx.Request) -> httpx.Response:
        if "GetIVR2Dir" in request.url.path:
            return httpx.Response(200, json={"responseStatus": "OK", "dirs": list(dirs), "files": list(files)})
        return httpx.Response(200, json={"responseStatus": "OK"})

    return handler


# ----------------------------------------------------------------------
# 列表
# ----------------------------------------------------------------------


def test_baseline_listing_of_root(directory_service: DirectoryService, admin_user):
    listing = directory_service.list("", admin_user)
    assert listing.source is ListingSourceEnum.BASELINE
    assert _paths(listing.entries) == {"1", "2", "3"}


def test_baseline_folders_carry_child_counts(directory_service: DirectoryService, admin_user):
    folders = {e.path: e for e in directory_service.list("", admin_user).entries}
    assert (folders["1"].child_folder_count, folders["1"].child_file_count) == (2, 1)
    assert (folders["3"].child_folder_count, folders["3"].child_file_count) == (0, 1)


def test_baseline_files_get_default_creator_and_timestamp(directory_service: DirectoryService, admin_user):
    (entry,) = [e for e in directory_service.list("3", admin_user).entries]
    assert entry.path == "3/001.wav"
    assert entry.created_by == "מערכת ימות המשיח"
    assert entry.full_timestamp == "2023-10-15 12:00:00"


def test_deleted_path_never_listed(directory_service: DirectoryService, admin_user):
    directory_service.delete("1/M0000.wav", user=admin_user)
    listing = directory_service.list("1", admin_user)
    assert "1/M0000.wav" not in _paths(listing.entries)
    folders = {e.path: e for e in directory_service.list("", admin_user).entries}
    assert folders["1"].child_file_count == 0


def test_deleted_folder_hides_its_subtree_from_navigation(directory_service: DirectoryService, admin_user):
    directory_service.delete("2", user=admin_user)
    assert "2" not in _paths(directory_service.list("", admin_user).entries)


def test_standard_user_sees_ancestor_folder_but_not_siblings(directory_service: DirectoryService):
    user = Principal(id="050", display_name="משתמש", granted_paths=("2/1",))

    assert _paths(directory_service.list("", user).entries) == {"2"}
    assert _paths(directory_service.list("2", user).entries) == {"2/1"}
    assert _paths(directory_service.list("2/1", user).entries) == {"2/1/002.wav"}


def test_remote_failure_falls_back_to_baseline_plus_overlay(directory_service: DirectoryService, admin_user):
    directory_service.set_credential("token")
    created = directory_service.upload("1", b"abc", "new.wav", [], user=admin_user)

    listing = directory_service.list("1", admin_user)

    assert listing.source is ListingSourceEnum.BASELINE
    assert _paths(listing.entries) == {"1/1", "1/2", "1/M0000.wav", created.path}


def test_remote_listing_is_filtered_and_overridden(directory_service: DirectoryService, remote_handler, admin_user):
    remote_handler["handler"] = _ok_listing(
        dirs=[{"name": "5", "what": "remote folder"}],
        files=[{"name": "000.wav", "size": 10, "time": 1700000000}, {"name": "001.wav", "size": 10}],
    )
    directory_service.set_credential("token")
    directory_service.overlay.record_deletion("000.wav")
    directory_service.set_metadata("5", "local text", user=admin_user)

    listing = directory_service.list("", admin_user)

    assert listing.source is ListingSourceEnum.REMOTE
    assert _paths(listing.entries) == {"5", "001.wav"}
    folder = next(e for e in listing.entries if e.path == "5")
    assert folder.metadata_text == "local text"
    # 远端结果不做基线补齐
    assert folder.child_folder_count is None


def test_listing_requires_user(directory_service: DirectoryService):
    with pytest.raises(Unauthorized):
        directory_service.list("", None)


def test_folders_prefetch_returns_visible_root_folders(directory_service: DirectoryService):
    user = Principal(id="050", display_name="משתמש", granted_paths=("3",))
    assert [e.path for e in directory_service.folders(user)] == ["3"]


def test_find_resolves_single_entry(directory_service: DirectoryService, admin_user):
    entry = directory_service.find("/2/1/002.wav", admin_user)
    assert entry is not None and entry.name == "מסכת קידושין דף ב.wav"
    assert directory_service.find("2/1/missing.wav", admin_user) is None
    assert directory_service.find("", admin_user) is None


# ----------------------------------------------------------------------
# 上传
# ----------------------------------------------------------------------


def test_next_upload_name_uses_max_numeric_prefix():
    siblings = [_file("1/000.wav"), _file("1/001.wav"), _file("1/005.mp3"), _folder("1/9")]
    assert next_upload_name("recording.wav", siblings) == "006.wav"


def test_next_upload_name_without_numeric_siblings():
    assert next_upload_name("song.mp3", [_file("1/M0000.wav"), _folder("1/1")]) == "000.mp3"
    assert next_upload_name("noext", []) == "000"


def test_upload_without_remote_records_local_creation(directory_service: DirectoryService, admin_user):
    siblings = directory_service.list("2/1", admin_user).entries
    entry = directory_service.upload("2/1", b"RIFF", "shiur.wav", siblings, user=admin_user)

    assert entry.path == "2/1/003.wav"
    assert entry.kind is EntryKind.MEDIA
    assert entry.created_by == "מנהל ראשי"
    assert entry.size_bytes == 4
    assert entry.content_url is None

    listed = {e.path: e for e in directory_service.list("2/1", admin_user).entries}
    assert "2/1/003.wav" in listed
    assert directory_service.overlay.creations_under("2/1")


def test_upload_kind_follows_content_type_or_extension(directory_service: DirectoryService, admin_user):
    other = directory_service.upload("3", b"x", "notes.txt", [], user=admin_user, content_type="text/plain")
    audio = directory_service.upload("3", b"x", "clip.bin", [], user=admin_user, content_type="audio/mpeg")
    assert other.kind is EntryKind.OTHER
    assert audio.kind is EntryKind.MEDIA


def test_upload_confirmed_by_remote_is_not_recorded(directory_service: DirectoryService, remote_handler, admin_user):
    remote_handler["handler"] = _ok_listing()
    directory_service.set_credential("token")

    entry = directory_service.upload("1", b"RIFF", "a.wav", [_file("1/004.wav")], user=admin_user)

    assert entry.path == "1/005.wav"
    assert "DownloadFile" in entry.content_url
    assert directory_service.overlay.all_creations() == []


def test_upload_rejected_by_remote_falls_back_to_overlay(directory_service: DirectoryService, remote_handler, admin_user):
    remote_handler["handler"] = lambda request: httpx.Response(200, json={"responseStatus": "ERROR"})
    directory_service.set_credential("token")

    entry = directory_service.upload("1", b"RIFF", "a.wav", [], user=admin_user)

    assert [e.path for e in directory_service.overlay.all_creations()] == [entry.path]


# ----------------------------------------------------------------------
# 删除
# ----------------------------------------------------------------------


def test_delete_twice_is_idempotent(directory_service: DirectoryService, admin_user):
    directory_service.delete("3/001.wav", user=admin_user)
    directory_service.delete("3/001.wav", user=admin_user)
    assert directory_service.list("3", admin_user).entries == []
    assert directory_service.overlay.deleted_paths() == frozenset({"3/001.wav"})


def test_delete_is_recorded_even_when_remote_fails(directory_service: DirectoryService, admin_user):
    directory_service.set_credential("token")
    directory_service.delete("1/1/001.wav", user=admin_user)
    assert directory_service.overlay.is_deleted("1/1/001.wav")


def test_delete_root_is_rejected(directory_service: DirectoryService, admin_user):
    with pytest.raises(AppException):
        directory_service.delete("/", user=admin_user)


# ----------------------------------------------------------------------
# 搜索与描述
# ----------------------------------------------------------------------


def test_search_matches_names_case_insensitively(directory_service: DirectoryService, admin_user):
    results = directory_service.search("עדכון", admin_user)
    assert [e.name for e in results] == ["עדכון בוקר.wav"]
    assert directory_service.search("xyz", admin_user) == []
    assert {e.path for e in directory_service.search("WAV", admin_user)} >= {"3/001.wav", "1/1/001.wav"}


def test_search_with_empty_query_returns_nothing(directory_service: DirectoryService, admin_user):
    assert directory_service.search("   ", admin_user) == []


def test_search_respects_visibility_and_deletions(directory_service: DirectoryService, admin_user):
    user = Principal(id="050", display_name="משתמש", granted_paths=("1",))
    assert directory_service.search("שמחה", user) == []
    assert [e.path for e in directory_service.search("שמחה", admin_user)] == ["3/001.wav"]

    directory_service.delete("3/001.wav", user=admin_user)
    assert directory_service.search("שמחה", admin_user) == []


def test_search_includes_local_creations(directory_service: DirectoryService, admin_user):
    entry = directory_service.upload("2", b"x", "lesson.wav", [], user=admin_user)
    directory_service.set_metadata(entry.path, "הקלטה מיוחדת", user=admin_user)
    assert [e.path for e in directory_service.search("מיוחדת", admin_user)] == [entry.path]


def test_metadata_override_round_trip(directory_service: DirectoryService, admin_user):
    directory_service.set_metadata("1", "text", user=admin_user)
    folder = next(e for e in directory_service.list("", admin_user).entries if e.path == "1")
    assert folder.metadata_text == "text"
    assert [e.path for e in directory_service.search("text", admin_user)] == ["1"]

    directory_service.set_metadata("1", "", user=admin_user)
    folder = next(e for e in directory_service.list("", admin_user).entries if e.path == "1")
    assert folder.metadata_text == "חדשות והודעות"


# ----------------------------------------------------------------------
# 凭证
# ----------------------------------------------------------------------


def test_set_credential_switches_source(directory_service: DirectoryService, remote_handler, admin_user):
    remote_handler["handler"] = _ok_listing(dirs=[{"name": "7"}])
    directory_service.set_credential("token")
    assert directory_service.validate_credential() is True
    assert directory_service.list("", admin_user).source is ListingSourceEnum.REMOTE

    directory_service.set_credential("")
    assert directory_service.remote is None
    assert directory_service.validate_credential() is False
    assert directory_service.list("", admin_user).source is ListingSourceEnum.BASELINE


def test_listing_with_closed_remote_client_falls_back(directory_service: DirectoryService, remote_handler, admin_user):
    """切换凭证时旧客户端可能已被关闭，仍在使用它的请求应回退到基线数据。"""
    remote_handler["handler"] = _ok_listing(dirs=[{"name": "7"}])
    directory_service.set_credential("token")
    directory_service.remote.close()

    listing = directory_service.list("", admin_user)

    assert listing.source is ListingSourceEnum.BASELINE
    assert _paths(listing.entries) == {"1", "2", "3"}
    assert directory_service.validate_credential() is False
