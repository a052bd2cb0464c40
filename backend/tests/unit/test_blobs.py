import pytest

from pitchpro.domain.errors import UploadRejected
from pitchpro.infra import blobs


def test_resolve_kind():
	assert blobs.resolve_kind("pitch-video").prefix == "pitch-videos"
	with pytest.raises(UploadRejected) as excinfo:
		blobs.resolve_kind("exe")
	assert excinfo.value.reason == "kind_invalid"


@pytest.mark.parametrize(
	"kind, content_type, size, reason",
	[
		("cv", "application/pdf", 0, "size_invalid"),
		("cv", "application/pdf", 10 * 1024 * 1024 + 1, "size_exceeded"),
		("cv", "image/png", 10, "mime_invalid"),
		("profile-photo", None, 10, "mime_invalid"),
		("pitch-video", "application/pdf", 10, "mime_invalid"),
	],
)
def test_validate_upload_rejections(kind, content_type, size, reason):
	with pytest.raises(UploadRejected) as excinfo:
		blobs.validate_upload(blobs.UPLOAD_KINDS[kind], content_type, size)
	assert excinfo.value.reason == reason


def test_validate_upload_accepts_case_insensitive_mime():
	blobs.validate_upload(blobs.UPLOAD_KINDS["profile-photo"], "IMAGE/PNG", 1024)


def test_build_path_sanitises_file_name():
	path = blobs.build_path(blobs.UPLOAD_KINDS["cv"], "A", "../../Mijn CV (2024).pdf")
	prefix, user_id, name = path.split("/")

	assert (prefix, user_id) == ("cv", "A")
	assert name.endswith("_Mijn_CV_2024_.pdf")
	assert ".." not in path


@pytest.mark.asyncio
async def test_local_blob_store_writes_file(tmp_path):
	store = blobs.LocalBlobStore(tmp_path, "http://testserver/files/")

	url = await store.upload(b"data", "cv/A/file.pdf", "application/pdf")

	assert url == "http://testserver/files/cv/A/file.pdf"
	assert (tmp_path / "cv" / "A" / "file.pdf").read_bytes() == b"data"


@pytest.mark.asyncio
async def test_local_blob_store_blocks_traversal(tmp_path):
	store = blobs.LocalBlobStore(tmp_path / "root", "http://testserver/files")

	with pytest.raises(UploadRejected):
		await store.upload(b"data", "../outside.txt", "text/plain")
