"""Tests for thumbnail upload and read endpoints."""

import uuid

import pytest

from tubely.config.settings import settings
from tubely.utils.security import make_jwt

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4


def _raw_multipart(field: str, filename: str, data: bytes) -> tuple[bytes, dict]:
    """Multipart body whose file part carries no Content-Type header."""
    boundary = "tubelyboundary"
    body = (
        f"--{boundary}\r\n"
        f'Content-Disposition: form-data; name="{field}"; filename="{filename}"\r\n'
        "\r\n"
    ).encode() + data + f"\r\n--{boundary}--\r\n".encode()
    return body, {"Content-Type": f"multipart/form-data; boundary={boundary}"}


class TestThumbnailUpload:
    def test_upload_and_read_back(self, client, video, auth_headers, db_session):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 204
        assert resp.content == b""

        db_session.refresh(video)
        assert video.thumbnail_url == f"http://testserver/api/thumbnails/{video.id}"

        read = client.get(f"/api/thumbnails/{video.id}")
        assert read.status_code == 200
        assert read.content == PNG_BYTES
        assert read.headers["content-type"] == "image/png"
        assert read.headers["cache-control"] == "no-store"

    def test_second_upload_replaces_first(self, client, video, auth_headers):
        client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("a.png", b"first", "image/png")},
        )
        client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("b.jpg", b"second", "image/jpeg")},
        )
        read = client.get(f"/api/thumbnails/{video.id}")
        assert read.content == b"second"
        assert read.headers["content-type"] == "image/jpeg"

    def test_invalid_video_id(self, client, auth_headers):
        resp = client.post(
            "/api/thumbnail_upload/not-a-uuid",
            headers=auth_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid video ID"}

    def test_missing_token(self, client, video):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 401

    def test_malformed_authorization_header(self, client, video):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers={"Authorization": "Token abc"},
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400

    def test_token_signed_with_other_secret(self, client, video, owner_id):
        token = make_jwt(owner_id, "not-the-server-secret")
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers={"Authorization": f"Bearer {token}"},
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 401
        assert resp.json() == {"error": "Couldn't validate JWT"}

    def test_unknown_video(self, client, auth_headers):
        resp = client.post(
            f"/api/thumbnail_upload/{uuid.uuid4()}",
            headers=auth_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 404

    def test_not_owner(self, client, video, other_user_headers, db_session, thumbnail_store):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=other_user_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 403
        db_session.refresh(video)
        assert video.thumbnail_url is None
        assert thumbnail_store.load(video.id) is None

    def test_missing_field(self, client, video, auth_headers):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"image": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json() == {"error": "Thumbnail file missing"}

    def test_field_is_not_a_file(self, client, video, auth_headers):
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            data={"thumbnail": "just text"},
            files={"other": ("x.txt", b"x", "text/plain")},
        )
        assert resp.status_code == 400

    def test_missing_media_type(self, client, video, auth_headers):
        body, headers = _raw_multipart("thumbnail", "thumb", PNG_BYTES)
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers={**auth_headers, **headers},
            content=body,
        )
        assert resp.status_code == 400
        assert "Content-Type" in resp.json()["error"]

    def test_oversized_thumbnail(self, client, video, auth_headers, db_session, thumbnail_store):
        too_big = b"\x00" * (settings.MAX_THUMBNAIL_UPLOAD_BYTES + 1)
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("big.png", too_big, "image/png")},
        )
        assert resp.status_code == 400
        assert "size limit" in resp.json()["error"]
        db_session.refresh(video)
        assert video.thumbnail_url is None
        assert thumbnail_store.load(video.id) is None

    def test_declared_length_rejected_before_parsing(self, client, video, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "MAX_THUMBNAIL_UPLOAD_BYTES", 16)
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("big.png", b"\x00" * 200_000, "image/png")},
        )
        assert resp.status_code == 400

    def test_exact_limit_is_accepted(self, client, video, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "MAX_THUMBNAIL_UPLOAD_BYTES", 1024)
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("ok.png", b"\x01" * 1024, "image/png")},
        )
        assert resp.status_code == 204


class TestThumbnailRead:
    def test_unknown_video(self, client):
        resp = client.get(f"/api/thumbnails/{uuid.uuid4()}")
        assert resp.status_code == 404

    def test_video_without_thumbnail(self, client, video):
        resp = client.get(f"/api/thumbnails/{video.id}")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Thumbnail not found"}

    def test_invalid_id(self, client):
        resp = client.get("/api/thumbnails/nope")
        assert resp.status_code == 400


class TestDiskMode:
    @pytest.fixture
    def disk_client(self, client, tmp_path):
        from tubely.api.deps import get_thumbnail_store
        from tubely.main import app
        from tubely.storage.thumbnails import DiskThumbnailStore

        store = DiskThumbnailStore(str(tmp_path), "http://testserver")
        app.dependency_overrides[get_thumbnail_store] = lambda: store
        return client, tmp_path

    def test_upload_writes_file(self, disk_client, video, auth_headers, db_session):
        client, root = disk_client
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("thumb.png", PNG_BYTES, "image/png")},
        )
        assert resp.status_code == 204
        assert (root / f"{video.id}.png").read_bytes() == PNG_BYTES

        db_session.refresh(video)
        assert video.thumbnail_url == f"http://testserver/assets/{video.id}.png"

        read = client.get(f"/api/thumbnails/{video.id}")
        assert read.content == PNG_BYTES
        assert read.headers["content-type"] == "image/png"

    def test_dotted_subtype(self, disk_client, video, auth_headers, db_session):
        client, root = disk_client
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("thumb.ico", b"icondata", "image/vnd.microsoft.icon")},
        )
        assert resp.status_code == 204
        db_session.refresh(video)
        assert video.thumbnail_url == f"http://testserver/assets/{video.id}.vnd.microsoft.icon"

        read = client.get(f"/api/thumbnails/{video.id}")
        assert read.status_code == 200
        assert read.content == b"icondata"
        assert read.headers["content-type"] == "image/vnd.microsoft.icon"

    def test_media_type_survives_disk_round_trip(self, disk_client, video, auth_headers):
        client, root = disk_client
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers=auth_headers,
            files={"thumbnail": ("thumb.avif", b"avifdata", "image/avif")},
        )
        assert resp.status_code == 204

        read = client.get(f"/api/thumbnails/{video.id}")
        assert read.content == b"avifdata"
        assert read.headers["content-type"] == "image/avif"


def _chunks(body: bytes, size: int):
    for i in range(0, len(body), size):
        yield body[i:i + size]


class TestChunkedUpload:
    def test_chunked_body_over_limit_rejected(
        self, client, video, auth_headers, db_session, thumbnail_store, monkeypatch
    ):
        monkeypatch.setattr(settings, "MAX_THUMBNAIL_UPLOAD_BYTES", 16)
        body, headers = _raw_multipart("thumbnail", "big.png", b"\x00" * 200_000)
        resp = client.post(
            f"/api/thumbnail_upload/{video.id}",
            headers={**auth_headers, **headers},
            content=_chunks(body, 8192),
        )
        assert resp.status_code == 400
        assert "size limit" in resp.json()["error"]
        db_session.refresh(video)
        assert video.thumbnail_url is None
        assert thumbnail_store.load(video.id) is None
