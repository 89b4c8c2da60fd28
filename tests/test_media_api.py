import pytest
from botocore.exceptions import ClientError

from heritage_crafts.utils.media_files import build_object_key, clean_original_name, prefix_for_mime, validate_bytes

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 64


def _upload(client, headers, content=PNG, name="workshop.png"):
    return client.post("/api/v1/media/upload", files={"file": (name, content, "image/png")}, headers=headers)


def test_upload_stores_object_and_row(client, learner, auth_headers, fake_s3):
    resp = _upload(client, auth_headers(learner))
    assert resp.status_code == 201
    body = resp.json()
    assert body["mime_type"] == "image/png"
    assert body["owner_id"] == learner.id
    assert body["original_name"] == "workshop.png"
    assert body["object_key"].startswith(f"images/users/{learner.id}/")
    assert fake_s3.objects[body["object_key"]] == PNG

    mine = client.get("/api/v1/media/me", headers=auth_headers(learner)).json()["items"]
    assert [m["id"] for m in mine] == [body["id"]]


def test_upload_rejects_non_media(client, learner, auth_headers):
    resp = _upload(client, auth_headers(learner), content=b"just some text", name="notes.png")
    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("File type not allowed")
    assert _upload(client, auth_headers(learner), content=b"").status_code == 400


def test_upload_requires_auth(client):
    assert _upload(client, {}).status_code == 401


def test_signed_url_is_owner_only(client, learner, make_user, admin, auth_headers):
    media_id = _upload(client, auth_headers(learner)).json()["id"]

    resp = client.get(f"/api/v1/media/{media_id}/signed", headers=auth_headers(learner))
    assert resp.json()["url"].startswith("http://s3.test/media/images/")
    assert resp.json()["expires_in"] == 600

    assert client.get(f"/api/v1/media/{media_id}/signed", headers=auth_headers(make_user())).status_code == 403
    assert client.get(f"/api/v1/media/{media_id}/signed", headers=auth_headers(admin)).status_code == 200
    assert client.get("/api/v1/media/9999/signed", headers=auth_headers(learner)).status_code == 404


def test_delete_removes_object(client, learner, auth_headers, fake_s3):
    body = _upload(client, auth_headers(learner)).json()
    assert client.delete(f"/api/v1/media/{body['id']}", headers=auth_headers(learner)).status_code == 204
    assert body["object_key"] not in fake_s3.objects
    assert client.get(f"/api/v1/media/{body['id']}/signed", headers=auth_headers(learner)).status_code == 404


def test_storage_failure_is_502(client, learner, auth_headers, fake_s3, monkeypatch):
    def boom(**kwargs):
        raise ClientError({"Error": {"Code": "500", "Message": "down"}}, "PutObject")

    monkeypatch.setattr(fake_s3, "upload_fileobj", boom)
    assert _upload(client, auth_headers(learner)).status_code == 502


# -----------------------------
# Utilitaires fichiers
# -----------------------------
def test_validate_bytes_limits():
    mime, ext, size, sha = validate_bytes(PNG, max_mb=1)
    assert (mime, ext, size) == ("image/png", ".png", len(PNG))
    assert len(sha) == 64
    with pytest.raises(ValueError):
        validate_bytes(PNG + b"\x00" * (1024 * 1024), max_mb=1)


def test_object_keys():
    assert prefix_for_mime("video/mp4") == "videos"
    assert prefix_for_mime("image/webp") == "images"
    key = build_object_key(prefix="images", owner_id=None, ext_with_dot="jpg")
    assert key.startswith("images/users/anonymous/") and key.endswith(".jpg")


def test_clean_original_name():
    assert clean_original_name("C:\\Users\\wong\\photo.jpg") == "photo.jpg"
    assert clean_original_name("/tmp/atelier/basket.png") == "basket.png"
    assert clean_original_name("") is None
    assert len(clean_original_name("a" * 300 + ".png")) == 255
