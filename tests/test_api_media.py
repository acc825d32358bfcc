"""Tests for the media library and certificate asset uploads.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import pytest

from ijazah_api.config import config

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
FONT = b"\x00\x01\x00\x00" + b"\x00" * 64


@pytest.fixture
def uploaded(test_client, admin):
    response = test_client.post(
        "/admin/media",
        files={"file": ("sheikh card.png", PNG, "image/png")},
        headers=admin["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestMediaLibrary:
    """Test uploading, listing, serving and deleting library files."""

    def test_upload(self, store, uploaded):
        assert uploaded["folder"] == "library"
        assert uploaded["filename"].endswith("_sheikh_card.png")
        assert uploaded["original_name"] == "sheikh card.png"
        assert uploaded["content_type"] == "image/png"
        assert uploaded["size"] == len(PNG)
        assert uploaded["url"] == f"{config.MEDIA_BASE_URL}/library/{uploaded['filename']}"
        assert (store.base_dir / "media" / "library" / uploaded["filename"]).read_bytes() == PNG

    def test_list(self, test_client, admin, uploaded):
        test_client.post(
            "/admin/media",
            files={"file": ("syllabus.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=admin["headers"],
        )

        response = test_client.get("/admin/media", headers=admin["headers"])

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["files"][0]["original_name"] == "syllabus.pdf"
        assert data["files"][1]["id"] == uploaded["id"]

    def test_same_name_twice_keeps_both(self, test_client, admin, uploaded):
        response = test_client.post(
            "/admin/media",
            files={"file": ("sheikh card.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        assert response.status_code == 201
        assert response.json()["filename"] != uploaded["filename"]

    def test_non_ascii_name(self, test_client, admin):
        response = test_client.post(
            "/admin/media",
            files={"file": ("شهادة.pdf", b"%PDF-1.4 test", "application/pdf")},
            headers=admin["headers"],
        )

        assert response.status_code == 201
        data = response.json()
        assert data["filename"].endswith("_file.pdf")
        assert data["original_name"] == "شهادة.pdf"

    def test_public_download(self, test_client, uploaded):
        response = test_client.get(f"/media/library/{uploaded['filename']}")

        assert response.status_code == 200
        assert response.content == PNG
        assert response.headers["content-type"] == "image/png"

    @pytest.mark.parametrize("filename,content", [
        ("run.exe", b"MZ"),
        ("notes", b"plain text"),
        ("empty.png", b""),
    ])
    def test_rejected_uploads(self, test_client, admin, filename, content):
        response = test_client.post(
            "/admin/media",
            files={"file": (filename, content, "application/octet-stream")},
            headers=admin["headers"],
        )

        assert response.status_code == 422

    def test_size_limit(self, test_client, admin, monkeypatch):
        monkeypatch.setattr(config, "MEDIA_MAX_BYTES", 16)

        response = test_client.post(
            "/admin/media",
            files={"file": ("large.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        assert response.status_code == 422
        assert "16 byte" in response.json()["detail"]

    def test_delete(self, test_client, store, admin, uploaded):
        response = test_client.delete(f"/admin/media/{uploaded['id']}", headers=admin["headers"])

        assert response.status_code == 204
        assert not (store.base_dir / "media" / "library" / uploaded["filename"]).exists()
        assert test_client.get("/admin/media", headers=admin["headers"]).json()["total"] == 0
        assert test_client.get(f"/media/library/{uploaded['filename']}").status_code == 404

    def test_delete_unknown(self, test_client, admin):
        response = test_client.delete("/admin/media/missing", headers=admin["headers"])

        assert response.status_code == 404

    def test_unknown_public_files(self, test_client, uploaded):
        assert test_client.get("/media/library/nothing.png").status_code == 404
        assert test_client.get(f"/media/private/{uploaded['filename']}").status_code == 404

    def test_list_unknown_folder(self, test_client, admin):
        response = test_client.get("/admin/media?folder=private", headers=admin["headers"])

        assert response.status_code == 422

    def test_requires_admin(self, test_client, student):
        response = test_client.post(
            "/admin/media",
            files={"file": ("card.png", PNG, "image/png")},
            headers=student["headers"],
        )

        assert response.status_code == 403


class TestSettingsAssets:
    """Test certificate asset uploads written into the settings."""

    @pytest.mark.parametrize("setting_key,prefix", [
        ("signature_image_url", "signature_"),
        ("second_signature_image_url", "second_signature_"),
        ("background_image_url", "background_"),
    ])
    def test_image_assets(self, test_client, admin, setting_key, prefix):
        response = test_client.post(
            f"/admin/settings/assets/{setting_key}",
            files={"file": ("upload.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        assert response.status_code == 200, response.text
        data = response.json()
        assert data["setting_key"] == setting_key
        assert data["media_file"]["folder"] == "settings"
        assert data["media_file"]["filename"].startswith(prefix)
        assert data["settings"][setting_key] == data["url"]
        assert test_client.get("/settings").json()[setting_key] == data["url"]

    def test_font_asset(self, test_client, admin):
        response = test_client.post(
            "/admin/settings/assets/custom_font_file_url",
            files={"file": ("Amiri-Regular.ttf", FONT, "font/ttf")},
            headers=admin["headers"],
        )

        assert response.status_code == 200
        data = response.json()
        assert data["media_file"]["filename"].startswith("font_")
        assert data["media_file"]["filename"].endswith(".ttf")
        served = test_client.get(f"/media/settings/{data['media_file']['filename']}")
        assert served.content == FONT

    def test_font_key_rejects_image(self, test_client, admin):
        response = test_client.post(
            "/admin/settings/assets/custom_font_file_url",
            files={"file": ("signature.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        assert response.status_code == 422

    def test_unknown_setting_key(self, test_client, admin):
        response = test_client.post(
            "/admin/settings/assets/header_text",
            files={"file": ("upload.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        assert response.status_code == 422
        assert test_client.get("/settings").json()["header_text"] == "إجازة قرآنية"

    def test_listed_under_settings_folder(self, test_client, admin, uploaded):
        test_client.post(
            "/admin/settings/assets/signature_image_url",
            files={"file": ("upload.png", PNG, "image/png")},
            headers=admin["headers"],
        )

        response = test_client.get("/admin/media?folder=settings", headers=admin["headers"])

        assert response.json()["total"] == 1
        assert response.json()["files"][0]["setting_key"] == "signature_image_url"

    def test_deleting_asset_clears_setting(self, test_client, admin):
        uploaded = test_client.post(
            "/admin/settings/assets/background_image_url",
            files={"file": ("paper.jpg", PNG, "image/jpeg")},
            headers=admin["headers"],
        ).json()

        response = test_client.delete(
            f"/admin/media/{uploaded['media_file']['id']}", headers=admin["headers"]
        )

        assert response.status_code == 204
        assert test_client.get("/settings").json()["background_image_url"] == ""

    def test_replaced_asset_keeps_new_url_on_delete(self, test_client, admin):
        first = test_client.post(
            "/admin/settings/assets/signature_image_url",
            files={"file": ("old.png", PNG, "image/png")},
            headers=admin["headers"],
        ).json()
        second = test_client.post(
            "/admin/settings/assets/signature_image_url",
            files={"file": ("new.png", PNG, "image/png")},
            headers=admin["headers"],
        ).json()

        test_client.delete(f"/admin/media/{first['media_file']['id']}", headers=admin["headers"])

        assert test_client.get("/settings").json()["signature_image_url"] == second["url"]
