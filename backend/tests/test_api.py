"""API tests over a freshly seeded site."""
from presetarr.middleware.correlation import correlation_id_filter, request_context_var


def _preset_id(client, name):
    return next(preset["id"] for preset in client.get("/api/presets").json() if preset["name"] == name)


class TestStatus:
    """Health and readiness."""

    def test_health(self, client):
        response = client.get("/api/status/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/api/status/ready")
        assert response.status_code == 200
        assert response.json()["checks"]["database"] is True

    def test_correlation_id_header(self, client):
        response = client.get("/api/status/health", headers={"X-Correlation-ID": "abc-123"})
        assert response.headers["X-Correlation-ID"] == "abc-123"


class TestPresets:
    """Preset listing, editing and deletion."""

    def test_core_presets_seeded(self, client):
        presets = client.get("/api/presets").json()

        assert [preset["name"] for preset in presets] == ["Lite", "Full"]
        assert all(preset["iscore"] for preset in presets)
        assert all(preset["state"] == "stored" for preset in presets)

    def test_get_preset(self, client):
        preset = client.get(f"/api/presets/{_preset_id(client, 'Lite')}").json()

        assert {"scope": "none", "name": "usecomments", "value": "0", "attributes": {}} in preset["items"]
        assert preset["plugins"] == [{"plugin_type": "mod", "name": "chat", "enabled": 0}]

    def test_missing_preset(self, client):
        response = client.get("/api/presets/999")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "PRESET_NOT_FOUND"

    def test_update_preset(self, client):
        preset_id = _preset_id(client, "Full")

        response = client.patch(f"/api/presets/{preset_id}", json={"comments": "Everything on"})

        assert response.status_code == 200
        assert response.json()["comments"] == "Everything on"
        assert response.json()["name"] == "Full"

    def test_update_requires_a_field(self, client):
        response = client.patch(f"/api/presets/{_preset_id(client, 'Full')}", json={})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"

    def test_delete_preset(self, client):
        preset_id = _preset_id(client, "Full")

        assert client.delete(f"/api/presets/{preset_id}").status_code == 204
        assert client.get(f"/api/presets/{preset_id}").status_code == 404

    def test_exclusions(self, client):
        assert client.get("/api/presets/exclusions").json() == {"settings": ["password@@quiz", "smtppass@@none"]}


class TestExportImport:
    """Creating presets from the site and from files."""

    def test_export_selected(self, client):
        response = client.post(
            "/api/presets",
            json={"name": "Comments only", "settings": ["usecomments@@none"]},
            headers={"X-User-Id": "7"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["item_count"] == 1
        assert body["items"][0]["value"] == "1"
        assert body["iscore"] is False

    def test_export_of_sensitive_only_rejected(self, client):
        response = client.post("/api/presets", json={"name": "Secrets", "settings": ["smtppass@@none"]})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_PRESET"

    def test_import_and_download(self, client, sample_xml):
        response = client.post("/api/presets/import", json={"xml": sample_xml})
        assert response.status_code == 201
        preset = response.json()
        assert preset["item_count"] == 2

        download = client.get(f"/api/presets/{preset['id']}/download")
        assert download.status_code == 200
        assert download.headers["content-type"].startswith("application/xml")
        assert "attachment" in download.headers["content-disposition"]
        assert "<NAME>Imported</NAME>" in download.text
        assert "NOSUCHSETTING" not in download.text

    def test_download_yaml(self, client):
        download = client.get(f"/api/presets/{_preset_id(client, 'Lite')}/download", params={"format": "yaml"})

        assert download.status_code == 200
        assert "name: Lite" in download.text

    def test_import_garbage(self, client):
        response = client.post("/api/presets/import", json={"xml": "<nope"})

        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_PRESET"


class TestTrees:
    """Settings trees for selection screens."""

    def test_site_tree(self, client):
        body = client.get("/api/presets/site/tree").json()

        assert "usecomments@@none" in body["flat"]["ids"]
        assert "localplugins" not in body["flat"]["ids"]

    def test_preset_tree(self, client, sample_xml):
        preset_id = client.post("/api/presets/import", json={"xml": sample_xml}).json()["id"]

        body = client.get(f"/api/presets/{preset_id}/tree").json()

        assert body["not_applicable"] == []
        assert "maxanswers@@mod_lesson" in body["flat"]["ids"]
        assert [node["id"] for node in body["tree"]] == ["development", "modules"]


class TestApplyRollback:
    """Preview, apply and roll back over HTTP."""

    def test_preview_changes_nothing(self, client):
        preset_id = _preset_id(client, "Lite")

        report = client.post(f"/api/presets/{preset_id}/preview").json()

        assert report["simulated"] is True
        assert "usecomments" in [result["name"] for result in report["applied"]]
        assert report["application_id"] is None
        assert client.get(f"/api/presets/{preset_id}/applications").json() == []

    def test_apply_then_rollback(self, client):
        preset_id = _preset_id(client, "Lite")

        report = client.post(f"/api/presets/{preset_id}/apply", headers={"X-User-Id": "2"}).json()
        assert report["application_id"] is not None
        assert report["failed"] == []

        again = client.post(f"/api/presets/{preset_id}/preview").json()
        assert again["applied"] == []

        assert client.get(f"/api/presets/{preset_id}").json()["state"] == "applied"
        applications = client.get(f"/api/presets/{preset_id}/applications").json()
        assert [application["id"] for application in applications] == [report["application_id"]]
        assert applications[0]["user_id"] == 2

        rollback = client.post(f"/api/presets/applications/{report['application_id']}/rollback").json()
        assert rollback["failed"] == []
        assert rollback["application_deleted"] is True

        after = client.post(f"/api/presets/{preset_id}/preview").json()
        assert [result["name"] for result in after["applied"]] == [result["name"] for result in report["applied"]]

    def test_purge_application(self, client):
        preset_id = _preset_id(client, "Lite")
        application_id = client.post(f"/api/presets/{preset_id}/apply").json()["application_id"]

        assert client.delete(f"/api/presets/applications/{application_id}").status_code == 204
        assert client.post(f"/api/presets/applications/{application_id}/rollback").status_code == 404

    def test_apply_missing_preset(self, client):
        response = client.post("/api/presets/999/apply")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "PRESET_NOT_FOUND"


class TestLogContext:
    """Request context attached to log records."""

    def test_filter_defaults_outside_a_request(self):
        record = {"extra": {}}

        assert correlation_id_filter(record) is True
        assert record["extra"] == {"correlation_id": "-", "user": "-"}

    def test_filter_uses_request_context(self):
        token = request_context_var.set(("abc12345", "4"))
        try:
            record = {"extra": {}}
            correlation_id_filter(record)
        finally:
            request_context_var.reset(token)

        assert record["extra"] == {"correlation_id": "abc12345", "user": "4"}
