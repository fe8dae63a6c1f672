"""Tests for the GitHub webhook route."""

import hashlib
import hmac
import json

from fakes import make_rule_doc

WEBHOOK_SECRET = "test-webhook-secret"


def _post(client, payload: dict, event="push", secret=WEBHOOK_SECRET, signature=None):
    body = json.dumps(payload).encode()
    if signature is None:
        signature = "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return client.post(
        "/api/webhooks/github",
        content=body,
        headers={
            "X-Hub-Signature-256": signature,
            "X-GitHub-Event": event,
            "Content-Type": "application/json",
        },
    )


PUSH = {
    "ref": "refs/heads/main",
    "commits": [{"added": [], "modified": [".ai/rules/tools/git.mdc"]}],
}


class TestGithubWebhook:
    def test_bad_signature_rejected(self, client, storage):
        res = _post(client, PUSH, signature="sha256=" + "0" * 64)
        assert res.status_code == 401
        assert storage.count_rules() == 0

    def test_missing_signature_rejected(self, client):
        res = client.post("/api/webhooks/github", json=PUSH, headers={"X-GitHub-Event": "push"})
        assert res.status_code == 401

    def test_missing_secret_rejects_everything(self, client, web_config):
        web_config.webhook.secret = None
        assert _post(client, PUSH, secret="").status_code == 401

    def test_non_push_ignored(self, client, storage):
        res = _post(client, PUSH, event="ping")
        assert res.status_code == 200
        assert res.json()["message"] == "Not a push event"
        assert storage.count_rules() == 0

    def test_other_branch_ignored(self, client):
        res = _post(client, {**PUSH, "ref": "refs/heads/feature"})
        assert "not main/master" in res.json()["message"]

    def test_no_rule_changes_ignored(self, client):
        payload = {"ref": "refs/heads/main", "commits": [{"modified": ["README.md"]}]}
        assert _post(client, payload).json()["message"] == "No .mdc files were modified"

    def test_push_triggers_full_sync(self, client, storage, web_source):
        web_source.documents[".ai/rules/tools/git.mdc"] = make_rule_doc("Git v2")

        res = _post(client, PUSH)

        assert res.status_code == 200
        data = res.json()
        assert data["changed_files"] == [".ai/rules/tools/git.mdc"]
        assert data["result"]["added"] == 4
        assert data["result"]["sync_type"] == "webhook"
        assert storage.get_rule("git").title == "Git v2"
        assert storage.get_last_sync_log().sync_type == "webhook"

    def test_invalid_json(self, client):
        body = b"not json"
        signature = "sha256=" + hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()
        res = client.post(
            "/api/webhooks/github",
            content=body,
            headers={"X-Hub-Signature-256": signature, "X-GitHub-Event": "push"},
        )
        assert res.status_code == 400
