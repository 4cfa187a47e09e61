"""Tests for the Vercel deploy client"""

from unittest.mock import MagicMock

import pytest
import requests
from tenacity import wait_none

from bizbud.api.deploy_client import VercelClient
from bizbud.utils.config import DeploySettings
from bizbud.utils.exceptions import DeployError


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(VercelClient._send.retry, "wait", wait_none())


def response(status_code=200, body=None):
    res = MagicMock()
    res.status_code = status_code
    res.json.return_value = body if body is not None else {}
    res.text = str(body)
    return res


def make_client(*responses):
    session = MagicMock()
    session.request.side_effect = list(responses)
    client = VercelClient(DeploySettings(api_token="vercel-token", timeout_seconds=5), session=session)
    return client, session


def test_create_project_and_env_vars():
    client, session = make_client(response(200, {"id": "prj_1"}), response(200), response(200))

    project_id = client.create_project("acme", {"VITE_SITE_ID": "acme", "KV_URL": "redis://kv"})

    assert project_id == "prj_1"
    calls = session.request.call_args_list
    assert calls[0].kwargs["method"] == "POST"
    assert calls[0].kwargs["url"] == "https://api.vercel.com/v11/projects"
    assert calls[0].kwargs["json"]["name"] == "acme"
    assert calls[0].kwargs["headers"]["Authorization"] == "Bearer vercel-token"
    assert calls[0].kwargs["timeout"] == 5

    env_call = calls[2].kwargs
    assert env_call["url"] == "https://api.vercel.com/v10/projects/prj_1/env"
    assert env_call["params"] == {"upsert": "true"}
    assert env_call["json"]["key"] == "KV_URL"
    assert env_call["json"]["type"] == "encrypted"
    assert env_call["json"]["target"] == ["production", "preview", "development"]


def test_trigger_deployment_unlinks_git():
    client, session = make_client(response(200, {"id": "dpl_1"}), response(200))

    assert client.trigger_deployment("prj_1", "acme") == "dpl_1"

    first, second = session.request.call_args_list
    assert first.kwargs["json"]["gitSource"] == {
        "type": "github",
        "org": "ssc456",
        "repo": "bizbud-template-site",
        "ref": "main",
    }
    assert second.kwargs["method"] == "PATCH"
    assert second.kwargs["json"] == {"gitRepository": None}


def test_client_error_not_retried():
    client, session = make_client(response(400, {"error": {"message": "bad name"}}))

    with pytest.raises(DeployError) as exc_info:
        client.create_project("acme", {})

    assert exc_info.value.upstream_status == 400
    assert "bad name" in str(exc_info.value)
    assert session.request.call_count == 1


def test_server_error_retried_then_succeeds():
    client, session = make_client(response(503), response(502), response(200, {"id": "prj_1"}))

    assert client.create_project("acme", {}) == "prj_1"
    assert session.request.call_count == 3


def test_transport_error_gives_up_after_three_attempts():
    session = MagicMock()
    session.request.side_effect = requests.exceptions.ConnectionError("refused")
    client = VercelClient(DeploySettings(api_token="vercel-token"), session=session)

    with pytest.raises(DeployError):
        client.create_project("acme", {})
    assert session.request.call_count == 3


def test_missing_token():
    session = MagicMock()
    client = VercelClient(DeploySettings(api_token=None), session=session)

    assert not client.configured
    with pytest.raises(DeployError, match="Missing Vercel token"):
        client.create_project("acme", {})
    session.request.assert_not_called()


@pytest.mark.parametrize(
    "deployments, expected",
    [
        ([{"state": "READY", "created": 1700000000000}], {"state": "ready", "url": "https://acme.vercel.app", "deployedAt": 1700000000000}),
        ([{"readyState": "BUILDING"}], {"state": "building"}),
        ([{"state": "ERROR"}], {"state": "error"}),
        ([{"state": "CANCELED"}], {"state": "error"}),
        ([], {"state": "building"}),
    ],
)
def test_get_deployment_status(deployments, expected):
    client, session = make_client(response(200, {"deployments": deployments}))

    assert client.get_deployment_status("acme") == expected
    assert session.request.call_args.kwargs["params"] == {"app": "acme", "target": "production", "limit": 1}
