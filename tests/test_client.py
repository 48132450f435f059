"""Tests for the Content Management API client."""

import json
from unittest.mock import Mock, patch

import pytest

from contentful_sync.core.client import ContentfulClient, StoreError

ENV_URL = "https://api.contentful.com/spaces/space123/environments/master"


def _response(status_code=200, body=None):
    """Create a mock requests response with a JSON body."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.content = json.dumps(body).encode() if body is not None else b""
    response.json.return_value = body
    response.text = response.content.decode()
    return response


def _entry(entry_id="e1", version=1):
    return {
        "sys": {
            "id": entry_id,
            "version": version,
            "contentType": {"sys": {"id": "post"}},
        },
        "fields": {},
    }


def test_session_headers(mock_config):
    """Session carries the bearer token and the management content type."""
    client = ContentfulClient(mock_config)
    headers = client.session.headers
    assert headers["Authorization"] == "Bearer CFPAT-test-token"
    assert headers["Content-Type"] == "application/vnd.contentful.management.v1+json"


def test_environment_path(mock_config):
    client = ContentfulClient(mock_config)
    assert client.environment_path == "/spaces/space123/environments/master"


@patch("contentful_sync.core.client.requests.Session.request")
def test_validate_connection(mock_request, mock_config):
    mock_request.return_value = _response(body={"name": "master", "sys": {}})

    client = ContentfulClient(mock_config)

    assert client.validate_connection() == "master"
    method, url = mock_request.call_args[0]
    assert (method, url) == ("GET", ENV_URL)


@patch("contentful_sync.core.client.requests.Session.request")
def test_get_content_types(mock_request, mock_config):
    mock_request.return_value = _response(
        body={"items": [{"sys": {"id": "post"}, "fields": []}], "total": 1}
    )

    client = ContentfulClient(mock_config)
    result = client.get_content_types()

    assert result == [{"sys": {"id": "post"}, "fields": []}]
    assert mock_request.call_args[0][1] == f"{ENV_URL}/content_types"
    assert mock_request.call_args[1]["params"] == {"limit": 1000}


@patch("contentful_sync.core.client.requests.Session.request")
def test_get_entries_pagination_params(mock_request, mock_config):
    page = {"items": [], "total": 0, "skip": 200, "limit": 100}
    mock_request.return_value = _response(body=page)

    client = ContentfulClient(mock_config)

    assert client.get_entries(skip=200, limit=100) == page
    assert mock_request.call_args[1]["params"] == {
        "skip": 200,
        "limit": 100,
        "order": "sys.createdAt",
    }


@patch("contentful_sync.core.client.requests.Session.request")
def test_create_entry(mock_request, mock_config):
    mock_request.return_value = _response(201, _entry())
    fields = {"title": {"en-US": "Hello"}}

    client = ContentfulClient(mock_config)
    result = client.create_entry("post", fields)

    assert result["sys"]["id"] == "e1"
    args, kwargs = mock_request.call_args
    assert args == ("POST", f"{ENV_URL}/entries")
    assert kwargs["headers"] == {"X-Contentful-Content-Type": "post"}
    assert json.loads(kwargs["data"]) == {"fields": fields}


@patch("contentful_sync.core.client.requests.Session.request")
def test_update_entry_uses_version_header(mock_request, mock_config):
    mock_request.return_value = _response(body=_entry(version=4))

    client = ContentfulClient(mock_config)
    client.update_entry("e1", 3, {"title": {"en-US": "New"}})

    args, kwargs = mock_request.call_args
    assert args == ("PUT", f"{ENV_URL}/entries/e1")
    assert kwargs["headers"] == {"X-Contentful-Version": "3"}


@patch("contentful_sync.core.client.requests.Session.request")
def test_publish_and_unpublish(mock_request, mock_config):
    mock_request.return_value = _response(body=_entry(version=2))

    client = ContentfulClient(mock_config)
    client.publish_entry("e1", 1)
    publish_args, publish_kwargs = mock_request.call_args
    client.unpublish_entry("e1")
    unpublish_args, _ = mock_request.call_args

    assert publish_args == ("PUT", f"{ENV_URL}/entries/e1/published")
    assert publish_kwargs["headers"] == {"X-Contentful-Version": "1"}
    assert unpublish_args == ("DELETE", f"{ENV_URL}/entries/e1/published")


@patch("contentful_sync.core.client.requests.Session.request")
def test_delete_entry_empty_body(mock_request, mock_config):
    mock_request.return_value = _response(204)

    client = ContentfulClient(mock_config)

    assert client.delete_entry("e1") is None
    assert mock_request.call_args[0] == ("DELETE", f"{ENV_URL}/entries/e1")


@patch("contentful_sync.core.client.requests.Session.request")
def test_error_raises_store_error(mock_request, mock_config):
    mock_request.return_value = _response(
        409, {"sys": {"id": "VersionMismatch"}, "message": "Version mismatch"}
    )

    client = ContentfulClient(mock_config)
    with pytest.raises(StoreError) as exc_info:
        client.update_entry("e1", 1, {})

    err = exc_info.value
    assert err.status_code == 409
    assert err.method == "PUT"
    assert "Version mismatch" in str(err)


@patch("contentful_sync.core.client.requests.Session.request")
def test_error_with_non_json_body(mock_request, mock_config):
    response = _response(502)
    response.json.side_effect = ValueError("no json")
    response.text = "Bad Gateway"
    mock_request.return_value = response

    client = ContentfulClient(mock_config)
    with pytest.raises(StoreError, match="Bad Gateway"):
        client.get_content_types()


@patch("contentful_sync.core.client.requests.Session.request")
def test_create_asset_from_file(mock_request, mock_config, tmp_path):
    path = tmp_path / "cover.png"
    path.write_bytes(b"\x89PNG")
    asset = {"sys": {"id": "a1", "version": 1}, "fields": {}}
    mock_request.side_effect = [
        _response(201, {"sys": {"id": "upload-1"}}),
        _response(201, asset),
    ]

    client = ContentfulClient(mock_config)
    result = client.create_asset_from_file(path, "content/cover.png", "image/png", "en-US")

    assert result == asset
    upload_call, asset_call = mock_request.call_args_list
    assert upload_call[0] == (
        "POST",
        "https://upload.contentful.com/spaces/space123/uploads",
    )
    assert upload_call[1]["data"] == b"\x89PNG"
    assert upload_call[1]["headers"] == {"Content-Type": "application/octet-stream"}

    payload = json.loads(asset_call[1]["data"])
    file_field = payload["fields"]["file"]["en-US"]
    assert payload["fields"]["title"] == {"en-US": "content/cover.png"}
    assert file_field["contentType"] == "image/png"
    assert file_field["fileName"] == "cover.png"
    assert file_field["uploadFrom"]["sys"]["id"] == "upload-1"


@patch("contentful_sync.core.client.requests.Session.request")
def test_process_asset_polls_until_url(mock_request, mock_config):
    pending = {"sys": {"id": "a1", "version": 2}, "fields": {"file": {"en-US": {}}}}
    done = {
        "sys": {"id": "a1", "version": 2},
        "fields": {"file": {"en-US": {"url": "//images.example/a1.png"}}},
    }
    mock_request.side_effect = [_response(204), _response(body=pending), _response(body=done)]

    client = ContentfulClient(mock_config, poll_interval=0)
    result = client.process_asset("a1", 1, "en-US")

    assert result == done
    process_call = mock_request.call_args_list[0]
    assert process_call[0] == ("PUT", f"{ENV_URL}/assets/a1/files/en-US/process")
    assert process_call[1]["headers"] == {"X-Contentful-Version": "1"}
    assert mock_request.call_count == 3


@patch("contentful_sync.core.client.requests.Session.request")
def test_process_asset_timeout(mock_request, mock_config):
    pending = {"sys": {"id": "a1", "version": 2}, "fields": {}}
    mock_request.side_effect = [_response(204), _response(body=pending)]

    client = ContentfulClient(mock_config, processing_timeout=0, poll_interval=0)
    with pytest.raises(TimeoutError, match="a1"):
        client.process_asset("a1", 1, "en-US")
