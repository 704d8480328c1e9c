# test_http_helper.py
"""Unit tests for classic_consumer/http_helper.py."""

from concurrent.futures import Future

import pytest
from pytest_mock import MockerFixture
from requests import ConnectionError

from classic_consumer.http_helper import FORM_CONTENT_TYPE, HttpHelper

from .utils import FakeResponse


def completed(result) -> Future:
    """Create a Future that already holds the provided result."""
    f: Future = Future()
    f.set_result(result)
    return f


def failed(exc: BaseException) -> Future:
    """Create a Future that already holds the provided exception."""
    f: Future = Future()
    f.set_exception(exc)
    return f


def test_constructor() -> None:
    """Test that the HttpHelper identifies itself with the User-Agent."""
    hh = HttpHelper("classic-consumer/testing", timeout=5.0)
    assert hh.session.headers["User-Agent"] == "classic-consumer/testing"
    assert hh.timeout == 5.0
    hh.close()


@pytest.mark.asyncio
async def test_post(mocker: MockerFixture) -> None:
    """Test that post sends a form body with the provided headers."""
    hh = HttpHelper("classic-consumer/testing", timeout=5.0)
    response = FakeResponse(200, "{}")
    session_post = mocker.patch.object(hh.session, "post", return_value=completed(response))
    r = await hh.post("https://api.example.com/2/member", "name=alice", {"Authorization": "Bearer tok"})
    assert r is response
    session_post.assert_called_once_with(
        "https://api.example.com/2/member",
        data=b"name=alice",
        headers={"Content-Type": FORM_CONTENT_TYPE, "Authorization": "Bearer tok"},
        timeout=5.0,
    )


@pytest.mark.asyncio
async def test_post_without_headers(mocker: MockerFixture) -> None:
    """Test that post adds nothing but the content type when given no headers."""
    hh = HttpHelper("classic-consumer/testing")
    session_post = mocker.patch.object(hh.session, "post", return_value=completed(FakeResponse()))
    await hh.post("https://auth.example.com/token", "client_id=cid")
    assert session_post.call_args.kwargs["headers"] == {"Content-Type": FORM_CONTENT_TYPE}


@pytest.mark.asyncio
async def test_get(mocker: MockerFixture) -> None:
    """Test that get sends query parameters with the provided headers."""
    hh = HttpHelper("classic-consumer/testing", timeout=5.0)
    response = FakeResponse(200, "[]")
    session_get = mocker.patch.object(hh.session, "get", return_value=completed(response))
    r = await hh.get("https://api.example.com/2/events", {"group_urlname": "ny-scala"}, {"Authorization": "Bearer tok"})
    assert r is response
    session_get.assert_called_once_with(
        "https://api.example.com/2/events",
        params={"group_urlname": "ny-scala"},
        headers={"Authorization": "Bearer tok"},
        timeout=5.0,
    )


@pytest.mark.asyncio
async def test_transport_failure(mocker: MockerFixture) -> None:
    """Test that a failure to deliver the request is raised to the caller."""
    hh = HttpHelper("classic-consumer/testing")
    mocker.patch.object(hh.session, "get", return_value=failed(ConnectionError("Name or service not known")))
    with pytest.raises(ConnectionError):
        await hh.get("https://api.example.com/2/events")


def test_parse_json() -> None:
    """Test that parse_json decodes JSON and rejects everything else."""
    assert HttpHelper.parse_json('{"access_token": "abc123"}') == {"access_token": "abc123"}
    with pytest.raises(ValueError):
        HttpHelper.parse_json("not json")
