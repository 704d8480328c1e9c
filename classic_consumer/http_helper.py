# http_helper.py
"""Module providing the HTTP transport used by the ClassicConsumer."""

import asyncio
from typing import Any, Dict, Mapping, Optional

from requests import Response
from rest_tools.client.session import AsyncSession  # type: ignore
from rest_tools.utils.json_util import json_decode  # type: ignore

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class HttpHelper:
    """
    HttpHelper sends requests and hands back the responses.

    It makes no judgement about the responses it receives; any HTTP status
    is returned to the caller. Failures to deliver a request (connection,
    DNS, timeout) are raised as requests.RequestException; headers that
    cannot be put on the wire (control characters, text outside Latin-1)
    are raised as ValueError.
    """

    def __init__(self,
                 user_agent: str,
                 timeout: float = 30.0) -> None:
        """Initialize an HttpHelper object."""
        # no retries at this layer; a failure is a failure
        self.session = AsyncSession(retries=0, backoff_factor=0)
        self.session.headers = {
            "User-Agent": user_agent,
        }
        self.timeout = timeout

    def close(self) -> None:
        """Close the AsyncSession."""
        self.session.close()

    async def post(self,
                   url: str,
                   content_body: str,
                   headers: Optional[Mapping[str, str]] = None) -> Response:
        """Execute a POST verb against the provided URL."""
        req_headers: Dict[str, str] = {"Content-Type": FORM_CONTENT_TYPE}
        req_headers.update(headers or {})
        return await asyncio.wrap_future(self.session.post(url,
                                                           data=content_body.encode("utf-8"),
                                                           headers=req_headers,
                                                           timeout=self.timeout))

    async def get(self,
                  url: str,
                  params: Optional[Mapping[str, str]] = None,
                  headers: Optional[Mapping[str, str]] = None) -> Response:
        """Execute a GET verb against the provided URL."""
        return await asyncio.wrap_future(self.session.get(url,
                                                          params=dict(params or {}),
                                                          headers=dict(headers or {}),
                                                          timeout=self.timeout))

    @staticmethod
    def parse_json(text: str) -> Any:
        """
        Decode the provided text as JSON.

        Raises ValueError if the text is not valid JSON.
        """
        return json_decode(text)
