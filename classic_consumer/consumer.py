# consumer.py
"""Module to obtain JWT-bearer access tokens and call the classic API with them."""

import asyncio
import logging
from logging import Logger
from typing import Any, Mapping, Optional

from requests import RequestException, Response
import wipac_telemetry.tracing_tools as wtt

from .config import ConsumerEnv
from .http_helper import HttpHelper
from .jwt_util import JwtUtil
from .log_format import redact
from .utils import (
    ClassicConsumerException,
    HttpStatusFailure,
    MalformedResponseFailure,
    record_success,
    TransportFailure,
)

AUTHORIZATION_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"  # https://tools.ietf.org/html/rfc7523#section-2.1
ACCESS_TOKEN_KEY = "access_token"


def https_url(host_and_path: str) -> str:
    """Return the HTTPS URL for a host and path, unless it already has a scheme."""
    if "://" in host_and_path:
        return host_and_path
    return f"https://{host_and_path}"


def bearer_headers(token: str) -> dict:
    """Return the headers that present the provided bearer token."""
    return {"Authorization": f"Bearer {token}"}


class ClassicConsumer:
    """
    ClassicConsumer calls the classic API on behalf of members.

    A member is authenticated with the JWT-bearer grant: an assertion naming
    the member is signed with our private key and exchanged for an access
    token, which is then presented as a bearer token to the classic API.

    Every public operation returns the response body on success and None on
    any failure. Failures are logged and counted, never raised.

    If a member_id is provided at construction, a token for that member is
    fetched lazily, exactly once, and used for every call this consumer
    makes, whatever member_id the call itself names.
    """

    def __init__(self,
                 config: ConsumerEnv,
                 logger: Optional[Logger] = None,
                 http_helper: Optional[HttpHelper] = None,
                 jwt_util: Optional[JwtUtil] = None,
                 member_id: Optional[str] = None) -> None:
        """
        Create a ClassicConsumer.

        config - The configuration of the consumer.
        logger - The object the consumer should use for logging.
        http_helper - The transport used to send requests.
        jwt_util - The signer used to create token request assertions.
        member_id - The member whose token is cached for the life of the consumer.
        """
        if logger:
            self.logger = logger
        else:
            self.logger = logging.getLogger('classic_consumer.consumer')
            self.logger.addHandler(logging.NullHandler())
        self.config = config
        self.access_token_endpoint = config.access_token_endpoint
        self.client_key = config.CLASSIC_OAUTH_CLIENT_KEY
        self.token_replication_delay_seconds = config.TOKEN_REPLICATION_DELAY_SECONDS
        if http_helper:
            self.http_helper = http_helper
        else:
            self.http_helper = HttpHelper(config.USER_AGENT, timeout=config.HTTP_TIMEOUT_SECONDS)
        if jwt_util:
            self.jwt_util = jwt_util
        else:
            self.jwt_util = JwtUtil(issuer=config.ISSUER,
                                    private_key=config.PRIVATE_KEY,
                                    public_key=config.PUBLIC_KEY,
                                    audience=self.access_token_endpoint,
                                    expire_seconds=config.ASSERTION_EXPIRE_SECONDS,
                                    algorithm=config.ASSERTION_ALGORITHM,
                                    logger=self.logger)
        self.member_id = member_id
        self._oauth_token_task: Optional["asyncio.Task[Optional[str]]"] = None

    async def __aenter__(self) -> "ClassicConsumer":
        """Enter an async context; the consumer is ready for use."""
        return self

    async def __aexit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        """Leave an async context; release the transport."""
        self.close()

    def close(self) -> None:
        """Release the resources held by the transport."""
        self.http_helper.close()

    # ---------------------------
    # Orchestration
    # ---------------------------

    async def oauth_token(self) -> Optional[str]:
        """
        Return the token cached for the construction-time member.

        The token is fetched on first access, exactly once. Callers that race
        the first access all await the same fetch. The result is kept, even
        when it is None.
        """
        if self.member_id is None:
            return None
        if self._oauth_token_task is None:
            self._oauth_token_task = asyncio.ensure_future(self.get_access_token_only(self.member_id))
        return await asyncio.shield(self._oauth_token_task)

    async def _resolve_token(self, member_id: str) -> Optional[str]:
        """Return the cached token if we have one, otherwise a fresh token for member_id."""
        # TODO: scope the cached token to its member; see DESIGN.md
        token = await self.oauth_token()
        if token is not None:
            return token
        return await self.get_access_token_only(member_id)

    @wtt.spanned()
    async def do_classic_api_post(self,
                                  member_id: str,
                                  host_and_path: str,
                                  content_body: str) -> Optional[str]:
        """POST the content body to the classic API on behalf of the member."""
        token = await self._resolve_token(member_id)
        if token is None:
            return None
        return await self.make_post_call(token, host_and_path, content_body)

    @wtt.spanned()
    async def do_classic_api_get(self,
                                 member_id: str,
                                 host_and_path: str,
                                 params: Mapping[str, str]) -> Optional[str]:
        """GET the resource from the classic API on behalf of the member."""
        token = await self._resolve_token(member_id)
        if token is None:
            return None
        return await self.make_get_call(token, host_and_path, params)

    # ---------------------------
    # Token Fetching
    # ---------------------------

    def _token_request_body(self, member_id: str) -> str:
        """Create the form-encoded body of a token request for the member."""
        assertion = self.jwt_util.create_token_request_assertion(member_id)
        return (f"client_id={self.client_key}"
                f"&grant_type={AUTHORIZATION_GRANT_TYPE}"
                f"&assertion={assertion or ''}")

    def _extract_token(self, response_body: str) -> str:
        """Find the access token in the body of a token response."""
        try:
            obj = self.http_helper.parse_json(response_body)
        except ValueError as e:
            raise MalformedResponseFailure(f"token response from POST: {self.access_token_endpoint} is not JSON",
                                           self.logger,
                                           method="POST",
                                           endpoint=self.access_token_endpoint,
                                           response_body=response_body,
                                           error=e)
        if not isinstance(obj, dict):
            raise MalformedResponseFailure(f"token response from POST: {self.access_token_endpoint} is not a JSON object",
                                           self.logger,
                                           method="POST",
                                           endpoint=self.access_token_endpoint,
                                           response_body=response_body)
        for key, value in obj.items():
            if key.lower() == ACCESS_TOKEN_KEY:
                if isinstance(value, str):
                    return value
                break
        raise MalformedResponseFailure(f"token response from POST: {self.access_token_endpoint} has no string {ACCESS_TOKEN_KEY}",
                                       self.logger,
                                       method="POST",
                                       endpoint=self.access_token_endpoint,
                                       response_body=response_body)

    @wtt.spanned()
    async def get_access_token_only(self, member_id: str) -> Optional[str]:
        """Obtain an access token for the member, or None if one could not be obtained."""
        content_body = self._token_request_body(member_id)
        self.logger.info(f"POST {self.access_token_endpoint} - '{redact(content_body)}'")
        try:
            response_body = await self._checked_post(self.access_token_endpoint, content_body, {})
            token = self._extract_token(response_body)
        except ClassicConsumerException:
            return None
        record_success("POST")
        # the authorization backend may not have replicated the token yet
        await asyncio.sleep(self.token_replication_delay_seconds)
        return token

    # ---------------------------
    # Authenticated Calls
    # ---------------------------

    @wtt.spanned()
    async def make_post_call(self,
                             token: str,
                             host_and_path: str,
                             content_body: str) -> Optional[str]:
        """POST the content body with the bearer token; None on failure."""
        try:
            response_body = await self._checked_post(https_url(host_and_path), content_body, bearer_headers(token))
        except ClassicConsumerException:
            return None
        record_success("POST")
        return response_body

    @wtt.spanned()
    async def make_get_call(self,
                            token: str,
                            host_and_path: str,
                            params: Mapping[str, str]) -> Optional[str]:
        """GET the resource with the bearer token; None on failure."""
        try:
            response_body = await self._checked_get(https_url(host_and_path), params, bearer_headers(token))
        except ClassicConsumerException:
            return None
        record_success("GET")
        return response_body

    async def _checked_post(self,
                            url: str,
                            content_body: str,
                            headers: Mapping[str, str]) -> str:
        """POST and return the response body; raise a ClassicConsumerException on failure."""
        try:
            r = await self.http_helper.post(url, content_body, headers)
        except (RequestException, ValueError) as e:
            raise TransportFailure(f"failed to send POST: {url}",
                                   self.logger,
                                   method="POST",
                                   endpoint=url,
                                   request_headers=headers,
                                   request_body=content_body,
                                   error=e)
        self._check_status(r, "POST", url, headers, request_body=content_body)
        return r.text

    async def _checked_get(self,
                           url: str,
                           params: Mapping[str, str],
                           headers: Mapping[str, str]) -> str:
        """GET and return the response body; raise a ClassicConsumerException on failure."""
        try:
            r = await self.http_helper.get(url, params, headers)
        except (RequestException, ValueError) as e:
            raise TransportFailure(f"failed to send GET: {url}",
                                   self.logger,
                                   method="GET",
                                   endpoint=url,
                                   request_headers=headers,
                                   request_params=params,
                                   error=e)
        self._check_status(r, "GET", url, headers, request_params=params)
        return r.text

    def _check_status(self,
                      r: Response,
                      method: str,
                      url: str,
                      headers: Mapping[str, str],
                      request_body: Optional[str] = None,
                      request_params: Optional[Mapping[str, str]] = None) -> None:
        """Raise an HttpStatusFailure if the response carries an error status."""
        if r.status_code >= 400:
            raise HttpStatusFailure(f"received non-200 response from {method}: {url}",
                                    self.logger,
                                    method=method,
                                    endpoint=url,
                                    request_headers=headers,
                                    request_body=request_body,
                                    request_params=request_params,
                                    status_code=r.status_code,
                                    response_body=r.text)
