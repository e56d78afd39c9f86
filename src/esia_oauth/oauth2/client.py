"""Async OAuth2 authorization-code flow driver.

This module provides a small httpx-based client for the generic parts of
the authorization-code flow: building the authorization URL, building and
sending the token request, and fetching resource owner details. Provider
specific behaviour is plugged in through OAuth2Hooks rather than by
subclassing.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode

import httpx
import orjson

from esia_oauth.exceptions import IdentityProviderError
from esia_oauth.oauth2.token import AccessToken
from esia_oauth.observability.logging import get_logger


logger = get_logger(__name__)

ParametersHook = Callable[[dict[str, Any]], dict[str, Any]]
ResponseChecker = Callable[[httpx.Response, Any], None]
TokenFactory = Callable[[dict[str, Any]], AccessToken]
ResourceOwnerFactory = Callable[[dict[str, Any], AccessToken], Any]


def generate_state() -> str:
    """Return a random state value (UUID4)."""
    return str(uuid.uuid4())


def build_query_string(params: Mapping[str, Any]) -> str:
    """Encode ``params`` RFC 3986 style, omitting None values."""
    return urlencode(
        {key: value for key, value in params.items() if value is not None},
        quote_via=quote,
    )


def check_status(response: httpx.Response, data: Any) -> None:
    """Default response check: fail on HTTP status >= 400."""
    if response.status_code >= 400:  # noqa: PLR2004
        raise IdentityProviderError(
            response.reason_phrase,
            response.status_code,
            response.text,
        )


@dataclass(frozen=True, slots=True)
class OAuth2Hooks:
    """Extension points invoked by OAuth2Client.

    Attributes:
        authorization_parameters: Transforms the authorization parameters
            after the generic defaults are applied.
        token_parameters: Transforms the token request parameters before
            the request is built.
        check_response: Raises when a parsed response is an error.
        create_access_token: Builds the token object from the token response.
        create_resource_owner: Builds the resource owner from its details.
    """

    authorization_parameters: ParametersHook | None = None
    token_parameters: ParametersHook | None = None
    check_response: ResponseChecker = check_status
    create_access_token: TokenFactory = AccessToken
    create_resource_owner: ResourceOwnerFactory | None = None


@dataclass(frozen=True, slots=True)
class AuthorizationRequest:
    """Authorization redirect built for one login attempt.

    The caller must keep ``state`` to compare it with the value returned to
    the redirect URI.
    """

    url: str
    state: str
    parameters: dict[str, Any] = field(default_factory=dict)


class OAuth2Client:
    """Async HTTP client for an OAuth2 authorization server.

    Attributes:
        client_id: Registered client identifier.
        authorization_url: Authorization endpoint.
        token_url: Token endpoint.
        redirect_uri: Redirect URI sent with authorization and token requests.
        client_secret: Static client secret, if the server uses one.
        scopes: Default scopes.
        scope_separator: Separator used to join scope lists.
        hooks: Provider extension points.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(
        self,
        *,
        client_id: str,
        authorization_url: str,
        token_url: str,
        redirect_uri: str | None = None,
        client_secret: str | None = None,
        scopes: tuple[str, ...] | list[str] = (),
        scope_separator: str = " ",
        state_factory: Callable[[], str] = generate_state,
        hooks: OAuth2Hooks | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.client_id = client_id
        self.authorization_url = authorization_url
        self.token_url = token_url
        self.redirect_uri = redirect_uri
        self.client_secret = client_secret
        self.scopes = tuple(scopes)
        self.scope_separator = scope_separator
        self.state_factory = state_factory
        self.hooks = hooks or OAuth2Hooks()
        self.timeout = timeout
        self._http_client = http_client
        self._owns_http_client = http_client is None

    async def initialize(self) -> None:
        """Create the HTTP client if one was not supplied."""
        if self._http_client is not None:
            return

        self._http_client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        logger.info("OAuth2Client initialized", token_url=self.token_url)

    async def shutdown(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.debug("OAuth2Client shutdown")

    async def __aenter__(self) -> OAuth2Client:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    # =========================================================================
    # Authorization
    # =========================================================================

    def get_authorization_parameters(
        self, options: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Build the authorization request parameters.

        Generic defaults are applied first (state, scope, response_type,
        approval_prompt, redirect_uri, client_id), then the
        ``authorization_parameters`` hook.
        """
        params = dict(options or {})
        if not params.get("state"):
            params["state"] = self.state_factory()
        if not params.get("scope"):
            params["scope"] = list(self.scopes)
        if isinstance(params["scope"], (list, tuple)):
            params["scope"] = self.scope_separator.join(params["scope"])

        params.setdefault("response_type", "code")
        params.setdefault("approval_prompt", "auto")
        params.setdefault("redirect_uri", self.redirect_uri)
        params["client_id"] = self.client_id

        if self.hooks.authorization_parameters is not None:
            params = self.hooks.authorization_parameters(params)
        return params

    def get_authorization_url(
        self, options: Mapping[str, Any] | None = None
    ) -> AuthorizationRequest:
        """Build the URL the user agent is redirected to."""
        params = self.get_authorization_parameters(options)
        url = f"{self.authorization_url}?{build_query_string(params)}"
        return AuthorizationRequest(url=url, state=params["state"], parameters=params)

    # =========================================================================
    # Token exchange
    # =========================================================================

    def prepare_token_parameters(
        self, grant_type: str, **options: Any
    ) -> dict[str, Any]:
        """Return the base token request parameters for ``grant_type``.

        Raises:
            ValueError: If ``code`` is missing for the authorization_code grant.
        """
        if grant_type == "authorization_code" and not options.get("code"):
            msg = "Required parameter not passed: 'code'"
            raise ValueError(msg)

        return {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "grant_type": grant_type,
            **options,
        }

    def build_access_token_request(self, params: Mapping[str, Any]) -> httpx.Request:
        """Build the POST request for the token endpoint."""
        params = dict(params)
        if self.hooks.token_parameters is not None:
            params = self.hooks.token_parameters(params)

        return httpx.Request(
            "POST",
            self.token_url,
            content=build_query_string(params).encode("ascii"),
            headers={
                "Content-Type": "application/x-www-form-urlencoded",
                "Accept": "application/json",
            },
        )

    async def get_access_token(
        self, grant_type: str = "authorization_code", **options: Any
    ) -> AccessToken:
        """Exchange a grant for an access token.

        The request is built in a worker thread since the
        ``token_parameters`` hook may block (request signing).

        Raises:
            IdentityProviderError: If the server rejects the request or
                cannot be reached.
            InvalidTokenError: If the token factory rejects the response.
        """
        params = self.prepare_token_parameters(grant_type, **options)
        request = await asyncio.to_thread(self.build_access_token_request, params)
        data = await self.send(request)

        if not isinstance(data, dict):
            msg = "Invalid response received from Authorization Server. Expected JSON."
            raise IdentityProviderError(msg, None, str(data))

        return self.hooks.create_access_token(data)

    # =========================================================================
    # Resource owner
    # =========================================================================

    async def get_resource_owner(self, token: AccessToken, details_url: str) -> Any:
        """Fetch resource owner details with a bearer token."""
        request = httpx.Request(
            "GET",
            details_url,
            headers={
                "Authorization": f"Bearer {token.access_token}",
                "Accept": "application/json",
            },
        )
        data = await self.send(request)
        if not isinstance(data, dict):
            msg = "Invalid resource owner response. Expected JSON."
            raise IdentityProviderError(msg, None, str(data))

        if self.hooks.create_resource_owner is None:
            return data
        return self.hooks.create_resource_owner(data, token)

    # =========================================================================
    # Transport
    # =========================================================================

    async def send(self, request: httpx.Request) -> Any:
        """Send ``request``, parse the body and run the response check.

        Raises:
            IdentityProviderError: On transport failures or when the
                response check fails.
        """
        if self._http_client is None:
            await self.initialize()

        assert self._http_client is not None

        try:
            response = await self._http_client.send(request)
        except httpx.TimeoutException as e:
            logger.exception("ESIA request timeout", url=str(request.url))
            msg = f"Request timeout after {self.timeout}s"
            raise IdentityProviderError(msg) from e
        except httpx.RequestError as e:
            logger.exception("ESIA connection error", url=str(request.url), error=str(e))
            msg = f"Cannot connect to {request.url.host}: {e}"
            raise IdentityProviderError(msg) from e

        data = self.parse_response(response)
        self.hooks.check_response(response, data)
        return data

    @staticmethod
    def parse_response(response: httpx.Response) -> Any:
        """Decode a JSON or form-encoded body, falling back to text."""
        content_type = response.headers.get("Content-Type", "")
        if "urlencoded" in content_type:
            return dict(parse_qsl(response.text))
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError:
            return response.text
