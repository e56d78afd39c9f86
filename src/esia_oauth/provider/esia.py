"""ESIA OAuth2 provider.

Wires the generic OAuth2Client to ESIA: fixed endpoint paths, signed
``client_secret`` on authorization and token requests, ESIA error
responses, EsiaAccessToken construction and scope-gated resource owner
lookups.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Final, cast

import httpx
from pydantic import BaseModel, ConfigDict

from esia_oauth.core.config import PRODUCTION_URL
from esia_oauth.exceptions import (
    ConfigurationError,
    ContractViolationError,
    IdentityProviderError,
)
from esia_oauth.oauth2.client import OAuth2Client, OAuth2Hooks, generate_state
from esia_oauth.oauth2.resource_owner import GenericResourceOwner
from esia_oauth.oauth2.token import AccessToken, ScopedToken
from esia_oauth.observability.logging import flow_context, get_logger
from esia_oauth.provider.embeds import EmbedResolver
from esia_oauth.security.parameters import ParameterSigner, format_timestamp
from esia_oauth.security.signer.protocol import Signer
from esia_oauth.token.access_token import EsiaAccessToken


if TYPE_CHECKING:
    from collections.abc import Mapping

    from esia_oauth.core.config import Settings
    from esia_oauth.oauth2.client import AuthorizationRequest

logger = get_logger(__name__)

AUTHORIZATION_PATH: Final[str] = "/aas/oauth2/ac"
TOKEN_PATH: Final[str] = "/aas/oauth2/te"
RESOURCE_OWNER_PATH: Final[str] = "/rs/prns/"


class EsiaProviderConfig(BaseModel):
    """Explicit provider configuration, validated once by EsiaProvider.

    Attributes:
        client_id: Mnemonic of the registered information system.
        redirect_uri: Redirect URI registered in ESIA.
        remote_url: ESIA base URL.
        remote_certificate_path: ESIA certificate; also the default key for
            token signature verification.
        scopes: Scopes requested by default.
        timeout: HTTP timeout in seconds.
        token_public_key_path: Overrides the key used for token verification.
        verify_token_signature: Verify access token signatures.
        token_algorithms: Accepted JWS algorithms for verification.
        token_leeway: Clock skew tolerance in seconds.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    redirect_uri: str | None = None
    remote_url: str = PRODUCTION_URL
    remote_certificate_path: Path | None = None
    scopes: tuple[str, ...] = ("openid", "fullname")
    timeout: float = 10.0
    token_public_key_path: Path | None = None
    verify_token_signature: bool = False
    token_algorithms: tuple[str, ...] = ("RS256",)
    token_leeway: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> EsiaProviderConfig:
        """Build the provider configuration from client settings.

        Raises:
            ConfigurationError: If ``client.client_id`` is not set.
        """
        if not settings.client.client_id:
            msg = "client.client_id is required"
            raise ConfigurationError(msg)

        return cls(
            client_id=settings.client.client_id,
            redirect_uri=settings.client.redirect_uri,
            remote_url=settings.remote.url,
            remote_certificate_path=settings.remote.certificate_path,
            scopes=tuple(settings.client.scopes),
            timeout=settings.http.timeout,
            token_public_key_path=settings.token.public_key_path,
            verify_token_signature=settings.token.verify_signature,
            token_algorithms=tuple(settings.token.algorithms),
            token_leeway=settings.token.leeway,
        )


def _is_valid_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class EsiaProvider:
    """Client for the ESIA authorization-code flow.

    Example:
        async with EsiaProvider(config, signer=ProcessSigner(...)) as esia:
            request = esia.get_authorization_url()
            # redirect the user to request.url, keep request.state
            token = await esia.get_access_token(code)
            person = await esia.get_resource_owner(token)
    """

    def __init__(
        self,
        config: EsiaProviderConfig,
        signer: Signer | None,
        *,
        http_client: httpx.AsyncClient | None = None,
        embed_resolver: EmbedResolver | None = None,
    ) -> None:
        """Validate the configuration and build the flow driver.

        Raises:
            ConfigurationError: If the remote URL is invalid, the remote
                certificate does not exist, or no signer is supplied.
        """
        if not _is_valid_url(config.remote_url):
            msg = "Remote URL is not provided!"
            raise ConfigurationError(msg)
        certificate = config.remote_certificate_path
        if certificate is None or not certificate.is_file():
            msg = "Remote certificate is not provided!"
            raise ConfigurationError(msg)
        if signer is None or not isinstance(signer, Signer):
            msg = "Signer is not provided!"
            raise ConfigurationError(msg)

        self.config = config
        self.remote_url = config.remote_url.rstrip("/")
        self.parameter_signer = ParameterSigner(signer)
        self.embed_resolver = embed_resolver or EmbedResolver()
        self._client = OAuth2Client(
            client_id=config.client_id,
            authorization_url=self.base_authorization_url,
            token_url=self.base_access_token_url,
            redirect_uri=config.redirect_uri,
            scopes=config.scopes,
            scope_separator=" ",
            state_factory=self.generate_state,
            hooks=OAuth2Hooks(
                authorization_parameters=self._sign_authorization_parameters,
                token_parameters=self._sign_token_parameters,
                check_response=self.check_response,
                create_access_token=self.create_access_token,
                create_resource_owner=self.create_resource_owner,
            ),
            http_client=http_client,
            timeout=config.timeout,
        )
        logger.info(
            "EsiaProvider initialized",
            remote_url=self.remote_url,
            client_id=config.client_id,
            verify_token_signature=config.verify_token_signature,
        )

    async def initialize(self) -> None:
        await self._client.initialize()

    async def shutdown(self) -> None:
        await self._client.shutdown()

    async def __aenter__(self) -> EsiaProvider:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.shutdown()

    # =========================================================================
    # URLs
    # =========================================================================

    def get_url(self, path: str) -> str:
        return self.remote_url + path

    @property
    def base_authorization_url(self) -> str:
        return self.get_url(AUTHORIZATION_PATH)

    @property
    def base_access_token_url(self) -> str:
        return self.get_url(TOKEN_PATH)

    # =========================================================================
    # Authorization
    # =========================================================================

    @staticmethod
    def generate_state() -> str:
        """Return a fresh UUID4 state."""
        return generate_state()

    def _with_state(self, options: Mapping[str, Any] | None) -> dict[str, Any]:
        options = dict(options or {})
        options["state"] = options.get("state") or self.generate_state()
        return options

    def build_authorization_parameters(
        self, options: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Build signed authorization request parameters.

        Raises:
            SigningError: If the parameters could not be signed.
        """
        options = self._with_state(options)
        with flow_context(client_id=self.config.client_id, state=options["state"]):
            return self._client.get_authorization_parameters(options)

    def get_authorization_url(self, **options: Any) -> AuthorizationRequest:
        """Build the signed authorization redirect.

        Raises:
            SigningError: If the parameters could not be signed.
        """
        options = self._with_state(options)
        with flow_context(client_id=self.config.client_id, state=options["state"]):
            request = self._client.get_authorization_url(options)
            logger.debug("Authorization URL built", scope=request.parameters["scope"])
        return request

    def _sign_authorization_parameters(self, params: dict[str, Any]) -> dict[str, Any]:
        params = {
            **params,
            "access_type": "online",
            "approval_prompt": None,
            "timestamp": format_timestamp(),
        }
        return self.parameter_signer.sign_parameters(params)

    # =========================================================================
    # Token exchange
    # =========================================================================

    def build_token_request(self, params: Mapping[str, Any]) -> httpx.Request:
        """Build the signed token endpoint request.

        ``scope``, ``state``, ``timestamp`` and ``token_type`` default to
        ``openid``, a fresh UUID4, now and ``Bearer`` unless supplied.

        Raises:
            SigningError: If the parameters could not be signed.
        """
        return self._client.build_access_token_request(params)

    def _sign_token_parameters(self, params: dict[str, Any]) -> dict[str, Any]:
        defaults = {
            "scope": "openid",
            "state": self.generate_state(),
            "timestamp": format_timestamp(),
            "token_type": "Bearer",
        }
        supplied = {key: value for key, value in params.items() if value is not None}
        return self.parameter_signer.sign_parameters({**defaults, **supplied})

    async def get_access_token(self, code: str, **params: Any) -> EsiaAccessToken:
        """Exchange an authorization code for an access token.

        Signing runs in a worker thread, so a slow signing tool does not
        block the event loop.

        Raises:
            SigningError: If the request could not be signed.
            IdentityProviderError: If ESIA rejects the request.
            InvalidTokenError: If the returned token is invalid.
        """
        params = self._with_state(params)
        with flow_context(client_id=self.config.client_id, state=params["state"]):
            token = await self._client.get_access_token(
                "authorization_code", code=code, **params
            )
            logger.info("Access token obtained", subject_id=token.resource_owner_id)
        return cast("EsiaAccessToken", token)

    def check_response(self, response: httpx.Response, data: Any) -> None:
        """Raise IdentityProviderError for HTTP errors or ``error`` bodies."""
        error = data.get("error") if isinstance(data, dict) else None
        if response.status_code >= 400 or error is not None:  # noqa: PLR2004
            message = str(error) if error is not None else response.reason_phrase
            logger.warning(
                "ESIA returned an error",
                status_code=response.status_code,
                error=message,
            )
            raise IdentityProviderError(message, response.status_code, response.text)

    def create_access_token(self, response: dict[str, Any]) -> EsiaAccessToken:
        """Wrap a token response into an EsiaAccessToken."""
        return EsiaAccessToken(
            response,
            self.config.token_public_key_path or self.config.remote_certificate_path,
            verify_signature=self.config.verify_token_signature,
            algorithms=self.config.token_algorithms,
            leeway=self.config.token_leeway,
        )

    # =========================================================================
    # Resource owner
    # =========================================================================

    def create_resource_owner_details_url(self, token: AccessToken) -> str:
        """Return the person details URL with the embeds the token allows.

        Raises:
            ContractViolationError: If ``token`` carries no scopes or owner id.
        """
        if not isinstance(token, ScopedToken) or not token.resource_owner_id:
            msg = f"Token must implement {ScopedToken.__name__}"
            raise ContractViolationError(msg)

        embeds = self.embed_resolver.resolve(token.scopes)
        return self.get_url(
            f"{RESOURCE_OWNER_PATH}{token.resource_owner_id}?embed=({','.join(embeds)})"
        )

    def create_resource_owner(
        self, response: dict[str, Any], token: AccessToken
    ) -> GenericResourceOwner:
        details = {"resourceOwnerId": token.resource_owner_id}
        details.update(
            (key, value) for key, value in response.items() if key != "resourceOwnerId"
        )
        return GenericResourceOwner(details, "resourceOwnerId")

    async def get_resource_owner(self, token: AccessToken) -> GenericResourceOwner:
        """Fetch the authenticated person with the sections the token allows.

        Raises:
            ContractViolationError: If ``token`` is not scoped.
            IdentityProviderError: If ESIA rejects the request.
        """
        url = self.create_resource_owner_details_url(token)
        with flow_context(
            client_id=self.config.client_id, subject_id=token.resource_owner_id
        ):
            return await self._client.get_resource_owner(token, url)
