"""Service-account credentials for the Android Publisher API."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from playrelease.config.google_play import GOOGLE_PLAY_SCOPE
from playrelease.domain.errors import AuthError

if TYPE_CHECKING:
    from collections.abc import Callable

    from google.auth.transport import Request as TransportRequest

    from playrelease.config.google_play import ServiceAccountConfig
    from playrelease.domain.ports.credentials import TokenProvider

log = getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class ServiceAccountTokenProvider:
    """Exchange a service-account JWT for OAuth access tokens, refreshing on expiry."""

    def __init__(
        self,
        config: ServiceAccountConfig,
        *,
        scopes: tuple[str, ...] = (GOOGLE_PLAY_SCOPE,),
        request_factory: Callable[[], TransportRequest] = Request,
        credentials: service_account.Credentials | None = None,
    ) -> None:
        self._config = config
        self._scopes = scopes
        self._request_factory = request_factory
        self._credentials = credentials

    def token(self) -> str:
        credentials = self._load()
        if not credentials.valid:
            log.debug("Authorising service account %s", credentials.service_account_email)
            try:
                credentials.refresh(self._request_factory())
            except GoogleAuthError as exc:
                raise AuthError(
                    f"Cannot authorise service account: {exc}",
                    context={"account": credentials.service_account_email},
                ) from exc
        if not credentials.token:
            raise AuthError(
                "Token endpoint returned no access token",
                context={"account": credentials.service_account_email},
            )
        return credentials.token

    def _load(self) -> service_account.Credentials:
        if self._credentials is None:
            self._credentials = load_service_account_credentials(self._config, scopes=self._scopes)
        return self._credentials


def load_service_account_credentials(
    config: ServiceAccountConfig,
    *,
    scopes: tuple[str, ...] = (GOOGLE_PLAY_SCOPE,),
) -> service_account.Credentials:
    """Build credentials from a key file or from an email + private key pair."""

    if config.key_file is not None:
        key_file = config.key_file
        if not key_file.is_file():
            raise AuthError(
                "Service account key path does not point to a file",
                context={"path": str(key_file)},
            )
        try:
            return service_account.Credentials.from_service_account_file(  # pyright: ignore[reportUnknownMemberType]
                str(key_file), scopes=list(scopes)
            )
        except (ValueError, OSError) as exc:
            raise AuthError(
                f"Invalid service account key file: {exc}", context={"path": str(key_file)}
            ) from exc

    if not config.client_email or not config.private_key:
        raise AuthError("Service account email and private key are required")
    info = {
        "type": "service_account",
        "client_email": config.client_email,
        "private_key": config.private_key,
        "token_uri": GOOGLE_TOKEN_URI,
    }
    try:
        return service_account.Credentials.from_service_account_info(  # pyright: ignore[reportUnknownMemberType]
            info, scopes=list(scopes)
        )
    except ValueError as exc:
        raise AuthError(
            f"Invalid service account private key: {exc}",
            context={"account": config.client_email},
        ) from exc


if TYPE_CHECKING:
    _provider_check: type[TokenProvider] = ServiceAccountTokenProvider
