"""Google Play Android Publisher configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

GOOGLE_PLAY_BASE_URL = "https://androidpublisher.googleapis.com"
GOOGLE_PLAY_SCOPE = "https://www.googleapis.com/auth/androidpublisher"
GOOGLE_PLAY_TIMEOUT_SECONDS = 300.0


@dataclass(frozen=True, slots=True)
class ServiceAccountConfig:
    """Service-account identity, either as a key file or as email + private key."""

    key_file: Path | None = None
    client_email: str | None = None
    private_key: str | None = None


@dataclass(frozen=True, slots=True)
class GooglePlayConfig:
    service_account: ServiceAccountConfig
    resilience: ResilienceConfig
    scopes: tuple[str, ...] = (GOOGLE_PLAY_SCOPE,)


def default_resilience_config() -> ResilienceConfig:
    return ResilienceConfig(
        name="google-play",
        base_url=GOOGLE_PLAY_BASE_URL,
        timeout_seconds=GOOGLE_PLAY_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
    )


def get_service_account_config() -> ServiceAccountConfig:
    key_file = optional_env_var("GOOGLE_PLAY_SERVICE_ACCOUNT_KEY")
    if key_file is not None:
        return ServiceAccountConfig(key_file=Path(key_file).expanduser())

    values = require_env_vars(("GOOGLE_PLAY_CLIENT_EMAIL", "GOOGLE_PLAY_PRIVATE_KEY"))
    return ServiceAccountConfig(
        client_email=values["GOOGLE_PLAY_CLIENT_EMAIL"],
        # CI secret stores often flatten the PEM block onto one line.
        private_key=values["GOOGLE_PLAY_PRIVATE_KEY"].replace("\\n", "\n"),
    )


def get_google_play_config(*, resilience: ResilienceConfig | None = None) -> GooglePlayConfig:
    return GooglePlayConfig(
        service_account=get_service_account_config(),
        resilience=resilience or default_resilience_config(),
    )
