"""Card Ladder configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_CARDLADDER_API_BASE_URL = "https://api.cardladder.com/v1"
CARDLADDER_SALES_HISTORY_URL = "https://app.cardladder.com/sales-history?direction=desc&sort=date"
CARDLADDER_LOGIN_URL = "https://app.cardladder.com/login"
CARDLADDER_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True, slots=True)
class CardLadderConfig:
    api_key: str | None
    user: str | None
    password: str | None
    resilience: ResilienceConfig
    sales_history_url: str = CARDLADDER_SALES_HISTORY_URL
    login_url: str = CARDLADDER_LOGIN_URL

    @property
    def has_credentials(self) -> bool:
        return self.user is not None and self.password is not None


def get_cardladder_config(*, resilience: ResilienceConfig | None = None) -> CardLadderConfig:
    """Load Card Ladder settings; CL_USER and CL_PASS must be set together."""

    user, password = optional_env("CL_USER"), optional_env("CL_PASS")
    if (user is None) != (password is None):
        require_env_vars(("CL_USER", "CL_PASS"))
    base_url = optional_env("CL_API_BASE_URL") or DEFAULT_CARDLADDER_API_BASE_URL
    return CardLadderConfig(
        api_key=optional_env("CL_API_KEY"),
        user=user,
        password=password,
        resilience=resilience
        or ResilienceConfig(
            name="cardladder",
            base_url=base_url,
            timeout_seconds=CARDLADDER_TIMEOUT_SECONDS,
            # One attempt per estimate; the sampler is the fallback.
            retry=RetryPolicy(total=0),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            cache=None,
        ),
    )
