"""
Installer

OAuth v2 install flow: hands out the authorize URL, checks the returned
state, exchanges the code and stores the resulting installation.

The bot scopes let the app read channel history; the user scope lets it
post and delete on behalf of each user who installs it.
"""

import hashlib
import hmac
import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from slack_sdk.oauth import AuthorizeUrlGenerator
from slack_sdk.web.async_client import AsyncWebClient

from ..common.config import SlackConfig
from ..common.installation_store import InstallationStore
from ..common.schemas import Installation, TeamRef, BotInstallation, UserInstallation

logger = logging.getLogger("rethread.threader.installer")

STATE_TTL = 600  # seconds


class InstallError(Exception):
    """Install flow could not be completed."""
    pass


def _split_scopes(raw: Optional[str]):
    return [s for s in (raw or "").split(",") if s]


class Installer:
    """OAuth v2 install flow backed by InstallationStore."""

    def __init__(
        self,
        slack_config: SlackConfig,
        installation_store: InstallationStore,
        client_factory: Callable[..., AsyncWebClient] = AsyncWebClient,
    ):
        self._config = slack_config
        self._installations = installation_store
        self._client_factory = client_factory
        self._url_generator = AuthorizeUrlGenerator(
            client_id=slack_config.client_id,
            scopes=slack_config.scopes,
            user_scopes=slack_config.user_scopes,
            redirect_uri=slack_config.redirect_uri or None,
        )

    def authorize_url(self, state: str) -> str:
        return self._url_generator.generate(state)

    def _sign(self, payload: str) -> str:
        return hmac.new(
            self._config.state_secret.encode("utf-8"),
            payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def issue_state(self, now: Optional[float] = None) -> str:
        """Create a signed, time-limited OAuth state value"""
        issued_at = int(now if now is not None else time.time())
        payload = f"{issued_at}.{secrets.token_urlsafe(16)}"
        return f"{payload}.{self._sign(payload)}"

    def verify_state(self, state: str, now: Optional[float] = None) -> bool:
        """Check signature and age of a state value"""
        if not state or not self._config.state_secret:
            return False
        try:
            issued_at, nonce, signature = state.split(".")
            age = (now if now is not None else time.time()) - int(issued_at)
        except ValueError:
            return False
        if age < 0 or age > STATE_TTL:
            return False
        return hmac.compare_digest(self._sign(f"{issued_at}.{nonce}"), signature)

    async def complete(self, code: str) -> Installation:
        """
        Exchange an OAuth code and persist the installation.

        Args:
            code: ``code`` query parameter from the redirect

        Returns:
            The stored Installation

        Raises:
            InstallError: If Slack rejects the exchange or omits the team
        """
        client = self._client_factory()
        try:
            response = await client.oauth_v2_access(
                client_id=self._config.client_id,
                client_secret=self._config.client_secret,
                code=code,
                redirect_uri=self._config.redirect_uri or None,
            )
        except Exception as e:
            raise InstallError(f"oauth.v2.access failed: {e}") from e

        team = response.get("team") or {}
        if not team.get("id"):
            raise InstallError("oauth.v2.access response has no team")

        bot = None
        if response.get("access_token"):
            bot = BotInstallation(
                token=response["access_token"],
                user_id=response.get("bot_user_id"),
                scopes=_split_scopes(response.get("scope")),
            )

        user = None
        authed_user = response.get("authed_user") or {}
        if authed_user.get("id") and authed_user.get("access_token"):
            user = UserInstallation(
                id=authed_user["id"],
                token=authed_user["access_token"],
                scopes=_split_scopes(authed_user.get("scope")),
            )

        installation = Installation(
            team=TeamRef(id=team["id"], name=team.get("name")),
            bot=bot,
            user=user,
            installed_at=datetime.now(timezone.utc).isoformat(),
        )
        await self._installations.put_installation(installation)
        logger.info(
            "Installed in team %s (user grant: %s)",
            installation.team.id, bool(installation.user),
        )
        return installation
