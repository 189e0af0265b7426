"""
Installation Store

Persists OAuth installations and resolves the per-user credential needed to
post and delete on a user's behalf.
"""

import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from .db_client import DbClient
from .schemas import Installation, UserInstallation

logger = logging.getLogger("rethread.common.installation_store")


def _first_installation_json(result: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Decode the ``installation`` column of the first result row"""
    if not result or not isinstance(result, dict):
        return None
    rows = result.get("results") or []
    if not rows or not isinstance(rows[0], dict):
        return None
    raw = rows[0].get("installation")
    if not raw:
        return None
    try:
        return json.loads(raw) if isinstance(raw, str) else raw
    except json.JSONDecodeError as e:
        logger.warning("Stored installation is not valid JSON: %s", e)
        return None


class InstallationStore:
    """
    Workspace and user installations backed by the
    ``teamInstallations`` / ``userInstallations`` tables.
    """

    def __init__(self, db_client: DbClient):
        self._db = db_client

    async def put_installation(self, installation: Installation) -> None:
        """Store the workspace installation and, if present, the user's grant"""
        logger.info("Creating installation for team %s", installation.team.id)
        await self._db.do_query(
            "INSERT INTO teamInstallations(teamId, installation) VALUES (?, ?);",
            [installation.team.id, installation.model_dump_json()],
        )
        if installation.user:
            await self._db.do_query(
                "INSERT INTO userInstallations(teamId, userId, installation) VALUES (?, ?, ?);",
                [
                    installation.team.id,
                    installation.user.id,
                    installation.user.model_dump_json(),
                ],
            )

    async def get_installation_by_team_id(self, team_id: str) -> Optional[Installation]:
        """Workspace installation, or None if the app is not installed there"""
        result = await self._db.do_query(
            "SELECT installation FROM teamInstallations WHERE teamId = ?",
            [team_id],
        )
        data = _first_installation_json(result)
        if data is None:
            return None
        try:
            return Installation.model_validate(data)
        except ValidationError as e:
            logger.warning("Malformed installation for team %s: %s", team_id, e)
            return None

    async def get_user(self, team_id: str, user_id: str) -> Optional[UserInstallation]:
        """Credential for acting as ``user_id`` in ``team_id``, or None"""
        result = await self._db.do_query(
            "SELECT installation FROM userInstallations WHERE teamId = ? AND userId = ?",
            [team_id, user_id],
        )
        data = _first_installation_json(result)
        if data is None:
            return None
        try:
            return UserInstallation.model_validate(data)
        except ValidationError as e:
            logger.warning("Malformed user installation for %s/%s: %s", team_id, user_id, e)
            return None
