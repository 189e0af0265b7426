"""
Installation Schemas

Records produced by the OAuth v2 install flow. The workspace record holds the
bot credential; the per-user record holds the token used to post and delete
on the user's behalf.
"""

from typing import List, Optional
from pydantic import BaseModel, Field


class TeamRef(BaseModel):
    """Workspace reference"""
    id: str
    name: Optional[str] = None


class BotInstallation(BaseModel):
    """Bot credential granted to the app"""
    token: str
    user_id: Optional[str] = None
    scopes: List[str] = Field(default_factory=list)


class UserInstallation(BaseModel):
    """Credential allowing the app to act as a specific user"""
    id: str
    token: str
    scopes: List[str] = Field(default_factory=list)


class Installation(BaseModel):
    """A workspace installation, optionally with the installing user's grant"""
    team: TeamRef
    bot: Optional[BotInstallation] = None
    user: Optional[UserInstallation] = None
    installed_at: Optional[str] = None
