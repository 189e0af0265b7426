"""
Configuration Management for Rethread

Loads configuration from ~/.rethread/config.json and environment variables.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import List

from .message_store import MESSAGES_LOOK_BEHIND, clamp_look_behind

logger = logging.getLogger("rethread.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".rethread"
CONFIG_PATH = CONFIG_DIR / "config.json"

DEFAULT_STORE_URL = "https://api.seagullflight.com"
DEFAULT_BOT_SCOPES = ["channels:history", "chat:write", "chat:write.customize"]
DEFAULT_USER_SCOPES = ["chat:write"]


@dataclass
class StoreConfig:
    """Remote message/installation store configuration"""
    base_url: str = DEFAULT_STORE_URL
    token: str = ""
    timeout: float = 10.0


@dataclass
class SlackConfig:
    """Slack app credentials and OAuth settings"""
    signing_secret: str = ""
    client_id: str = ""
    client_secret: str = ""
    state_secret: str = ""
    redirect_uri: str = ""
    scopes: List[str] = field(default_factory=lambda: list(DEFAULT_BOT_SCOPES))
    user_scopes: List[str] = field(default_factory=lambda: list(DEFAULT_USER_SCOPES))


@dataclass
class ThreaderConfig:
    """Threading engine configuration"""
    look_behind: int = MESSAGES_LOOK_BEHIND
    require_installation: bool = True  # drop events from workspaces with no installation


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "0.0.0.0"
    port: int = 3000


@dataclass
class RethreadConfig:
    """Main Rethread configuration"""
    store: StoreConfig = field(default_factory=StoreConfig)
    slack: SlackConfig = field(default_factory=SlackConfig)
    threader: ThreaderConfig = field(default_factory=ThreaderConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = "INFO"


def _parse_store_config(data: dict) -> StoreConfig:
    """Parse store section from config dict"""
    store_data = data.get("store", {})
    return StoreConfig(
        base_url=store_data.get("base_url", DEFAULT_STORE_URL).rstrip("/"),
        token=store_data.get("token", ""),
        timeout=float(store_data.get("timeout", 10.0)),
    )


def _parse_slack_config(data: dict) -> SlackConfig:
    """Parse slack section from config dict"""
    slack_data = data.get("slack", {})
    return SlackConfig(
        signing_secret=slack_data.get("signing_secret", ""),
        client_id=slack_data.get("client_id", ""),
        client_secret=slack_data.get("client_secret", ""),
        state_secret=slack_data.get("state_secret", ""),
        redirect_uri=slack_data.get("redirect_uri", ""),
        scopes=list(slack_data.get("scopes", DEFAULT_BOT_SCOPES)),
        user_scopes=list(slack_data.get("user_scopes", DEFAULT_USER_SCOPES)),
    )


def _parse_threader_config(data: dict) -> ThreaderConfig:
    """Parse threader section from config dict"""
    threader_data = data.get("threader", {})
    return ThreaderConfig(
        look_behind=clamp_look_behind(threader_data.get("look_behind", MESSAGES_LOOK_BEHIND)),
        require_installation=bool(threader_data.get("require_installation", True)),
    )


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    return ServerConfig(
        host=server_data.get("host", "0.0.0.0"),
        port=int(server_data.get("port", 3000)),
    )


def load_config() -> RethreadConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.rethread/config.json)
    3. Default values
    """
    config = RethreadConfig()

    # Load from config file if exists
    if CONFIG_PATH.exists():
        try:
            with open(CONFIG_PATH) as f:
                data = json.load(f)

            config.store = _parse_store_config(data)
            config.slack = _parse_slack_config(data)
            config.threader = _parse_threader_config(data)
            config.server = _parse_server_config(data)
            config.log_level = data.get("log_level", "INFO")
        except (json.JSONDecodeError, IOError, ValueError, TypeError) as e:
            logger.warning("Failed to load config file %s: %s", CONFIG_PATH, e)

    # Environment variable overrides
    if os.getenv("SEAGULL_FLIGHT_BASE_URL"):
        config.store.base_url = os.getenv("SEAGULL_FLIGHT_BASE_URL").rstrip("/")
    if os.getenv("SEAGULL_FLIGHT_TOKEN"):
        config.store.token = os.getenv("SEAGULL_FLIGHT_TOKEN")

    _env_slack_map = {
        "SLACK_SIGNING_SECRET": "signing_secret",
        "SLACK_CLIENT_ID": "client_id",
        "SLACK_CLIENT_SECRET": "client_secret",
        "SLACK_STATE_SECRET": "state_secret",
        "SLACK_REDIRECT_URI": "redirect_uri",
    }
    for env_var, attr in _env_slack_map.items():
        val = os.getenv(env_var)
        if val:
            setattr(config.slack, attr, val)

    if os.getenv("PORT"):
        config.server.port = int(os.getenv("PORT"))
    if os.getenv("RETHREAD_LOOK_BEHIND"):
        config.threader.look_behind = clamp_look_behind(os.getenv("RETHREAD_LOOK_BEHIND"))
    if os.getenv("RETHREAD_LOG_LEVEL"):
        config.log_level = os.getenv("RETHREAD_LOG_LEVEL")

    return config
