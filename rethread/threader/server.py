"""
Rethread Server

FastAPI server receiving Slack events and running the install flow.

Endpoints:
- POST /slack/events: Slack Events API webhook
- GET /slack/install: Start OAuth install
- GET /slack/oauth_redirect: OAuth callback
- GET /health: Health check

Pipeline (per message event, in a background task):
1. Verify signature and acknowledge immediately
2. Drop events from workspaces without an installation
3. Route: store mutation, then threading + relocation for new top-level messages
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request, HTTPException, Header, BackgroundTasks, Query
from fastapi.responses import JSONResponse, RedirectResponse, PlainTextResponse

from ..common.config import load_config, RethreadConfig
from ..common.db_client import DbClient
from ..common.installation_store import InstallationStore
from ..common.logging_setup import setup_logging
from ..common.message_store import MessageStore
from .engine import ThreadingEngine
from .handlers import SlackHandler, InboundEvent
from .installer import Installer, InstallError
from .relocator import Relocator
from .router import EventRouter

logger = logging.getLogger("rethread.threader.server")


@dataclass
class Components:
    """Everything the endpoints need, wired once at startup"""
    config: RethreadConfig
    installation_store: InstallationStore
    router: EventRouter
    slack_handler: SlackHandler
    installer: Installer
    db_client: Optional[DbClient] = None


def build_components(config: RethreadConfig) -> Components:
    """Construct stores, engine and relocator from configuration"""
    db_client = DbClient(
        base_url=config.store.base_url,
        token=config.store.token,
        timeout=config.store.timeout,
    )
    message_store = MessageStore(db_client, look_behind=config.threader.look_behind)
    installation_store = InstallationStore(db_client)

    router = EventRouter(
        message_store=message_store,
        engine=ThreadingEngine.default(message_store),
        relocator=Relocator(installation_store),
    )

    return Components(
        config=config,
        installation_store=installation_store,
        router=router,
        slack_handler=SlackHandler(signing_secret=config.slack.signing_secret),
        installer=Installer(config.slack, installation_store),
        db_client=db_client,
    )


async def process_event(components: Components, inbound: InboundEvent) -> None:
    """Route one message event. Runs after the webhook has been acknowledged."""
    team_id = inbound.team_id
    if components.config.threader.require_installation:
        if not team_id:
            logger.debug("Dropping event %s without team id", inbound.event_id)
            return
        installation = await components.installation_store.get_installation_by_team_id(team_id)
        if installation is None:
            logger.warning("Dropping event %s from uninstalled team %s", inbound.event_id, team_id)
            return

    result = await components.router.on_message(inbound.event, team_id=team_id)
    if result is not None:
        logger.info("Relocation for event %s: %s", inbound.event_id, result.value)


def create_app(components: Optional[Components] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        components: Pre-wired components (tests); built from load_config() when omitted
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = components is None
        if owned:
            load_dotenv()
            config = load_config()
            setup_logging(config.log_level)
            app.state.components = build_components(config)
        else:
            app.state.components = components

        logger.info("Ready to receive events")
        yield

        logger.info("Shutting down")
        if owned and app.state.components.db_client is not None:
            await app.state.components.db_client.close()

    app = FastAPI(
        title="Rethread",
        description="Moves stray Slack messages into the thread they belong to",
        version="0.1.0",
        lifespan=lifespan,
    )

    def _components(request: Request) -> Components:
        found = getattr(request.app.state, "components", None)
        if found is None:
            raise HTTPException(status_code=503, detail="Not initialized")
        return found

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint"""
        found = getattr(request.app.state, "components", None)
        return {
            "status": "healthy",
            "service": "rethread",
            "initialized": found is not None,
            "heuristics": (
                [h.name for h in found.router.engine.heuristics] if found else []
            ),
        }

    @app.post("/slack/events")
    async def slack_events(
        request: Request,
        background_tasks: BackgroundTasks,
        x_slack_signature: Optional[str] = Header(None),
        x_slack_request_timestamp: Optional[str] = Header(None)
    ):
        """
        Handle Slack webhook events.

        Always acknowledges a well-formed, authentic request; processing
        happens afterwards and never reports back to Slack.
        """
        found = _components(request)
        handler = found.slack_handler

        body = await request.body()

        if not handler.verify_signature(
            body,
            x_slack_signature or "",
            x_slack_request_timestamp or ""
        ):
            raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            data = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise HTTPException(status_code=400, detail="Invalid JSON")

        if not isinstance(data, dict):
            logger.debug("Ignoring non-object Slack payload")
            return JSONResponse({"ok": True})

        if handler.is_url_verification(data):
            return JSONResponse({"challenge": handler.get_challenge(data)})

        inbound = handler.parse_event(data)
        if inbound is not None:
            background_tasks.add_task(process_event, found, inbound)

        return JSONResponse({"ok": True})

    @app.get("/slack/install")
    async def slack_install(request: Request):
        """Redirect to Slack's authorize page"""
        installer = _components(request).installer
        return RedirectResponse(installer.authorize_url(installer.issue_state()))

    @app.get("/slack/oauth_redirect")
    async def slack_oauth_redirect(
        request: Request,
        code: Optional[str] = Query(None),
        state: Optional[str] = Query(None),
        error: Optional[str] = Query(None),
    ):
        """Finish the install flow"""
        installer = _components(request).installer

        if error:
            raise HTTPException(status_code=400, detail=f"Install cancelled: {error}")
        if not code or not installer.verify_state(state or ""):
            raise HTTPException(status_code=400, detail="Invalid OAuth state")

        try:
            installation = await installer.complete(code)
        except InstallError as e:
            logger.error("Install failed: %s", e)
            raise HTTPException(status_code=400, detail="Installation failed")

        return PlainTextResponse(f"Rethread installed in {installation.team.name or installation.team.id}.")

    return app


app = create_app()


# =============================================================================
# CLI Entry Point
# =============================================================================

def run_server():
    """Run the Rethread server"""
    import uvicorn

    load_dotenv()
    config = load_config()
    setup_logging(config.log_level)

    logger.info("Starting server on port %s", config.server.port)
    uvicorn.run(
        "rethread.threader.server:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run_server()
