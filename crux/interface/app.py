"""CRUX client application entry point."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer

from crux.config import Settings
from crux.interface.session import CruxSession
from crux.util.di.container import create_container
from crux.util.logging import setup_logging
from crux.util.observability import configure_logfire, instrument_httpx


def configure(settings: Settings | None = None) -> Settings:
    """Configure logging and observability for the process.

    Call once at startup, before opening sessions.

    Args:
        settings: Application settings (loaded from the environment if omitted)

    Returns:
        The settings in effect
    """
    settings = settings or Settings()
    setup_logging(settings)
    configure_logfire(settings)

    # Logfire must be configured before instrumentation
    instrument_httpx()
    return settings


@asynccontextmanager
async def open_session(
    container: AsyncContainer | None = None, settings: Settings | None = None
) -> AsyncIterator[CruxSession]:
    """Open a started client session.

    Each session is one request scope of the container: it gets its own
    services, views and subscriptions, all released on exit. The container
    is closed on exit when it was created here.

    Args:
        container: DI container (a production container if omitted)
        settings: Settings for the production container built here
    """
    owned = container is None
    container = container or create_container(settings)
    try:
        async with container() as request_container:
            session = await request_container.get(CruxSession)
            logfire.info("Client session opened", user_id=str(session.auth_service.current_user_id))
            yield session
    finally:
        if owned:
            await container.close()
