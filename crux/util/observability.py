"""Logfire setup for the CRUX client.

Services log through logfire directly:

    logfire.info("Draft saved", draft_id=draft.id, status=status.value)

    with logfire.span("draft_reconciler.save_draft", identity=key):
        ...
"""

import logfire

from crux.config import Settings


def should_send(settings: Settings) -> bool:
    """Whether telemetry leaves the process.

    An explicit ``OBSERVABILITY__SEND_TO_LOGFIRE`` wins; otherwise telemetry
    is sent only when a token is configured.
    """
    if settings.observability.send_to_logfire is not None:
        return settings.observability.send_to_logfire
    return bool(settings.observability.logfire_token)


def configure_logfire(settings: Settings) -> None:
    """Configure logfire for the client process.

    Without a token everything stays on the local console, which is the
    normal setup for development and tests.

    Args:
        settings: Application settings
    """
    send_to_logfire = should_send(settings)

    options = {
        "service_name": "crux-client",
        "service_version": "0.1.0",
        "environment": settings.environment,
        "send_to_logfire": send_to_logfire,
        "console": logfire.ConsoleOptions(
            colors="auto",
            span_style="indented",
            include_timestamps=True,
            verbose=settings.debug,
        ),
    }
    if settings.observability.logfire_token:
        options["token"] = settings.observability.logfire_token

    logfire.configure(**options)
    logfire.info(
        "Observability configured",
        environment=settings.environment,
        send_to_logfire=send_to_logfire,
    )


def instrument_httpx() -> None:
    """Trace identity provider requests made with httpx."""
    logfire.instrument_httpx()
