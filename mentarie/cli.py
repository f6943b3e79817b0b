import click


@click.group()
def main() -> None:
    """Mentarie - realtime conversational language tutor."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: from MENTARIE_HOST or 0.0.0.0).")
@click.option("--port", default=None, type=int, help="Bind port (default: from MENTARIE_PORT or 8000).")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the ephemeral credential API."""
    import uvicorn

    from mentarie.realtime.settings import MentarieSettings

    settings = MentarieSettings()

    uvicorn.run(
        "mentarie.realtime.app:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        log_level="warning",  # uvicorn's own logging is intercepted by loguru
    )


@main.command()
@click.option("--agent-set", default=None, help="Agent set key (default: from MENTARIE_AGENT_SET).")
@click.option(
    "--credential-url",
    default=None,
    help="Credential endpoint. Ignored when MENTARIE_OPENAI_API_KEY is set.",
)
def chat(agent_set: str | None, credential_url: str | None) -> None:
    """Text chat with an agent over the realtime WebSocket API.

    Type a message and press enter.  ``/cancel`` interrupts the current reply,
    ``/quit`` (or EOF) ends the session.
    """
    import asyncio

    from mentarie.realtime.log import setup_logging
    from mentarie.realtime.settings import MentarieSettings

    settings = MentarieSettings()
    setup_logging(settings.log_level, serialize=settings.log_json, show_wire=settings.log_wire)

    settings = settings.model_copy(
        update={
            "transport": "websocket",
            "modalities": ["text"],
            "agent_set": agent_set or settings.agent_set,
            "credential_url": credential_url or settings.credential_url,
        }
    )
    try:
        asyncio.run(_chat(settings))
    except KeyboardInterrupt:
        pass


async def _chat(settings) -> None:
    import asyncio

    from mentarie.realtime.agents import get_agent_set
    from mentarie.realtime.credentials import EphemeralKeyProvider, StaticKeyProvider
    from mentarie.realtime.errors import RealtimeConnectionError
    from mentarie.realtime.session import RealtimeSession, SessionCallbacks

    try:
        agents = get_agent_set(settings.agent_set)
    except LookupError as e:
        raise click.UsageError(str(e)) from e

    if settings.openai_api_key is not None:
        credentials = StaticKeyProvider(settings.openai_api_key.get_secret_value())
    else:
        credentials = EphemeralKeyProvider(settings.credential_url, timeout=settings.request_timeout)

    session = RealtimeSession(
        agents,
        settings=settings,
        credentials=credentials,
        callbacks=SessionCallbacks(
            on_assistant_response_complete=lambda text: click.echo(f"\n{session.active_agent.name}> {text}\n"),
            on_data_channel_error=lambda error: click.echo(f"[channel error] {error}", err=True),
        ),
    )

    try:
        await session.connect()
    except RealtimeConnectionError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Connected as {session.active_agent.name}. /quit to exit.")
    try:
        while True:
            try:
                line = await asyncio.to_thread(click.prompt, "you", default="", show_default=False)
            except (EOFError, click.Abort):
                break
            line = line.strip()
            if line == "/quit":
                break
            if line == "/cancel":
                session.cancel_assistant_speech()
            elif line:
                session.send_user_text(line)
    finally:
        await session.disconnect()


if __name__ == "__main__":
    main()
