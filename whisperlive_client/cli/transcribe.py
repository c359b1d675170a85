"""`whisperlive transcribe` and `whisperlive check-ffmpeg` commands."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from whisperlive_client._types import Task
from whisperlive_client.audio.convert import check_ffmpeg, convert_to_raw_audio
from whisperlive_client.cli.main import cli
from whisperlive_client.client import TranscriptionClient
from whisperlive_client.config.settings import ClientSettings, get_settings
from whisperlive_client.exceptions import WhisperLiveError
from whisperlive_client.upload import transcribe_via_proxy


def _build_settings(
    language: str | None,
    model: str | None,
    task: str | None,
    use_vad: bool | None,
) -> ClientSettings:
    """Overlay command-line handshake options on the environment settings."""
    settings = get_settings()
    updates: dict[str, object] = {}
    if language is not None:
        updates["language"] = None if language.lower() == "auto" else language
    if model is not None:
        updates["model"] = model
    if task is not None:
        updates["task"] = Task(task)
    if use_vad is not None:
        updates["use_vad"] = use_vad
    if not updates:
        return settings
    handshake = settings.handshake.model_copy(update=updates)
    return settings.model_copy(update={"handshake": handshake})


def _transcribe_file(file_path: Path, settings: ClientSettings, url: str | None) -> None:
    """Convert the file, replay it over a session and print the transcript."""
    if not file_path.exists():
        click.echo(f"Error: file not found: {file_path}", err=True)
        sys.exit(1)

    try:
        audio = convert_to_raw_audio(file_path, settings.delivery.sample_rate)
        text = asyncio.run(TranscriptionClient(settings, url=url).transcribe_file(audio))
    except WhisperLiveError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(text)


def _transcribe_via_proxy(file_path: Path, proxy_url: str | None) -> None:
    """Upload the recording to the HTTP proxy and print the transcript."""
    if not file_path.exists():
        click.echo(f"Error: file not found: {file_path}", err=True)
        sys.exit(1)

    try:
        text = transcribe_via_proxy(
            file_path,
            url=proxy_url,
            on_status=lambda status: click.echo(f"[{status}]", err=True),
        )
    except WhisperLiveError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    click.echo(text)


def _stream_microphone(settings: ClientSettings, url: str | None) -> None:
    """Stream the microphone until Ctrl+C and print transcript updates."""
    click.echo(f"Connecting to {url or settings.connection.url} ...")
    click.echo("Press Ctrl+C to stop.\n")

    try:
        transcript = asyncio.run(_stream_microphone_async(settings, url))
    except KeyboardInterrupt:
        click.echo("\n\nSession ended.")
        return
    except WhisperLiveError as exc:
        click.echo(f"\nError: {exc}", err=True)
        sys.exit(1)

    click.echo(f"\r\033[K> {transcript}")
    click.echo("\nDone.")


async def _stream_microphone_async(settings: ClientSettings, url: str | None) -> str:
    def show_partial(text: str) -> None:
        # Clear line and show the latest snapshot
        click.echo(f"\r\033[K  ... {text}", nl=False)

    client = TranscriptionClient(settings, url=url, on_transcript=show_partial)
    await client.start_streaming()
    click.echo(f"Session started: {client.session.session_id if client.session else '?'}")
    try:
        await client.wait_closed()
    finally:
        await client.stop_streaming()
    return client.current_transcript()


@cli.command("transcribe")
@click.argument("file", type=click.Path(exists=False), required=False, default=None)
@click.option("--url", "-u", default=None, help="WhisperLive WebSocket URL (ws:// or wss://).")
@click.option("--language", "-l", default=None, help="ISO 639-1 language code, or 'auto'.")
@click.option("--model", "-m", default=None, help="Model size requested from the server.")
@click.option(
    "--task",
    type=click.Choice([t.value for t in Task]),
    default=None,
    help="Transcribe, or translate to English.",
)
@click.option(
    "--use-vad/--no-vad",
    default=None,
    help="Ask the server to run voice activity detection.",
)
@click.option(
    "--stream",
    is_flag=True,
    default=False,
    help="Real-time streaming from the microphone.",
)
@click.option(
    "--proxy",
    is_flag=True,
    default=False,
    help="Upload the whole recording to the HTTP transcription proxy instead.",
)
@click.option("--proxy-url", default=None, help="HTTP transcription proxy URL.")
def transcribe_command(
    file: str | None,
    url: str | None,
    language: str | None,
    model: str | None,
    task: str | None,
    use_vad: bool | None,
    stream: bool,
    proxy: bool,
    proxy_url: str | None,
) -> None:
    """Transcribes an audio file (or the microphone with --stream)."""
    if stream and proxy:
        click.echo("Error: --stream and --proxy cannot be combined.", err=True)
        sys.exit(1)

    try:
        settings = _build_settings(language, model, task, use_vad)
    except ValueError as exc:
        click.echo(f"Error: invalid settings: {exc}", err=True)
        sys.exit(1)

    if stream:
        _stream_microphone(settings, url)
        return

    if file is None:
        click.echo("Error: provide FILE or use --stream for microphone.", err=True)
        sys.exit(1)

    if proxy:
        _transcribe_via_proxy(Path(file), proxy_url)
        return

    _transcribe_file(Path(file), settings, url)


@cli.command("check-ffmpeg")
def check_ffmpeg_command() -> None:
    """Checks that ffmpeg is available for audio conversion."""
    if check_ffmpeg():
        click.echo("ffmpeg: available")
        return
    click.echo("ffmpeg: not found (WAV/FLAC/OGG still decode via soundfile)", err=True)
    sys.exit(1)
