"""whisperlive-client — streaming client for WhisperLive transcription servers."""

from __future__ import annotations

__version__ = "0.1.0"

from whisperlive_client.client import TranscriptionClient, transcribe_with_whisperlive

__all__ = ["TranscriptionClient", "__version__", "transcribe_with_whisperlive"]
