"""whisperlive CLI.

Registers all commands on the main group.
"""

from whisperlive_client.cli.main import cli
from whisperlive_client.cli.transcribe import check_ffmpeg_command, transcribe_command

__all__ = ["check_ffmpeg_command", "cli", "transcribe_command"]
