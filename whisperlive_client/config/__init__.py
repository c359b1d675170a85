"""Configuration for the WhisperLive client."""
