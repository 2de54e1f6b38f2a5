"""ASGI entrypoint for the voice-to-code API."""

from voice_to_code.api.app import create_app
from voice_to_code.containers import build_container

app = create_app(build_container())
