"""ASGI entrypoint for the Grumble API."""

from grumble.api.app import create_app
from grumble.containers import build_container

app = create_app(build_container())
