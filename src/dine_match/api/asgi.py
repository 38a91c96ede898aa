"""ASGI entrypoint for the dine-match API."""

from dine_match.api.app import create_app
from dine_match.containers import build_container

app = create_app(build_container())
