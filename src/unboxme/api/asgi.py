"""ASGI entrypoint for the UnboxMe API."""

from unboxme.api.app import create_app
from unboxme.containers import build_container

app = create_app(build_container())
