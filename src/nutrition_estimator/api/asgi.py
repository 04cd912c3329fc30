"""ASGI entrypoint for the nutrition estimator API."""

from nutrition_estimator.api.app import create_app
from nutrition_estimator.containers import build_container

app = create_app(build_container())
