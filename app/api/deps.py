from __future__ import annotations

from fastapi import Request

from app.generation.contracts import DraftGenerator
from app.runtime.dispatcher import Dispatcher


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def get_generator(request: Request) -> DraftGenerator:
    return request.app.state.dispatcher.generator
