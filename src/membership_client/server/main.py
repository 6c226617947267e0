# Файл: membership_client/server/main.py
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from membership_client import create_membership_client
from membership_client.logging import configure as configure_logging
from membership_client.service import MembershipService
from .routes import router


def create_app(service: Optional[MembershipService] = None) -> FastAPI:
    """
    Собирает FastAPI-приложение.
    Если service не передан, клиент создается из настроек окружения при старте.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if service is not None:
            app.state.membership_service = service
            yield
            return
        configure_logging()
        client = create_membership_client()
        app.state.membership_service = client.memberships
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(title="membership-client", lifespan=lifespan)
    if service is not None:
        app.state.membership_service = service
    app.include_router(router)
    return app
