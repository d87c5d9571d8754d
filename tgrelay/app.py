"""the beautiful world start from here."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from tgrelay.config import settings
from tgrelay.logging_utils import RequestIDMiddleware, configure_logging
from tgrelay.routers import api, info, tg
from tgrelay.services.mute import MuteState
from tgrelay.services.telegram import TelegramError, set_telegram_webhook
from tgrelay.services.tickets import TicketDrafts

configure_logging(settings.log_level)
logger = logging.getLogger("tgrelay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.started_at = int(time.time())
    app.state.mute = MuteState()
    app.state.drafts = TicketDrafts()
    app.state.tasks = set()

    if settings.telegram_token and settings.public_base_url:
        try:
            await set_telegram_webhook(settings.telegram_token)
            logger.info("Telegram webhook set under %s", settings.public_base_url)
        except TelegramError as exc:
            logger.error("Telegram webhook not set: %s", exc)
    else:
        logger.info("PUBLIC_BASE_URL not set, chat commands disabled")

    yield

    for task in list(app.state.tasks):
        task.cancel()


app = FastAPI(title="Jira / Alertmanager → Telegram", lifespan=lifespan)
app.add_middleware(RequestIDMiddleware)

app.include_router(info.router)
app.include_router(api.router)
app.include_router(tg.router)


def main() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
