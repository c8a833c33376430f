from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from splitbill.config import get_settings
from splitbill.db.repo import BillEventRepository, Database, set_global_repository
from splitbill.handlers import basic_router, bills_router, receipt_router, splitting_router
from splitbill.logging import configure_logging, get_logger
from splitbill.services.parsing import build_parser, set_global_parser


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()
    db = Database(settings.database_url)
    await db.connect()
    repo = BillEventRepository(db)

    dp.include_router(basic_router)
    dp.include_router(receipt_router)
    dp.include_router(splitting_router)
    dp.include_router(bills_router)

    set_global_repository(repo)
    set_global_parser(build_parser(settings))

    log = get_logger(__name__)
    log.info("bot.start", mock_parser=settings.use_mock_parser)
    try:
        await dp.start_polling(bot)
    finally:
        await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
