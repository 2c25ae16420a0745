import asyncio
import logging

from pulse.core.config import get_settings
from pulse.core.db import close_engine, get_session_factory, init_engine, initialize_database
from pulse.core.logging_config import setup_logging
from pulse.infra.db.seed import seed_default_accounts

logger = logging.getLogger("pulse.seed")


async def main() -> None:
    setup_logging(get_settings())
    engine = init_engine()
    try:
        await initialize_database(engine)
        session_factory = get_session_factory()
        async with session_factory() as session:
            created = await seed_default_accounts(session)
            await session.commit()
        logger.info("Seeded %d default accounts", created)
    finally:
        await close_engine(engine)


if __name__ == "__main__":
    asyncio.run(main())
