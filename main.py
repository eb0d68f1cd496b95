import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from pathlib import Path

from aiohttp import web

from api import create_app
from config import settings
from services import EmailNotifier, Extractor, PriceMonitor, StrategyRegistry, WatchRepository
from services.runtime import MonitorScheduler

# ensure logs are recorded both to stdout and to a rotating file
def configure_logging() -> None:
    log_dir = Path(os.getenv("LOG_DIR", "logs"))
    if not log_dir.is_absolute():
        log_dir = Path.cwd() / log_dir
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / "hotelwatch.log"

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        handlers=[
            logging.StreamHandler(),
            RotatingFileHandler(
                log_file,
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
                encoding="utf-8",
            ),
        ],
        force=True,
    )


configure_logging()
logger = logging.getLogger("hotelwatch")


def _install_signal_handlers(stop_event: asyncio.Event, scheduler: MonitorScheduler) -> None:
    loop = asyncio.get_running_loop()
    handlers = {signal.SIGINT: stop_event.set, signal.SIGTERM: stop_event.set}
    if hasattr(signal, "SIGHUP"):
        handlers[signal.SIGHUP] = scheduler.reload_interval
    for signum, callback in handlers.items():
        try:
            loop.add_signal_handler(signum, callback)
        except NotImplementedError:
            # Windows event loops; KeyboardInterrupt still reaches asyncio.run
            pass


async def main() -> None:
    settings.validate()

    repository = WatchRepository(settings.DB_PATH)
    strategies = StrategyRegistry.load(settings.STRATEGIES_PATH)
    extractor = Extractor(strategies)
    notifier = EmailNotifier()
    monitor = PriceMonitor(repository, extractor, notifier)
    scheduler = MonitorScheduler(monitor, settings.CHECK_INTERVAL_SECONDS)

    runner = web.AppRunner(create_app(repository, extractor))
    await runner.setup()
    site = web.TCPSite(runner, settings.API_HOST, settings.API_PORT)
    try:
        await site.start()
    except OSError:
        await runner.cleanup()
        await extractor.close()
        raise

    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event, scheduler)

    scheduler.start(run_immediately=True)
    logger.info(
        "Server listening on %s:%s. Checking prices every %s seconds",
        settings.API_HOST,
        settings.API_PORT,
        settings.CHECK_INTERVAL_SECONDS,
    )

    try:
        await stop_event.wait()
        logger.info("Shutdown signal received")
    finally:
        await scheduler.shutdown(grace_seconds=settings.SHUTDOWN_GRACE_SECONDS)
        await runner.cleanup()
        await extractor.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Service stopped by user")
    except Exception:
        logger.exception("Fatal error")
        raise SystemExit(1)
