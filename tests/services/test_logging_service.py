import asyncio
import logging
import logging.handlers
import unittest
from logging import LogRecord

from artauction.services.logging_service import AsyncLoggingService

logger = logging.getLogger(__name__)


class FooLogHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records: list[LogRecord] = []

    def emit(self, record: LogRecord) -> None:
        self.records.append(record)


class LoggingServiceTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.logging_service = AsyncLoggingService(level=logging.DEBUG)
        await self.logging_service.start()
        await self.logging_service.await_running()

    async def asyncTearDown(self) -> None:
        await self.logging_service.stop()
        await self.logging_service.await_stopped()

    async def test_local_logging(self):
        logger.info("Ciao Mundo!")
        root_handlers = logging.getLogger().handlers
        self.assertEqual(1, len(root_handlers))
        self.assertIsInstance(root_handlers[0], logging.handlers.QueueHandler)


class LoggingServiceWithHandlersTestCase(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.handler = FooLogHandler()
        self.logging_service = AsyncLoggingService(
            level=logging.DEBUG, handlers=[self.handler]
        )
        await self.logging_service.start()
        await self.logging_service.await_running()

    async def asyncTearDown(self) -> None:
        await self.logging_service.stop()
        await self.logging_service.await_stopped()

    async def test_local_logging(self):
        msg = "Ciao Mundo!"
        logger.info(msg)

        # records are handled on the queue listener thread
        for _ in range(100):
            if any(record.getMessage() == msg for record in self.handler.records):
                break
            await asyncio.sleep(0.01)
        matches = [record for record in self.handler.records if record.getMessage() == msg]
        self.assertEqual(1, len(matches))


if __name__ == "__main__":
    unittest.main()
