"""
Async logging service
"""
import logging
from logging.handlers import QueueHandler, QueueListener
from queue import SimpleQueue

from artauction.core.async_service import AsyncService
from artauction.core.logging import configure_logging


class AsyncLoggingService(AsyncService):
    """
    Reconfigures logging to let handlers do their work on a separate thread from the event loop.

    Auction floors log from their countdown tasks once per tick. Routing records through a queue keeps
    slow handlers (file, network) off the event loop thread.
    """

    def __init__(
        self,
        level: int = logging.WARNING,
        handlers: list[logging.Handler] | None = None,
    ):
        """
        :param level: root logging level
        :param handlers: root logging handlers
        """
        super().__init__()
        self.level = level
        self.__handlers = handlers[:] if handlers else None
        self.__queue: SimpleQueue[logging.LogRecord] = SimpleQueue()
        self.__listener: QueueListener | None = None

    async def _start(self) -> None:
        configure_logging(self.level, self.__handlers)

        root = logging.getLogger()
        handlers: list[logging.Handler] = root.handlers[:]
        root.handlers.clear()
        root.addHandler(QueueHandler(self.__queue))  # type: ignore

        self.__listener = QueueListener(
            self.__queue,  # type: ignore
            *handlers,
            respect_handler_level=True,
        )
        self.__listener.start()

    async def _stop(self):
        # reset logging
        configure_logging(self.level, self.__handlers)

        if self.__listener:
            self.__listener.stop()
            self.__listener = None
