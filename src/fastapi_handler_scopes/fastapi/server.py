"""uvicorn server that wakes parked calls when told to exit.

uvicorn waits for open connections to finish before it runs the lifespan
shutdown, so a call parked in a long delay would keep the server alive until
its delay elapsed. This server interrupts pending delays as soon as the exit
signal arrives instead.
"""

import logging
from types import FrameType

import uvicorn
from fastapi import FastAPI

from fastapi_handler_scopes.core.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class DispatcherServer(uvicorn.Server):
    """A uvicorn.Server bound to the dispatcher serving its app.

    Args:
        config: uvicorn configuration. config.app must be the app whose
            dispatcher is passed alongside it.
        dispatcher: Dispatcher to shut down on the exit signal.
    """

    def __init__(self, config: uvicorn.Config, dispatcher: Dispatcher) -> None:
        super().__init__(config)
        self.dispatcher = dispatcher

    def handle_exit(self, sig: int, frame: FrameType | None) -> None:
        super().handle_exit(sig, frame)
        woken = self.dispatcher.shutdown()
        logger.info("Exit requested", extra={"signal": sig, "interrupted": woken})


def serve(app: FastAPI, *, host: str, port: int, log_level: int | str) -> None:
    """Run app under a DispatcherServer until it is told to exit.

    Example:
        serve(create_app(), host="127.0.0.1", port=8080, log_level=logging.INFO)
    """
    config = uvicorn.Config(app, host=host, port=port, log_level=log_level)
    DispatcherServer(config, app.state.dispatcher).run()
