"""Host hooks that turn finished requests and commands into automatic runs."""

import functools
import logging

from flask import Flask, request

from log_indexer.models import CONSOLE, HTTP, UnitOfWorkEvent
from log_indexer.orchestrator import IndexingOrchestrator

logger = logging.getLogger(__name__)

EXTENSION_KEY = "log_indexer"
_SCHEDULED_KEY = "log_indexer.scheduled"


def _request_name() -> str:
    return request.endpoint or request.path


def init_app(app: Flask, orchestrator: IndexingOrchestrator) -> Flask:
    """Run an automatic indexing pass after every request of *app*.

    The pass is attached to the response and runs once the WSGI server closes
    it, after the body has been sent. Requests that never produce a response
    (an exception propagating out of the app) are indexed at teardown instead.
    """
    app.extensions[EXTENSION_KEY] = orchestrator

    @app.after_request
    def _index_on_close(response):
        event = UnitOfWorkEvent(HTTP, _request_name(), response.status_code)
        response.call_on_close(lambda: orchestrator.handle_event(event))
        request.environ[_SCHEDULED_KEY] = True
        return response

    @app.teardown_request
    def _index_without_response(exc=None):
        if request.environ.get(_SCHEDULED_KEY):
            return
        logger.debug("No response for %s, indexing at teardown", request.path)
        orchestrator.handle_event(UnitOfWorkEvent(HTTP, _request_name(), 500 if exc else None))

    return app


def console_command(orchestrator: IndexingOrchestrator, name: str):
    """Decorator: report *name* as a finished console command when it returns.

    The wrapped function's return value is used as the exit code. The event is
    emitted even if the command raises, and the exception still propagates.
    """
    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            exit_code = 1
            try:
                exit_code = fn(*args, **kwargs)
                return exit_code
            finally:
                orchestrator.handle_event(UnitOfWorkEvent(CONSOLE, name, exit_code))
        return wrapper
    return decorator
