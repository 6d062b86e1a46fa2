"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Defines the middleware protocol and the pipeline for chaining middleware
around a writer-style handler.

=============================================================================
CHAIN OF RESPONSIBILITY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                   WRITER-STYLE REQUEST FLOW                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   server ──► Logging(writer) ──► Rewrite(writer') ──► handler       │
    │                                                                      │
    │   Each layer receives (writer, request) and calls the next layer,   │
    │   possibly with a WRAPPED writer:                                   │
    │                                                                      │
    │     Logging passes a writer that remembers the status code          │
    │     Rewrite passes a writer that buffers the body                   │
    │                                                                      │
    │   Nothing is "returned": responses travel through the writers.      │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two kinds of pipeline entries are accepted:

    Middleware instances    mw(writer, request, next)
    Handler wrappers        wrap(next) -> handler
                            (e.g. RewriteMiddleware.factory(config))

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Union
import logging

from ..http.writer import Handler, ResponseWriter


logger = logging.getLogger(__name__)


# Takes the next handler, returns a handler that calls it.
HandlerWrapper = Callable[[Handler], Handler]


class Middleware(ABC):
    """
    Abstract base class for middleware.

    =========================================================================
    MIDDLEWARE ANATOMY
    =========================================================================

        class ServerHeader(Middleware):
            def __call__(self, writer, request, next):
                # Before the handler: headers are still mutable
                writer.headers.set("X-Served-By", "edge-1")

                next(writer, request)

                # After the handler: the response has been written
                # (possibly still buffered by an inner layer)

    =========================================================================
    """

    @abstractmethod
    def __call__(self, writer: ResponseWriter, request: Any, next: Handler) -> None:
        """
        Process the request.

        Args:
            writer: Where the response goes. May be wrapped before
                   being passed on.
            request: The incoming request.
            next: The next handler in the chain.
        """

    @property
    def name(self) -> str:
        """Get the middleware name for logging."""
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

    First added = outermost:

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        pipeline.add(RewriteMiddleware.factory(config))
        handler = pipeline.wrap(static_files.handle)

        # handler(writer, request) runs
        #   LoggingMiddleware → RewriteMiddleware → static_files.handle
    """

    def __init__(self):
        self._middleware: List[Union[Middleware, HandlerWrapper]] = []

    def add(self, middleware: Union[Middleware, HandlerWrapper]) -> "MiddlewarePipeline":
        """Add a Middleware or a handler wrapper. Returns self for chaining."""
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {_name_of(middleware)}")
        return self

    def use(self, *middleware: Union[Middleware, HandlerWrapper]) -> "MiddlewarePipeline":
        """Add several at once."""
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: Handler) -> Handler:
        """
        Wrap a handler with everything in the pipeline.

        Given [MW1, MW2, MW3] and handler the result is
        MW1 → MW2 → MW3 → handler, so wrapping happens in reverse.
        """
        current = handler
        for middleware in reversed(self._middleware):
            if isinstance(middleware, Middleware):
                current = self._create_wrapped_handler(middleware, current)
            else:
                current = middleware(current)
        return current

    def _create_wrapped_handler(self, middleware: Middleware, next_handler: Handler) -> Handler:
        def wrapped(writer: ResponseWriter, request: Any) -> None:
            middleware(writer, request, next_handler)

        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


class FunctionMiddleware(Middleware):
    """
    Wraps a plain function as middleware.

        @function_middleware
        def served_by(writer, request, next):
            writer.headers.set("X-Served-By", "edge-1")
            next(writer, request)

        pipeline.add(served_by)
    """

    def __init__(
        self,
        func: Callable[[ResponseWriter, Any, Handler], None],
        name: Optional[str] = None,
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, writer: ResponseWriter, request: Any, next: Handler) -> None:
        self._func(writer, request, next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(func: Callable[[ResponseWriter, Any, Handler], None]) -> FunctionMiddleware:
    """Decorator form of FunctionMiddleware."""
    return FunctionMiddleware(func)


def _name_of(middleware: Union[Middleware, HandlerWrapper]) -> str:
    if isinstance(middleware, Middleware):
        return middleware.name
    return getattr(middleware, "__qualname__", type(middleware).__name__)
