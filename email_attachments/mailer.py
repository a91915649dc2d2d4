"""Minimal host mailer with delivery interceptors."""

import logging
from collections.abc import Callable
from email.message import EmailMessage
from typing import Any, Protocol

logger = logging.getLogger(__name__)

Transport = Callable[[EmailMessage], Any]


class Interceptor(Protocol):
    """Protocol for delivery interceptors.

    Interceptors receive each outgoing message before it is handed to the
    transport and may modify it in place.

    Example:
        class FooterInterceptor:
            def delivering_email(self, message: EmailMessage) -> None:
                ...

        mailer.register_interceptor(FooterInterceptor())
    """

    def delivering_email(self, message: EmailMessage) -> Any:
        """Inspect or modify a message before delivery."""
        ...


class Mailer:
    """Delivers messages through a transport after running registered interceptors."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self.interceptors: list[Interceptor] = []

    def register_interceptor(self, interceptor: Interceptor) -> None:
        if interceptor in self.interceptors:
            logger.warning("Interceptor %r is already registered", interceptor)
            return
        self.interceptors.append(interceptor)
        logger.info("Interceptor registered: %s", type(interceptor).__name__)

    def unregister_interceptor(self, interceptor: Interceptor) -> None:
        if interceptor in self.interceptors:
            self.interceptors.remove(interceptor)

    def deliver(self, message: EmailMessage) -> Any:
        """Run interceptors in registration order, then hand the message to the transport."""
        for interceptor in self.interceptors:
            interceptor.delivering_email(message)
        return self.transport(message)
