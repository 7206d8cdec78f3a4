"""Base classes for singleton services with managed initialization state."""

import logging

import httpx


class SingletonService:
    """Mixin for services that follow the singleton-via-classmethods pattern.

    Provides:
    - ``_initialized`` flag
    - ``is_initialized()`` class method
    - ``_reset()`` class method for test teardown

    Subclasses set ``cls._initialized = True`` at the end of their own
    ``init()`` class method.
    """

    _initialized: bool = False

    @classmethod
    def is_initialized(cls) -> bool:
        """Return whether the service has been initialised."""
        return cls._initialized

    @classmethod
    def _reset(cls) -> None:
        """Reset singleton state, for test teardown only."""
        cls._initialized = False


class HTTPClientService(SingletonService):
    """Singleton service that owns one ``httpx.AsyncClient``.

    Each subclass gets its own client on first use; ``transport`` lets tests
    plug in an ``httpx.MockTransport``.
    """

    _client: httpx.AsyncClient | None = None
    _transport: httpx.AsyncBaseTransport | None = None
    _client_timeout: float = 30.0
    _logger: logging.Logger = logging.getLogger(__name__)

    @classmethod
    def _init_client(cls) -> None:
        """Create the HTTP client if it does not exist yet."""
        if cls._client is None:
            cls._client = httpx.AsyncClient(
                timeout=httpx.Timeout(cls._client_timeout),
                transport=cls._transport,
            )
            cls._logger.info(f"{cls.__name__} HTTP client initialized")

    @classmethod
    def _get_client(cls) -> httpx.AsyncClient:
        cls._init_client()
        assert cls._client is not None
        return cls._client

    @classmethod
    async def aclose(cls) -> None:
        """
        Close the HTTP client if it is open.

        The client reference is cleared even if closing raises; the
        exception is propagated.
        """
        if cls._client is not None:
            try:
                await cls._client.aclose()
            finally:
                cls._client = None
                cls._logger.info(f"{cls.__name__} HTTP client closed")

    @classmethod
    def _reset(cls) -> None:
        super()._reset()
        cls._client = None
        cls._transport = None
