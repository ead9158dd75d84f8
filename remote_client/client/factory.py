"""Client construction: keyword factory and fluent builder."""

import asyncio
import time
from collections.abc import Callable
from typing import Any

from remote_client.auth.contracts import (
    NoAuthTokenProvider,
    NoOpUnauthorizedHandler,
    TokenProvider,
    UnauthorizedHandler,
)
from remote_client.auth.refresh import TokenRefreshCoordinator
from remote_client.auth.stage import AuthStage
from remote_client.cache.config import CacheConfig
from remote_client.cache.stage import CacheStage
from remote_client.cache.store import CacheStore
from remote_client.client.error_handler import ErrorHandler
from remote_client.client.facade import RemoteClient
from remote_client.client.parser import ResponseParser
from remote_client.config.network import NetworkConfig
from remote_client.config.settings import ClientSettings
from remote_client.connectivity.probe import ConnectivityProbe
from remote_client.dedup.config import DeduplicationConfig
from remote_client.dedup.coordinator import DeduplicationCoordinator
from remote_client.dedup.stage import DeduplicationStage
from remote_client.observability.logging import configure_logging
from remote_client.observability.stage import LoggingStage
from remote_client.pipeline.base import Stage
from remote_client.pipeline.dispatcher import Dispatcher
from remote_client.pipeline.metrics import PipelineMetrics
from remote_client.pipeline.pipeline import RequestPipeline
from remote_client.retry.policy import RetryPolicy
from remote_client.retry.stage import RetryStage, Sleep
from remote_client.transform.hooks import TransformationHooks
from remote_client.transform.stage import TransformationStage
from remote_client.transport.base import Transport
from remote_client.transport.httpx_transport import HttpxTransport


def create_client(
    base_url: str | None = None,
    *,
    network_config: NetworkConfig | None = None,
    token_provider: TokenProvider | None = None,
    unauthorized_handler: UnauthorizedHandler | None = None,
    locale: str | None = None,
    retry_policy: RetryPolicy | None = None,
    cache_config: CacheConfig | None = None,
    dedup_config: DeduplicationConfig | None = None,
    transformation_hooks: TransformationHooks | None = None,
    error_handler: ErrorHandler | None = None,
    response_parser: ResponseParser | None = None,
    connectivity_probe: ConnectivityProbe | None = None,
    transport: Transport | None = None,
    enable_logging: bool = False,
    log_body: bool = False,
    enable_request_id: bool = True,
    sleep: Sleep = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> RemoteClient:
    """Build a client with its own pipeline, cache, dedup table and auth state.

    Stages are installed in the order dedup, cache, retry, transform, auth,
    logging; each optional stage only when configured. Retry is skipped for
    policies that never retry.

    Args:
        base_url: Base URL; ignored when `network_config` is given.
        network_config: Full network configuration.
        token_provider: Source of bearer tokens.
        unauthorized_handler: Called on unrecoverable 401s.
        locale: Value for the locale header.
        retry_policy: Retry policy; None disables retries.
        cache_config: Enables response caching.
        dedup_config: Enables in-flight deduplication.
        transformation_hooks: Body transformations.
        error_handler: Custom error handler.
        response_parser: Custom response parser.
        connectivity_probe: Checked before each request.
        transport: Custom transport; an HttpxTransport otherwise.
        enable_logging: Install the logging stage.
        log_body: Include bodies in request logs.
        enable_request_id: Attach UUID4 correlation ids.
        sleep: Sleep used between retries.
        clock: Clock used by the cache and dedup table.

    Returns:
        Configured RemoteClient.

    Raises:
        ValueError: If neither `base_url` nor `network_config` is given.
    """
    if network_config is None:
        if not base_url:
            msg = "A base URL is required to build a client"
            raise ValueError(msg)
        network_config = NetworkConfig(base_url=base_url)

    metrics = PipelineMetrics()
    stages: list[Stage] = []

    coordinator: DeduplicationCoordinator | None = None
    if dedup_config is not None:
        coordinator = DeduplicationCoordinator(dedup_config, clock=clock)
        stages.append(DeduplicationStage(coordinator, metrics))

    store: CacheStore | None = None
    if cache_config is not None:
        store = CacheStore(cache_config, clock=clock)
        stages.append(CacheStage(store, metrics))

    if retry_policy is not None and retry_policy.is_enabled:
        stages.append(RetryStage(retry_policy, metrics, sleep=sleep))

    if transformation_hooks is not None and not transformation_hooks.is_empty:
        stages.append(TransformationStage(transformation_hooks))

    provider = token_provider or NoAuthTokenProvider()
    stages.append(
        AuthStage(
            provider,
            unauthorized_handler or NoOpUnauthorizedHandler(),
            refresh=TokenRefreshCoordinator(provider, metrics),
            locale=locale,
        )
    )

    if enable_logging:
        stages.append(LoggingStage(log_body=log_body))

    owns_transport = transport is None
    active_transport: Transport = transport or HttpxTransport(network_config)
    pipeline = RequestPipeline(stages, Dispatcher(active_transport, metrics))

    return RemoteClient(
        pipeline=pipeline,
        transport=active_transport,
        network_config=network_config,
        error_handler=error_handler,
        response_parser=response_parser,
        metrics=metrics,
        cache=store,
        deduplication=coordinator,
        connectivity_probe=connectivity_probe,
        enable_request_id=enable_request_id,
        owns_transport=owns_transport,
    )


class RemoteClientBuilder:
    """Fluent builder for RemoteClient.

    Example:
        client = (
            RemoteClientBuilder()
            .base_url("https://api.example.com")
            .with_retry(RetryPolicy.default())
            .with_cache(CacheConfig())
            .build()
        )
    """

    def __init__(self) -> None:
        self._base_url: str | None = None
        self._options: dict[str, Any] = {}

    @classmethod
    def from_settings(cls, settings: ClientSettings | None = None) -> "RemoteClientBuilder":
        """Seed a builder from environment settings.

        Configures structured logging when the settings enable it.

        Args:
            settings: Settings instance; read from the environment if None.

        Returns:
            Builder with base URL, timeouts, pool size, locale and logging set.
        """
        settings = settings or ClientSettings()
        builder = cls()
        if settings.base_url:
            builder.with_network_config(
                NetworkConfig(
                    base_url=settings.base_url,
                    connect_timeout_seconds=settings.connect_timeout_seconds,
                    receive_timeout_seconds=settings.receive_timeout_seconds,
                    send_timeout_seconds=settings.send_timeout_seconds,
                    max_connections_per_host=settings.max_connections_per_host,
                )
            )
        if settings.locale:
            builder._options["locale"] = settings.locale
        if settings.enable_logging:
            configure_logging(level=settings.log_level, json_format=settings.log_json)
            builder.enable_logging()
        return builder

    def base_url(self, url: str) -> "RemoteClientBuilder":
        """Set the base URL."""
        self._base_url = url
        return self

    def with_network_config(self, config: NetworkConfig) -> "RemoteClientBuilder":
        """Set the full network configuration (includes the base URL)."""
        self._options["network_config"] = config
        self._base_url = config.base_url
        return self

    def with_auth(
        self,
        token_provider: TokenProvider,
        unauthorized_handler: UnauthorizedHandler | None = None,
        locale: str | None = None,
    ) -> "RemoteClientBuilder":
        """Enable bearer token injection and 401 refresh."""
        self._options["token_provider"] = token_provider
        if unauthorized_handler is not None:
            self._options["unauthorized_handler"] = unauthorized_handler
        if locale is not None:
            self._options["locale"] = locale
        return self

    def with_error_handler(self, handler: ErrorHandler) -> "RemoteClientBuilder":
        """Use a custom error handler."""
        self._options["error_handler"] = handler
        return self

    def with_response_parser(self, parser: ResponseParser) -> "RemoteClientBuilder":
        """Use a custom response parser."""
        self._options["response_parser"] = parser
        return self

    def with_retry(self, policy: RetryPolicy | None = None) -> "RemoteClientBuilder":
        """Enable retries (default policy if none given)."""
        self._options["retry_policy"] = policy or RetryPolicy.default()
        return self

    def with_transformation_hooks(self, hooks: TransformationHooks) -> "RemoteClientBuilder":
        """Install body transformation hooks."""
        self._options["transformation_hooks"] = hooks
        return self

    def with_deduplication(
        self, config: DeduplicationConfig | None = None
    ) -> "RemoteClientBuilder":
        """Enable in-flight deduplication (default config if none given)."""
        self._options["dedup_config"] = config or DeduplicationConfig()
        return self

    def with_cache(self, config: CacheConfig | None = None) -> "RemoteClientBuilder":
        """Enable response caching (default config if none given)."""
        self._options["cache_config"] = config or CacheConfig()
        return self

    def with_connectivity_probe(self, probe: ConnectivityProbe) -> "RemoteClientBuilder":
        """Check connectivity before each request."""
        self._options["connectivity_probe"] = probe
        return self

    def with_transport(self, transport: Transport) -> "RemoteClientBuilder":
        """Use a custom transport."""
        self._options["transport"] = transport
        return self

    def with_sleep(self, sleep: Sleep) -> "RemoteClientBuilder":
        """Replace the sleep used between retries."""
        self._options["sleep"] = sleep
        return self

    def with_clock(self, clock: Callable[[], float]) -> "RemoteClientBuilder":
        """Replace the clock used by the cache and dedup table."""
        self._options["clock"] = clock
        return self

    def enable_logging(self, log_body: bool = False) -> "RemoteClientBuilder":
        """Install the logging stage."""
        self._options["enable_logging"] = True
        self._options["log_body"] = log_body
        return self

    def disable_request_id(self) -> "RemoteClientBuilder":
        """Do not attach correlation ids."""
        self._options["enable_request_id"] = False
        return self

    def build(self) -> RemoteClient:
        """Build the client.

        Raises:
            ValueError: If no base URL was configured.
        """
        if not self._base_url:
            msg = "base_url is required; call base_url() or with_network_config()"
            raise ValueError(msg)
        return create_client(self._base_url, **self._options)
