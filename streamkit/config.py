"""Stream configuration and the functional options that tune it."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .codec import JSON_CODEC, Codec


class TopicMode(Enum):
    """Delivery mode used for topics."""

    CORE = 0
    JETSTREAM = 1


@dataclass
class Config:
    """All tunables of a stream; durations are in seconds."""

    # Server
    host: str = "127.0.0.1"
    port: int = -1  # -1 selects a random free port
    tls: ssl.SSLContext | None = None
    store_dir: str = ""
    max_payload: int = 0  # server default
    server_ready_timeout: float = 5.0
    server_shutdown_max_wait: float = 5.0

    # Client
    client_name: str = "go-stream"
    connect_timeout: float = 2.0
    connect_flush_timeout: float = 2.0
    reconnect_wait_min: float = 0.25

    # Defaults and behaviour
    default_topic_mode: TopicMode = TopicMode.CORE
    default_codec: Codec | None = JSON_CODEC
    request_id_header: str = "X-Request-Id"
    drain_timeout: float = 0.0

    disable_jetstream: bool = False

    # Auth
    user: str = ""
    password: str = ""
    token: str = ""

    logger: logging.Logger | None = None

    def apply(self, *options: Option) -> Config:
        """Apply options in order and return this config."""
        for option in options:
            option(self)
        return self


Option = Callable[[Config], None]


def default_config() -> Config:
    """A config holding every default."""
    return Config()


def with_host(host: str) -> Option:
    """Set the listen host of the embedded server."""

    def option(cfg: Config) -> None:
        cfg.host = host

    return option


def with_port(port: int) -> Option:
    """Set the server port."""

    def option(cfg: Config) -> None:
        cfg.port = port

    return option


def with_random_port() -> Option:
    """Select a random free port for the embedded server."""

    def option(cfg: Config) -> None:
        cfg.port = -1

    return option


def with_tls(tls_context: ssl.SSLContext | None) -> Option:
    """Enable TLS for server and client."""

    def option(cfg: Config) -> None:
        cfg.tls = tls_context

    return option


def with_store_dir(path: str) -> Option:
    """Set the durable store directory."""

    def option(cfg: Config) -> None:
        cfg.store_dir = path

    return option


def with_max_payload(size: int) -> Option:
    """Set the server's maximum payload in bytes."""

    def option(cfg: Config) -> None:
        cfg.max_payload = size

    return option


def with_default_topic_mode(mode: TopicMode) -> Option:
    """Set the mode used for new topics."""

    def option(cfg: Config) -> None:
        cfg.default_topic_mode = mode

    return option


def with_default_codec(codec: Codec | None) -> Option:
    """Override the default codec."""

    def option(cfg: Config) -> None:
        cfg.default_codec = codec

    return option


def with_connect_timeout(timeout: float) -> Option:
    """Set the client connect timeout."""

    def option(cfg: Config) -> None:
        cfg.connect_timeout = timeout

    return option


def with_reconnect_wait(minimum: float) -> Option:
    """Set the fixed reconnect wait."""

    def option(cfg: Config) -> None:
        cfg.reconnect_wait_min = minimum

    return option


def with_drain_timeout(timeout: float) -> Option:
    """Set how long closing waits for the client to drain."""

    def option(cfg: Config) -> None:
        cfg.drain_timeout = timeout

    return option


def with_server_ready_timeout(timeout: float) -> Option:
    """Set how long to wait for the embedded server to be ready."""

    def option(cfg: Config) -> None:
        cfg.server_ready_timeout = timeout

    return option


def with_disable_jetstream() -> Option:
    """Disable durable streaming."""

    def option(cfg: Config) -> None:
        cfg.disable_jetstream = True

    return option


def with_logger(logger: logging.Logger | None) -> Option:
    """Inject a logger."""

    def option(cfg: Config) -> None:
        cfg.logger = logger

    return option


def with_request_id_header(name: str) -> Option:
    """Change the correlation header name."""

    def option(cfg: Config) -> None:
        cfg.request_id_header = name

    return option


def with_basic_auth(user: str, password: str) -> Option:
    """Set user and password authentication."""

    def option(cfg: Config) -> None:
        cfg.user = user
        cfg.password = password

    return option


def with_token_auth(token: str) -> Option:
    """Set token authentication."""

    def option(cfg: Config) -> None:
        cfg.token = token

    return option