"""
Component wiring for one consuming context.

The wallet signal is the only piece shared across contexts; pass the same instance to
every build_session_context() call in a process.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Sequence

from miniapp_session.core.config.models import SessionConfig
from miniapp_session.core.environment import EnvironmentDetector
from miniapp_session.core.error_reporter import ErrorReporter
from miniapp_session.core.identity.resolver import IdentityResolver
from miniapp_session.core.logger import get_logger
from miniapp_session.core.session.aggregator import SessionAggregator
from miniapp_session.core.session.readiness import ReadinessSignaler
from miniapp_session.core.wallet.bridge import HostProviderBackend, WalletBridge
from miniapp_session.core.wallet.connect import WalletConnectController
from miniapp_session.core.wallet.connectors import ConnectorRegistry, ProviderConnector, WalletConnector
from miniapp_session.core.wallet.signal import WalletConnectionSignal


@dataclass
class SessionContext:
    cfg: SessionConfig
    signal: WalletConnectionSignal
    registry: ConnectorRegistry
    bridge: WalletBridge
    aggregator: SessionAggregator
    connect: WalletConnectController
    readiness: ReadinessSignaler


def build_session_context(
    *,
    host,
    cfg: Optional[SessionConfig] = None,
    signal: Optional[WalletConnectionSignal] = None,
    connectors: Sequence[WalletConnector] = (),
    logger=None,
    event_logger: Any = None,
    error_reporter: Optional[ErrorReporter] = None,
) -> SessionContext:
    cfg = cfg or SessionConfig()
    logger = logger or get_logger()
    signal = signal or WalletConnectionSignal(logger=logger)
    registry = ConnectorRegistry(signal=signal, connectors=connectors, logger=logger)

    # The host wallet also appears in the registry so later wallet calls go through it.
    if host is not None and registry.get(cfg.host.host_connector_id) is None:
        provider = host.wallet_provider()
        if provider is not None:
            registry.register(ProviderConnector(connector_id=cfg.host.host_connector_id, provider=provider, name=getattr(host, "name", "host")))

    bridge = WalletBridge(
        signal=signal,
        backend=HostProviderBackend(host),
        registry=registry,
        host_connector_id=cfg.host.host_connector_id,
        logger=logger,
    )
    readiness = ReadinessSignaler(host=host, logger=logger, event_logger=event_logger)
    aggregator = SessionAggregator(
        detector=EnvironmentDetector(host=host, timeouts=cfg.timeouts, logger=logger),
        resolver=IdentityResolver(host=host, cfg=cfg, logger=logger),
        bridge=bridge,
        readiness=readiness,
        signal=signal,
        cfg=cfg,
        logger=logger,
        event_logger=event_logger,
        error_reporter=error_reporter,
    )
    connect = WalletConnectController(bridge=bridge, timeout_seconds=cfg.timeouts.wallet_request_seconds, logger=logger)
    return SessionContext(
        cfg=cfg,
        signal=signal,
        registry=registry,
        bridge=bridge,
        aggregator=aggregator,
        connect=connect,
        readiness=readiness,
    )
