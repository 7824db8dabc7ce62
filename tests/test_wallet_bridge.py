from __future__ import annotations

import asyncio

import pytest

from miniapp_session.core.errors import WalletTransportFault
from miniapp_session.core.wallet.bridge import (
    ConnectorBackend,
    HostProviderBackend,
    WalletBridge,
    WalletUnavailableReason,
)
from miniapp_session.core.wallet.connectors import ConnectorRegistry, ProviderConnector
from miniapp_session.core.wallet.provider import ProviderRpcError
from miniapp_session.core.wallet.signal import WalletConnectionSignal, WalletState

from .helpers.fakes import ADDR, ADDR_LOWER, OTHER_ADDR, DummyLogger, FakeConnector, FakeHost, FakeProvider


def _bridge(host, *, connectors=(), register_host=True):
    log = DummyLogger()
    sig = WalletConnectionSignal(logger=log)
    reg = ConnectorRegistry(signal=sig, connectors=connectors, logger=log)
    if register_host and host is not None and host.wallet_provider() is not None:
        reg.register(ProviderConnector(connector_id="farcasterMiniApp", provider=host.wallet_provider()))
    bridge = WalletBridge(signal=sig, backend=HostProviderBackend(host), registry=reg, logger=log)
    return sig, reg, bridge


def test_host_access_publishes_and_activates_host_connector():
    provider = FakeProvider([ADDR])
    host = FakeHost(provider=provider)
    sig, _reg, bridge = _bridge(host)

    result = asyncio.run(bridge.request_access_result())

    assert result.address == ADDR_LOWER
    assert result.reason is None
    assert not result.reused
    assert sig.get() == WalletState(address=ADDR_LOWER, connector_id="farcasterMiniApp")
    # one prompt for the access request, one for the connector activation
    assert provider.calls == ["eth_requestAccounts", "eth_requestAccounts"]


def test_existing_connection_short_circuits():
    provider = FakeProvider([OTHER_ADDR])
    host = FakeHost(provider=provider)
    sig, _reg, bridge = _bridge(host)
    sig.publish(WalletState(address=ADDR, connector_id="injected"), source="test")

    result = asyncio.run(bridge.request_access_result())

    assert result.address == ADDR_LOWER
    assert result.reused
    assert provider.calls == []
    assert host.calls["is_embedded"] == 0


def test_activation_failure_keeps_address():
    provider = FakeProvider([ADDR])
    host = FakeHost(provider=provider)
    sig, _reg, bridge = _bridge(host, connectors=[FakeConnector("farcasterMiniApp", error=RuntimeError("nope"))], register_host=False)

    assert asyncio.run(bridge.request_access()) == ADDR_LOWER
    assert sig.get() == WalletState(address=ADDR_LOWER, connector_id=None)


@pytest.mark.parametrize(
    "host,reason",
    [
        (None, WalletUnavailableReason.NOT_EMBEDDED),
        (FakeHost(embedded=False, provider=FakeProvider([ADDR])), WalletUnavailableReason.NOT_EMBEDDED),
        (FakeHost(embedded_error=RuntimeError("sdk missing"), provider=FakeProvider([ADDR])), WalletUnavailableReason.HOST_CHECK_FAILED),
        (FakeHost(provider=None), WalletUnavailableReason.PROVIDER_UNAVAILABLE),
        (FakeHost(provider=FakeProvider([])), WalletUnavailableReason.NO_ACCOUNTS),
        (FakeHost(provider=FakeProvider(error=ProviderRpcError(4001, "User rejected the request."))), WalletUnavailableReason.DECLINED),
        (FakeHost(provider=FakeProvider(error=ProviderRpcError(4100, "Unauthorized"))), WalletUnavailableReason.DECLINED),
    ],
)
def test_unavailable_wallet_is_an_absent_address(host, reason):
    sig, _reg, bridge = _bridge(host)
    result = asyncio.run(bridge.request_access_result())
    assert result.address is None
    assert result.reason == reason
    assert not sig.get().connected


@pytest.mark.parametrize(
    "provider",
    [
        FakeProvider(error=RuntimeError("socket closed")),
        FakeProvider(error=ProviderRpcError(-32603, "Internal error")),
        FakeProvider(["not-an-address"]),
    ],
)
def test_transport_faults_raise(provider):
    sig, _reg, bridge = _bridge(FakeHost(provider=provider))
    with pytest.raises(WalletTransportFault):
        asyncio.run(bridge.request_access())
    assert not sig.get().connected


def test_non_list_response_is_transport_fault():
    class OddProvider(FakeProvider):
        async def request(self, payload):
            self.calls.append(payload["method"])
            return {"accounts": [ADDR]}

    _sig, _reg, bridge = _bridge(FakeHost(provider=OddProvider()))
    with pytest.raises(WalletTransportFault):
        asyncio.run(bridge.request_access())


def test_connector_backend_uses_registry_entry():
    conn = FakeConnector("injected", accounts=[ADDR])
    log = DummyLogger()
    sig = WalletConnectionSignal(logger=log)
    reg = ConnectorRegistry(signal=sig, connectors=[conn], logger=log)
    bridge = WalletBridge(signal=sig, backend=ConnectorBackend(reg, "injected"), registry=reg, logger=log)

    assert asyncio.run(bridge.request_access()) == ADDR_LOWER
    assert sig.get() == WalletState(address=ADDR_LOWER, connector_id="injected")

    missing = WalletBridge(signal=WalletConnectionSignal(logger=log), backend=ConnectorBackend(reg, "missing"), registry=reg, logger=log)
    result = asyncio.run(missing.request_access_result())
    assert result.reason == WalletUnavailableReason.PROVIDER_UNAVAILABLE


def test_get_connected_is_a_stable_read():
    provider = FakeProvider([ADDR])
    host = FakeHost(provider=provider)
    sig, _reg, bridge = _bridge(host)

    first = bridge.get_connected()
    second = bridge.get_connected()
    assert first == second == WalletState()
    assert (first.address, first.connected) == (second.address, second.connected) == (None, False)

    sig.publish(WalletState(address=ADDR, connector_id="injected"), source="test")
    third = bridge.get_connected()
    fourth = bridge.get_connected()
    assert third == fourth == WalletState(address=ADDR_LOWER, connector_id="injected")
    assert (third.address, third.connected) == (ADDR_LOWER, True)
    # reads never reach the host or the provider
    assert provider.calls == []
    assert host.calls["is_embedded"] == 0
