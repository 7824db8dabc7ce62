from __future__ import annotations

import pytest

from miniapp_session.core.wallet.address import is_address, normalize_address, short_address

from .helpers.fakes import ADDR, ADDR_LOWER


def test_normalize_lowercases_checksum_address():
    assert normalize_address(ADDR) == ADDR_LOWER
    assert normalize_address(f"  {ADDR}  ") == ADDR_LOWER


@pytest.mark.parametrize("bad", ["", "0x123", "abcdef0123456789abcdef0123456789abcdef01", "0x" + "g" * 40, None, 42])
def test_malformed_addresses_rejected(bad):
    assert not is_address(bad)
    with pytest.raises(ValueError):
        normalize_address(bad)


def test_short_address():
    assert short_address(ADDR_LOWER) == "0xabcd...ef01"
