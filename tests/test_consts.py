import pytest

from lendkit.consts import (
    CPI_WHITELISTED_ACCOUNTS,
    DEFAULT_PUBKEY,
    NULL_PUBKEY,
    maybe_null_pk,
    ten_pow,
)


@pytest.mark.parametrize("exponent", range(20))
def test_ten_pow_table(exponent):
    assert ten_pow(exponent) == 10**exponent


def test_ten_pow_largest_fits_u64():
    assert ten_pow(19) < 2**64


@pytest.mark.parametrize("exponent", [20, 36, -1])
def test_ten_pow_out_of_range(exponent):
    with pytest.raises(ValueError):
        ten_pow(exponent)


def test_default_pubkey_is_null():
    assert maybe_null_pk(DEFAULT_PUBKEY) is None


def test_null_sentinel_is_null():
    assert maybe_null_pk(NULL_PUBKEY) is None


def test_other_pubkey_is_returned():
    key = bytes(range(32))
    assert maybe_null_pk(key) == key


def test_whitelist_has_sixteen_distinct_programs():
    ids = [maybe_null_pk(entry.program_id) for entry in CPI_WHITELISTED_ACCOUNTS]
    assert len(ids) == 16
    assert None not in ids
    assert len(set(ids)) == len(ids)


def test_whitelist_ids_are_real_keys():
    for entry in CPI_WHITELISTED_ACCOUNTS:
        assert len(entry.program_id) == 32
        assert maybe_null_pk(entry.program_id) == entry.program_id
        assert entry.whitelist_level >= 1