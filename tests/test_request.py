import pytest

from geyser_probe.request import (
    AccountFilter,
    CommitmentLevel,
    SubscribeRequest,
    build_request,
    encode_varint,
)

SAMPLE_PUBKEYS = [
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    "So11111111111111111111111111111111111111112",
]


def _read_varint(data, pos):
    result = 0
    shift = 0
    while True:
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def _fields(data):
    pos = 0
    found = []
    while pos < len(data):
        key, pos = _read_varint(data, pos)
        number, wire_type = key >> 3, key & 7
        if wire_type == 0:
            value, pos = _read_varint(data, pos)
        elif wire_type == 2:
            length, pos = _read_varint(data, pos)
            value = data[pos : pos + length]
            pos += length
        else:
            raise AssertionError(f"unexpected wire type {wire_type}")
        found.append((number, wire_type, value))
    return found


def test_varint_documented_example():
    assert encode_varint(300) == b"\xac\x02"


@pytest.mark.parametrize("value", [0, 1, 127, 128, 16384, 2**32, 2**64 - 1])
def test_varint_round_trip(value):
    encoded = encode_varint(value)
    decoded, end = _read_varint(encoded, 0)
    assert decoded == value
    assert end == len(encoded)


@pytest.mark.parametrize("value", [-1, 2**64])
def test_varint_out_of_range(value):
    with pytest.raises(ValueError):
        encode_varint(value)


def test_account_filter_wire_bytes():
    account_filter = AccountFilter(account=["ab"], nonempty_txn_signature=False)
    assert account_filter.encode() == b"\x12\x02ab\x28\x00"


def test_account_filter_omits_unset_signature_flag():
    account_filter = AccountFilter(account=SAMPLE_PUBKEYS, owner=["owner"])
    decoded = _fields(account_filter.encode())
    assert [value.decode() for number, _, value in decoded if number == 2] == SAMPLE_PUBKEYS
    assert [value.decode() for number, _, value in decoded if number == 3] == ["owner"]
    assert all(number != 5 for number, _, _ in decoded)


def test_request_without_accounts_wire_bytes():
    request = SubscribeRequest(commitment=CommitmentLevel.CONFIRMED, from_slot=0)
    assert request.encode() == b"\x30\x01\x58\x00"


def test_build_request_names_filters_in_order():
    request = build_request(SAMPLE_PUBKEYS)
    assert list(request.accounts) == [f"account_{i}" for i in range(len(SAMPLE_PUBKEYS))]
    assert [f.account for f in request.accounts.values()] == [[pk] for pk in SAMPLE_PUBKEYS]
    assert all(f.nonempty_txn_signature is False for f in request.accounts.values())
    assert all(f.owner == [] for f in request.accounts.values())
    assert request.commitment is CommitmentLevel.CONFIRMED
    assert request.from_slot == 0


def test_build_request_encoding_round_trip():
    request = build_request(SAMPLE_PUBKEYS, CommitmentLevel.FINALIZED)
    decoded = _fields(request.encode())
    entries = [value for number, _, value in decoded if number == 1]
    assert len(entries) == len(SAMPLE_PUBKEYS)
    for index, (entry, pubkey) in enumerate(zip(entries, SAMPLE_PUBKEYS)):
        key_field, value_field = _fields(entry)
        assert key_field[2].decode() == f"account_{index}"
        assert value_field[2] == request.accounts[f"account_{index}"].encode()
        inner = _fields(value_field[2])
        assert inner[0][2].decode() == pubkey
    commitment = [value for number, _, value in decoded if number == 6]
    assert commitment == [CommitmentLevel.FINALIZED]


def test_empty_pubkeys_give_no_account_entries():
    request = build_request([])
    assert request.accounts == {}
    assert all(number != 1 for number, _, _ in _fields(request.encode()))