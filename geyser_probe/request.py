"""Geyser subscription requests and their protobuf wire encoding."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

_WIRE_VARINT = 0
_WIRE_LENGTH_DELIMITED = 2
_MAX_UINT64 = (1 << 64) - 1

# Field numbers of the Geyser protocol messages used here.
_REQUEST_ACCOUNTS = 1
_REQUEST_COMMITMENT = 6
_REQUEST_FROM_SLOT = 11
_MAP_KEY = 1
_MAP_VALUE = 2
_FILTER_ACCOUNT = 2
_FILTER_OWNER = 3
_FILTER_NONEMPTY_TXN_SIGNATURE = 5


class CommitmentLevel(enum.IntEnum):
    """Commitment level a subscription asks the node to report at."""

    PROCESSED = 0
    CONFIRMED = 1
    FINALIZED = 2


def encode_varint(value: int) -> bytes:
    """Encode an unsigned 64-bit integer as a protobuf base-128 varint."""
    if value < 0 or value > _MAX_UINT64:
        raise ValueError(f"varint value out of range: {value}")
    out = bytearray()
    while True:
        low_bits = value & 0x7F
        value >>= 7
        if value:
            out.append(low_bits | 0x80)
        else:
            out.append(low_bits)
            return bytes(out)


def _key(number: int, wire_type: int) -> bytes:
    return encode_varint(number << 3 | wire_type)


def _length_delimited(number: int, payload: bytes) -> bytes:
    return _key(number, _WIRE_LENGTH_DELIMITED) + encode_varint(len(payload)) + payload


def _string(number: int, text: str) -> bytes:
    return _length_delimited(number, text.encode("utf-8"))


def _unsigned(number: int, value: int) -> bytes:
    return _key(number, _WIRE_VARINT) + encode_varint(value)


@dataclass
class AccountFilter:
    """Account filter of a subscription: which accounts and owners to follow."""

    account: list[str] = field(default_factory=list)
    owner: list[str] = field(default_factory=list)
    nonempty_txn_signature: bool | None = None

    def encode(self) -> bytes:
        """Return the filter as protobuf wire bytes."""
        parts = [_string(_FILTER_ACCOUNT, pubkey) for pubkey in self.account]
        parts.extend(_string(_FILTER_OWNER, owner) for owner in self.owner)
        if self.nonempty_txn_signature is not None:
            parts.append(
                _unsigned(_FILTER_NONEMPTY_TXN_SIGNATURE, int(self.nonempty_txn_signature))
            )
        return b"".join(parts)


@dataclass
class SubscribeRequest:
    """A Geyser subscribe request holding named account filters."""

    accounts: dict[str, AccountFilter] = field(default_factory=dict)
    commitment: CommitmentLevel | None = None
    from_slot: int | None = None

    def encode(self) -> bytes:
        """Return the request as protobuf wire bytes."""
        parts = []
        for name, account_filter in self.accounts.items():
            entry = _string(_MAP_KEY, name) + _length_delimited(
                _MAP_VALUE, account_filter.encode()
            )
            parts.append(_length_delimited(_REQUEST_ACCOUNTS, entry))
        if self.commitment is not None:
            parts.append(_unsigned(_REQUEST_COMMITMENT, int(self.commitment)))
        if self.from_slot is not None:
            parts.append(_unsigned(_REQUEST_FROM_SLOT, self.from_slot))
        return b"".join(parts)


def build_request(
    pubkeys: Iterable[str], commitment: CommitmentLevel = CommitmentLevel.CONFIRMED
) -> SubscribeRequest:
    """Build a request with one account filter, named ``account_<n>``, per pubkey."""
    accounts = {
        f"account_{index}": AccountFilter(account=[pubkey], nonempty_txn_signature=False)
        for index, pubkey in enumerate(pubkeys)
    }
    return SubscribeRequest(accounts=accounts, commitment=commitment, from_slot=0)