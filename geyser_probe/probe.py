"""Probe a Geyser gRPC node for its limit on pubkeys per subscription."""

from __future__ import annotations

import enum
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO
from urllib.parse import urlsplit

import grpc

from .request import SubscribeRequest, build_request

DEFAULT_ENDPOINT = "http://localhost:10000"
SUBSCRIBE_METHOD = "/geyser.Geyser/Subscribe"
LIMIT_MESSAGE = "Max amount of Pubkeys reached, only 50 allowed"
PUBKEY_LIMIT = 50

PUBKEYS: tuple[str, ...] = (
    # Core programs
    "11111111111111111111111111111111111111112",
    "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA",
    "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL",
    # DEX programs
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc",
    "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUQpMkFR6nACcp6fDyA",
    "HyaB3W9q6XdA5xwpU4XnSZV94htfmbmqJXZcEbRaJutt",
    "EewxydAPCCVuNEyrVN68PuSYdQ7wKn27V9Gjeoi8dy3S",
    # Major tokens
    "So11111111111111111111111111111111111111112",
    "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB",
    "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So",
    "7dHbWXmci3dT8UFYWYZweBLXgycu7Y3iL6trKn1Y7ARj",
    "9n4nbM75f5Ui33ZbPYXn59EwSgE8CGsHtAeTH5YFeJ9E",
    "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
    "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn",
    "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1",
    "HZ1JovNiVvGrGNiiYvEozEVgZ58xaU3RKwX8eACQBCt3",
    "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr",
    "2FPyTwcZLUg1MDrwsyoP4D6s1tM7hAkHYRjkNb5w6Pxk",
    # Pool and LP tokens
    "8HGyAAB1yoM1ttS7pXjHMa3dukTFGQggnFFH3hJZgzQh",
    "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R",
    "MNDEFzGvMt87ueuHvVU9VcTqsAP5b3fTGPsHuuPA5ey",
    "SRMuApVNdxXokk5GT7XD5cUUgXMBCoAz2LHeuAoKWRt",
    "orcaEKTdK7LKz57vaAYr9QeNsVEPfiu6QeMU1kektZE",
    "kinXdEcpDQeHPEuQnqmUgtYykqKGVFq6CeVX5iAHJq6",
    "MEW1gQWJ3nEXg2qgERiKu7FAFj79PHvQVREQUzScPP5",
    "WENWENvqqNya429ubCdR81ZmD69brwQaaBYY6p3LCpk",
    "ukHH6c7mMyiWCf1b9pnWe25TSpkDDt3H5pQZgZ74J82",
    # Raydium pools
    "58oQChx4yWmvKdwLLZzBi4ChoCc2fqCUWBkwMihLYQo2",
    "7XawhbbxtsRcQA8KTkHT9f9nc6d69UwqCUWBkwMihLYQo2",
    "6UmmUiYoBjSrhakAobJw8BvkmJtDVxaeBtbt7rxWo1mg",
    "AVs9TA4nWDzfPJE9gGVNJMVhcQy3V9PGazuz33BfG2RA",
    "2RoucD8CjTF6pd8a2cLRB7ZAcXPnGJJwDjvNwQ7yD8WJ",
    "F3kYuEwkXJPCKaUFqrxu1J1fxSKqBjNaFyNbP5gXzwYP",
    # Orca pools
    "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP",
    "2p7nYbtPBgtmY69NsE8DAW6szpRJn7tQvDnqvoEWQvjY",
    "83v8iPyZihDEjDdY8RdZddyZNyUtXngz69Lgo9Kt5d6d",
    # More DEX programs
    "srmqPvymJeFKQ4zGQed1GFppgkRHL9kaELCbyksJtPX",
    "EUqojwWA2rd19FZrzeBncJsm38Jm1hEhE3zsmX3bRc2o",
    "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1",
    "SwaPpA9LAaLfeLi3a68M4DjnLqgtticKg6CnyNwgAC8",
    "Crt7UoUR6QgrFrN7j8rmSQpUTNWtSomPdLA8gF8fJBHi",
    "82yxjeMsvaURa4MbZZ7WZZHfobirZYkH1zF8fmeGtyaQ",
    "AMM55ShdkoGRB5jVYPjWziwk8m5MpwyDgsMWHaMSQWH6",
    "MERLuDFBMmsHnsBPZw2sDQZHvXFMwp8EdjudcU2HKky",
    # NFT programs
    "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s",
    "p1exdMJcjVao65QdewkaZRUnU6VPSXhus9n2GzWfh98",
    "hausS13jsjafwWwGqZTUQRmWyvyxn9EQpqMwV1PBBmk",
    # Oracles
    "FsJ3A3u2vn5cTVofAjvy6y5kwABJAqYWpe4975bi2epH",
    "gSbePebfvPy7tRqimPoVecS2UsBvYv46ynrzWocc92s",
    # Lending protocols
    "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo",
    "LendZqTs7gn5CTSJU1jWKhKuVpjJGom45nnwPb2AMTi",
    "MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD",
)


class ProbeOutcome(enum.Enum):
    """How the node answered a subscription."""

    ACCEPTED = "accepted"
    LIMIT_REACHED = "limit_reached"
    FAILED = "failed"


@dataclass(frozen=True)
class ProbeResult:
    """The node's answer to one subscription."""

    outcome: ProbeOutcome
    code: grpc.StatusCode | None = None
    details: str = ""

    @property
    def accepted(self) -> bool:
        return self.outcome is ProbeOutcome.ACCEPTED

    @property
    def error(self) -> str:
        """A one-line description of the failure status, empty when accepted."""
        if self.code is None:
            return ""
        return f"status: {self.code.name}, message: {self.details!r}"

    def __str__(self) -> str:
        return self.error or self.outcome.value


def is_limit_error(message: str) -> bool:
    """Tell whether an error message reports the node's pubkey limit."""
    return LIMIT_MESSAGE in message


def _open_channel(endpoint: str) -> grpc.Channel:
    if "://" in endpoint:
        parts = urlsplit(endpoint)
        target = parts.netloc
        secure = parts.scheme == "https"
    else:
        target = endpoint
        secure = False
    if secure:
        return grpc.secure_channel(target, grpc.ssl_channel_credentials())
    return grpc.insecure_channel(target)


class GeyserProbe:
    """A connection to a Geyser node that sends single-request subscriptions."""

    connect_timeout = 10.0
    settle_timeout = 1.0

    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, channel: grpc.Channel | None = None):
        self.endpoint = endpoint
        self._owns_channel = channel is None
        if channel is None:
            channel = _open_channel(endpoint)
            try:
                grpc.channel_ready_future(channel).result(timeout=self.connect_timeout)
            except grpc.FutureTimeoutError:
                channel.close()
                raise ConnectionError(f"could not connect to {endpoint}") from None
        self._channel = channel
        self._subscribe = channel.stream_stream(
            SUBSCRIBE_METHOD,
            request_serializer=SubscribeRequest.encode,
            response_deserializer=None,
        )

    def subscribe(self, request: SubscribeRequest) -> ProbeResult:
        """Open a subscription with one request and report how the node answered.

        The subscription counts as accepted when the node has not ended it with
        an error within ``settle_timeout`` seconds; it is cancelled afterwards.
        """
        call = self._subscribe(iter((request,)))
        try:
            try:
                error = call.exception(timeout=self.settle_timeout)
            except grpc.FutureTimeoutError:
                return ProbeResult(ProbeOutcome.ACCEPTED)
        finally:
            call.cancel()
        if error is None:
            return ProbeResult(ProbeOutcome.ACCEPTED)
        details = error.details() or ""
        outcome = ProbeOutcome.LIMIT_REACHED if is_limit_error(details) else ProbeOutcome.FAILED
        return ProbeResult(outcome, error.code(), details)

    def close(self) -> None:
        """Close the channel if this probe opened it."""
        if self._owns_channel:
            self._channel.close()

    def __enter__(self) -> GeyserProbe:
        return self

    def __exit__(self, *args) -> None:
        self.close()


def run_limit_tests(
    probe: GeyserProbe, pubkeys: Sequence[str] = PUBKEYS, out: TextIO | None = None
) -> list[ProbeResult]:
    """Subscribe with all pubkeys, then the first 50, then the first 51."""
    out = out if out is not None else sys.stdout
    pubkeys = list(pubkeys)

    print(
        f"Preparing to test with {len(pubkeys)} pubkeys (should exceed {PUBKEY_LIMIT} limit)",
        file=out,
    )
    print(
        f"Testing if node supports more than {PUBKEY_LIMIT} pubkeys in a subscription...",
        file=out,
    )
    full = probe.subscribe(build_request(pubkeys))
    if full.accepted:
        print(
            "✓ Subscription successful! Your node supports more than "
            f"{PUBKEY_LIMIT} pubkeys per subscription.",
            file=out,
        )
    else:
        print("✗ Subscription failed with error:", file=out)
        print(f"   Status: {full.error}", file=out)
        if full.outcome is ProbeOutcome.LIMIT_REACHED:
            print(f"Node still enforces the {PUBKEY_LIMIT} pubkey limit.", file=out)
        else:
            print("❓ Got a different error - check if your gRPC node supports Geyser", file=out)

    print("\n" + "=" * 50, file=out)
    print(f"Testing with exactly {PUBKEY_LIMIT} pubkeys...", file=out)
    at_limit = probe.subscribe(build_request(pubkeys[:PUBKEY_LIMIT]))
    if at_limit.accepted:
        print(
            f"✓ {PUBKEY_LIMIT} pubkeys subscription successful - "
            f"node supports at least {PUBKEY_LIMIT} pubkeys.",
            file=out,
        )
    else:
        print(f"✗ {PUBKEY_LIMIT} pubkeys subscription failed: {at_limit.error}", file=out)

    over = PUBKEY_LIMIT + 1
    print(f"\nTesting with exactly {over} pubkeys...", file=out)
    over_limit = probe.subscribe(build_request(pubkeys[:over]))
    if over_limit.accepted:
        print(
            f"✓ {over} pubkeys subscription successful - "
            f"node supports more than {PUBKEY_LIMIT} pubkeys.",
            file=out,
        )
    else:
        print(f"✗ {over} pubkeys subscription failed: {over_limit.error}", file=out)
        if over_limit.outcome is ProbeOutcome.LIMIT_REACHED:
            print(f"Node still enforces the {PUBKEY_LIMIT} pubkey limit.", file=out)

    return [full, at_limit, over_limit]


def simple_geyser_test(probe: GeyserProbe, out: TextIO | None = None) -> ProbeResult:
    """Subscribe once with the full pubkey list and report the result."""
    out = out if out is not None else sys.stdout
    print(f"Simple test: Testing with {len(PUBKEYS)} pubkeys", file=out)
    result = probe.subscribe(build_request(PUBKEYS))
    if result.accepted:
        print(
            "✓ Simple test: Subscription successful! Node supports more than "
            f"{PUBKEY_LIMIT} pubkeys.",
            file=out,
        )
    else:
        print("✗ Simple test: Subscription failed with error:", file=out)
        print(f"   Status: {result.error}", file=out)
        if result.outcome is ProbeOutcome.LIMIT_REACHED:
            print(f"Node still enforces the {PUBKEY_LIMIT} pubkey limit.", file=out)
        else:
            print("❓ Got a different error - check if your gRPC node supports Geyser", file=out)
    return result


def main(argv: Sequence[str] | None = None) -> int:
    """Run the pubkey limit tests, or the simple test when given ``--simple``."""
    args = list(sys.argv[1:] if argv is None else argv)
    run_simple = bool(args) and args[0] == "--simple"
    try:
        if run_simple:
            print("Running Simple Geyser Test")
            print("==========================")
            with GeyserProbe(DEFAULT_ENDPOINT) as probe:
                simple_geyser_test(probe)
            print("Simple test completed!")
            return 0

        print("Testing Geyser gRPC Pubkey Limit")
        print("=================================")
        with GeyserProbe(DEFAULT_ENDPOINT) as probe:
            print(f"✓ Connected to gRPC endpoint: {DEFAULT_ENDPOINT}")
            run_limit_tests(probe)
    except ConnectionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())