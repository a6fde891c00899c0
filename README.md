# geyser-probe

A small command-line probe that asks a Geyser gRPC node whether it will
accept a subscription that watches more than 50 account pubkeys.

Some Geyser nodes reject such subscriptions with the error
`Max amount of Pubkeys reached, only 50 allowed`. This tool sends real
subscribe requests to the node's `/geyser.Geyser/Subscribe` method and
reports what the node does.

## Installation

```
pip install .
```

## Usage

The probe connects to the gRPC endpoint `http://localhost:10000`. If the
channel is not ready within 10 seconds, the command prints an error to
standard error and exits with status 1.

Run the full limit test:

```
geyser-probe
```

This sends three subscriptions. Each holds one account filter per pubkey
(named `account_0`, `account_1`, ...), at `Confirmed` commitment, starting
from slot 0:

1. every pubkey in the built-in list (56 of them, more than 50);
2. exactly the first 50 pubkeys;
3. exactly the first 51 pubkeys.

For each one it prints whether the subscription was accepted. A subscription
counts as accepted when the node has not ended it with an error within one
second; the probe then cancels it. When the node answers with the 50-pubkey
limit error, the probe says that the node still enforces the limit; for a
failure the gRPC status code and message are printed.

Run only the single, simpler check with the full pubkey list:

```
geyser-probe --simple
```

## Using it from Python

- `geyser_probe.request.build_request(pubkeys, commitment)` builds a
  `SubscribeRequest` with one `AccountFilter` per pubkey (commitment defaults
  to `CommitmentLevel.CONFIRMED`, `from_slot` is 0). `SubscribeRequest.encode()`
  and `AccountFilter.encode()` return protobuf wire bytes;
  `encode_varint(value)` encodes an unsigned 64-bit integer as a varint and
  raises `ValueError` when it is out of range.
- `geyser_probe.probe.GeyserProbe(endpoint, channel)` wraps a gRPC channel and
  can be used as a context manager. Pass an existing `grpc.Channel` to reuse
  it (it is then not closed by the probe); otherwise a channel is opened to
  `endpoint` (`https://` gives a TLS channel) and `ConnectionError` is raised
  if it does not become ready. `subscribe(request)` returns a `ProbeResult`.
- `ProbeResult` has `outcome` (a `ProbeOutcome`: `ACCEPTED`, `LIMIT_REACHED`
  or `FAILED`), `code`, `details`, and the properties `accepted` and `error`.
- `geyser_probe.probe.run_limit_tests(probe, pubkeys, out)` runs the three
  checks above and returns their results; `simple_geyser_test(probe, out)`
  runs the single check. Both write their report to `out` (standard output
  by default).
- `geyser_probe.probe.is_limit_error(message)` tells whether an error message
  contains the node's 50-pubkey limit error.
- `geyser_probe.probe.PUBKEYS` is the built-in pubkey list.

## What it does not do

The command has no option to choose another endpoint; use `GeyserProbe`
from Python for that. The probe does not read or decode any updates the node
streams back; it only checks whether the subscription is refused.

## Running the tests

```
pip install ".[test]"
pytest
```