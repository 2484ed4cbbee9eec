# fountainstore

A small data server that stores and serves blobs over UDP using LT fountain
codes. A client sends a blob to the server as a stream of encoded symbols;
the server decodes it, keeps it in memory, and later sends encoded symbols
back when the blob is fetched. Each symbol carries only a 32-bit seed, from
which both sides derive the symbol's degree (drawn from a robust soliton
distribution) and its set of neighbouring fragments.

On start-up the server connects to a metadata server over TCP, sends a
registration request announcing the address and port of its UDP socket, and
then serves requests on that socket.

## Installation

```
pip install .
```

The package has no runtime dependencies beyond the standard library.

## Running a server

Two flavours are provided, differing in who drives the transfer:

* **push** (`PushDataServer`) – on `START_FETCH` the server answers
  `START_FETCH_OK` and then sends up to
  `PushDataServer.number_of_symbols_to_encode` (2000) symbols of the stored
  blob without being asked, stopping early if a `STOP_FETCH` removes the
  fetch state. Blobs being stored are received as symbols until decoded;
  the server then sends `STOP_STORAGE` and stores the blob once the client
  answers `STOP_STORAGE_OK`.
* **pull** (`PullDataServer`) – after `START_STORAGE` the server waits
  `request_delay` (3 s) and then sends `SEND_NEXT` to the storing client
  every `request_interval` (0.3 s) until the blob is decoded, stores it and
  sends `STOP_STORAGE`. A fetching client asks for each symbol of a stored
  blob with `SEND_NEXT`.

Blobs received for storage are decoded at a fixed size: 102400 bytes
(`PUSH_BLOB_SIZE`) for the push server and 10240 bytes (`PULL_BLOB_SIZE`)
for the pull server.

Both commands take the same five arguments:

```
fountainstore-push BIND_ADDRESS BIND_PORT MDS_ADDRESS MDS_PORT POOL_SIZE
fountainstore-pull BIND_ADDRESS BIND_PORT MDS_ADDRESS MDS_PORT POOL_SIZE
```

For example:

```
fountainstore-push 127.0.0.1 9000 127.0.0.1 8000 4
```

`POOL_SIZE` is the number of threads receiving and handling datagrams. With
the wrong number of arguments, or a bad port or pool size, the command
prints the usage line and exits with status 1. If the metadata server cannot
be reached the command exits with status 1 without serving. Press Ctrl-C to
shut the server down. Progress is written through `logging` at INFO level.

## Using the codec directly

The fountain code is usable on its own through `fountainstore.encoder` and
`fountainstore.decoder`:

```python
from fountainstore.encoder import Encoder
from fountainstore.decoder import Decoder

blob = bytes(range(256)) * 40           # 10 KiB
blob_id = bytes(32)

encoder = Encoder()
enc_state = encoder.init_state(blob_id, len(blob), blob)

decoder = Decoder()
target = bytearray(len(blob))
dec_state = decoder.init_state(blob_id, len(blob), target)

while not decoder.decode_next(dec_state, encoder.encode_next(enc_state)):
    pass

assert bytes(target) == blob
```

`decode_next` returns `True` once every fragment of the blob has been
recovered. Symbols are 1024 bytes; a blob is split into as many 1024-byte
fragments as it needs, the last one possibly shorter. `Encoder` and
`Decoder` accept an `MT19937` generator for reproducible runs; by default
they are seeded randomly.

## Modules

* `fountainstore.utils` – `number_of_fragments`, `size_of_last_fragment`
  and `xor_into` for XOR of byte chunks in 16-byte blocks.
* `fountainstore.symbol` – the `Symbol` carried between encoder and decoder.
* `fountainstore.rng` – `MT19937`, a Mersenne Twister generator, so that
  seeds reproduce the same neighbour sets on both ends.
* `fountainstore.soliton` – `RobustSolitonDistribution` for symbol degrees.
* `fountainstore.protocol` – wire format: `MessageType`, `PushPacket` and the
  encode/decode helpers for headers, registration and push messages.
* `fountainstore.encoder`, `fountainstore.decoder` – the LT codec
  (`Encoder`, `EncodingState`, `Decoder`, `DecodingState`).
* `fountainstore.client_session` – `ClientSession` for registering with the
  metadata server, and `RegistrationError`.
* `fountainstore.server`, `fountainstore.push_server`,
  `fountainstore.pull_server` – `DataServer` and its push and pull variants.
* `fountainstore.console` – coloured log tags and the blob hash printed in
  the server's logs.

## What it does not do

* It contains no metadata server and no client that stores or fetches
  blobs; both have to be supplied separately.
* Stored blobs live only in memory and are lost when the server stops.

## Running the tests

```
pip install .[test]
pytest
```