# frostsig

`frostsig` implements the FROST threshold signature scheme on Ed25519.
A group of `n` participants runs a distributed key generation and ends up
with one shared public key. Each participant holds a private share of that
key. Any `t` of them can then produce an ordinary 64-byte Ed25519 signature
together. The signature verifies against the group key like any other
Ed25519 signature, and the full private key never exists in one place.

The package also contains an asyncio relay server, participant clients for
key generation and signing, and helpers for building, signing and publishing
state blocks on the Nano network through a node's RPC interface.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

The `frostsig` command starts a relay server or a participant client. Both
use `localhost:3333`.

```
frostsig server keygen <participants> <threshold>
frostsig server sign <participants> <threshold>
frostsig client keygen <path>
frostsig client sign <path>
```

If an argument is missing, or a number is not an unsigned 32-bit integer,
the command prints an error and exits with status 2. An unknown mode or
operation prints `Invalid arguments.`. A failure while an operation runs
prints `Error: ...` and exits with status 1.

### Key generation

Start a server for `n` participants with threshold `t`. For example, 3
participants with threshold 2:

```
frostsig server keygen 3 2
```

Then every participant runs a client and names a file to store the result in:

```
frostsig client keygen alice.json
```

The server gives out ids 1, 2, 3, ... in order of connection. Once all `n`
clients have joined, it sends each one the group parameters. Each client
then does the following:

1. It draws a secret polynomial of `t` coefficients.
2. It broadcasts commitments to the coefficients with a proof of knowledge of the constant term.
3. It checks the proofs of the other participants.
4. It sends a secret share to every other participant and checks the shares it receives against the senders' commitments.
5. It sums the shares into its private share and confirms the matching public share against everyone's commitments.

At the end the client prints the Nano account of the group key. It writes
the group state, the group key, its own public and private shares, and all
participants' broadcasts to the file as JSON.

### Signing

The file written by key generation holds a placeholder block. Every field of
its `message` object is `"to fill"`. Before signing, edit `message` in each
participant's file so that it describes the Nano state block to sign. The
fields are `type`, `account`, `previous`, `representative`, `balance`, `link`
and `link_as_account`. Also set `subtype` to `"SEND"`, `"RECEIVE"` or `"OPEN"`.
All signers must use the same block. The signed message is the compact JSON
form of that block.

Start a signing server:

```
frostsig server sign 3 2
```

Then exactly `t` participants run:

```
frostsig client sign alice.json
```

Before it connects, each client checks the stored data. It checks every
stored proof of knowledge, that the first broadcast carries `threshold`
commitments, and that the stored group key matches the broadcasts. If any
check fails, it stops with `You are trying to perform a signature with
tampered data.`

Each signer draws fresh nonces and exchanges nonce commitments with the
others. A participant appearing twice is rejected. Each signer then computes
its signature share. The participant that received id 1, the first to
connect, is the aggregator. It takes these steps:

1. It collects the other shares and verifies each one. A bad share raises an error naming the participant.
2. It sums the shares into a signature and checks it against the group key with `cryptography`'s Ed25519 verifier.
3. It requests proof of work from the node. For a block whose `previous` is `"0"`, the work is for the group public key.
4. It submits the signed block with the `process` action and prints the resulting block hash.

The aggregator reads these settings from the environment, or from a `.env`
file that it loads:

```
URL=http://localhost:7076
KEY=placeholder
```

- `URL` is the node RPC endpoint.
- `KEY` is sent with `work_generate` requests.

`UnsignedBlock.create_open` also reads `REPRESENTATIVE` from the environment.
That variable sets the representative of an account-opening block.

## Library

The protocol steps can also be used directly, without the network layer.

- `frostsig.group`: Ed25519 arithmetic.
  - `EdwardsPoint` supports `+`, `-`, scalar `*`, `identity()`, `compress()` and `decompress()`.
  - Scalars are integers modulo `GROUP_ORDER`. The helpers are `random_scalar`, `scalar_to_bytes`, `scalar_from_bytes`, `invert_scalar` and `decompress`.
  - `hash_to_array` and `hash_to_scalar` are based on SHA-512.
  - `random_scalar` takes any object with `getrandbits`. By default it uses `secrets.SystemRandom`.
- `frostsig.message`: the protocol messages and their JSON form.
  - The messages are `Broadcast`, `SecretShare`, `PublicCommitment`, `Response`, `StateMessage` and `IdMessage`.
  - `FrostState` holds the participant count and threshold.
  - `to_json_string` and `from_json_string` convert messages. Malformed input raises `MessageError`.
- `frostsig.keygen`: the two rounds of distributed key generation, built around `Participant`.
  - Round one: `generate_polynomial`, `compute_proof_of_knowledge`, `compute_public_commitments` and `verify_proofs`.
  - Round two: `calculate_y`, `create_own_secret_share`, `create_share_for`, `verify_share_validity`, `compute_private_key`, `compute_own_public_share`, `compute_group_public_key`, `compute_participant_verification_share` and `compute_others_verification_share`.
  - Malformed data raises `KeygenError`.
- `frostsig.preprocess`: `generate_nonces_and_commitments` returns one-time signing nonces and their commitments.
- `frostsig.sign`: the signing round.
  - `compute_binding_value`, `compute_group_commitment_and_challenge` and `lagrange_coefficient`.
  - `compute_own_response`, `verify_participant` and `compute_aggregate_response`.
  - `computed_response_to_signature` produces a standard 64-byte Ed25519 signature.
  - Failures raise `SignError`.
- `frostsig.nano`: Nano support.
  - Block types: `UnsignedBlock` and `SignedBlock`, with `Subtype`.
  - RPC calls through `RPCState`: `AccountInfo`, `AccountBalance`, `WorkGenerate`, `Receivable`, `BlockInfo` and `Process`.
  - Helpers: `create_signed_block` and `public_key_to_nano_account`.
- `frostsig.signinput`: `SignInput`, the file written by key generation and read for signing. It provides `from_json`, `to_json`, `from_file`, `to_file` and the `verify` tamper checks. `FrostClient` is also defined here.
- `frostsig.server`: the relay. It provides `FrostServer`, `ServerParticipant`, `handle`, `run_keygen_server` and `run_sign_server`.
- `frostsig.client`: the participants. It provides `receive_message`, `run_keygen_client` and `run_sign_client`.
- `frostsig.cli`: `main`, the command above.

Signing nonces must never be reused. Generate fresh ones with
`generate_nonces_and_commitments` for every signature.

## Limitations

- The relay server handles one operation and then shuts down.
- The signing server shuts down about one second after the last signer joins. It does not wait for the signature to finish.
- The command line always uses `localhost:3333`. Other addresses are only available by calling the `run_*` functions directly.
- Nonces are not stored between runs. The clients do not use a stock of preprocessed commitments.
- The clients do not fill in the block to sign. The block is edited by hand in the sign input file.
- Private shares are written to the sign input file unencrypted.