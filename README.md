# sshkit

Small building blocks for SSH clients:

- `sshkit.cryptovec.CryptoVec` is a growable byte buffer. It overwrites bytes
  with zeros when they are cleared, truncated or left behind by a
  reallocation, and when the buffer is wiped or collected.
- `sshkit.config` reads OpenSSH-style client configuration such as
  `~/.ssh/config` and returns the settings for one host.
- `sshkit.proxy.Stream` is an asyncio byte stream over a direct TCP
  connection or over the standard input and output of a `ProxyCommand`
  child process.

The package has no third-party dependencies.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## CryptoVec

```python
from sshkit.cryptovec import CryptoVec

with CryptoVec() as buf:
    buf.extend(b"secret")
    buf.push_u32_be(43554)
    assert buf.read_u32_be(6) == 43554
    buf.clear()          # the old bytes are zeroed
    assert buf.is_empty()
# leaving the block wipes and releases the storage
```

A buffer can be built with `CryptoVec(data)` (bytes-like or `str`, which is
UTF-8 encoded), `CryptoVec.from_slice(data)`, `CryptoVec.new_zeroed(size)` or
`CryptoVec.with_capacity(capacity)`. Its storage grows in powers of two; the
`capacity` property tells how much is allocated.

Other operations:

- `len()`, indexing and slicing (slices return `bytes`), item and slice
  assignment (a slice assignment must keep the length), iteration,
  `bytes(buf)` and comparison with other buffers or bytes-like objects.
  Buffers are mutable and not hashable.
- `resize(size)` pads with zeros or truncates, zeroing the cut-off bytes;
  `resize_mut(n)` grows by `n` zero bytes and returns a writable
  `memoryview` of them, valid until the next reallocation.
- `push(byte)` and `push_u32_be(value)` append; `read_u32_be(i)` reads a
  big-endian 32-bit integer and raises `IndexError` if fewer than four bytes
  remain.
- `read(n_bytes, reader)` appends up to `n_bytes` from a file-like object
  (using `readinto` when it has one) and returns how many were read; if the
  reader raises, the buffer goes back to its previous length.
- `write_all_from(offset, writer)` hands the bytes from `offset` onwards to
  `writer.write` and returns the count it reports.
- `write(data)` appends and returns the length, so a buffer can stand in for
  a writable binary stream; `flush()` zeroes the spare storage past the
  current length.
- `copy()` (and `copy.copy`) returns an independent buffer; `wipe()` zeroes
  all storage and empties the buffer.

## Reading SSH configuration

```python
from sshkit.config import parse, AddKeysToAgent

text = """
Host example
    User alice
    HostName ssh.example.com
    Port 2222
    ProxyCommand nc %h %p
    AddKeysToAgent yes
"""

config = parse(text, "example")
assert config.host_name == "ssh.example.com"
assert config.port == 2222
assert config.add_keys_to_agent is AddKeysToAgent.YES
print(config.expanded_proxy_command())   # "nc ssh.example.com 2222"
```

`parse` takes the first `Host` line whose value equals the host name exactly
and reads the lines after it up to the next `Host` line. Keys are matched
without regard to case and a key must be followed by a space. The keys
understood are `User`, `HostName`, `Port` (ignored unless it is a number up
to 65535), `IdentityFile` (a leading `~/` is expanded to the home
directory), `ProxyCommand` and `AddKeysToAgent` (`yes`, `confirm`, `ask`;
anything else means `no`). Other keys are logged at debug level and ignored.

Unset fields come from `Config.default(host_name)`: the current user name,
the given host name, port 22, no identity file, no proxy command and
`AddKeysToAgent.NO`.

`parse_path(path, host)` reads a file and `parse_home(host)` reads
`~/.ssh/config`. A host that is not in the file raises `HostNotFoundError`;
a home directory that cannot be found raises `NoHomeError`. Both derive
from `ConfigError`. File errors propagate as `OSError`.

## Connecting

```python
import asyncio
from sshkit.config import parse_home

async def main():
    config = parse_home("example")
    async with await config.stream() as stream:
        await stream.write(b"SSH-2.0-client\r\n")
        print(await stream.read(255))

asyncio.run(main())
```

When the configuration has a `ProxyCommand`, `Config.stream()` fills in
`%h` and `%p` with the host name and port, stores the result back in
`proxy_command`, splits it on single spaces and starts it as a child process
whose standard input and output carry the connection. Otherwise it resolves
the host name and opens a TCP connection to the first address found.

A `Stream` can also be opened directly with `Stream.tcp_connect((host,
port))` or `Stream.proxy_command(cmd, args)`. It offers `read(n)`,
`write(data)`, `flush()`, `shutdown()` (closes the writing side; for a proxy
process this closes its standard input), `close()` (which also kills a proxy
process that is still running) and the `is_child` property. Used with
`async with`, it is closed on exit.

## What this package does not do

- It does not speak the SSH protocol: there is no key exchange,
  authentication, channels or client or server here. `Stream` only carries
  raw bytes.
- Configuration support is limited to the keys listed above. Host patterns
  and wildcards, `Match`, `Include`, `key=value` syntax and quoting are not
  handled.
- `CryptoVec` does not lock its memory against swapping, and Python may
  still hold copies of data passed in or read out (for example the `bytes`
  returned by slicing).