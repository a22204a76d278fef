# cosikit

Building blocks for a driver that provisions object-storage users and access
keys. It is a library with no command of its own and no dependencies outside
the standard library.

## Modules

### `cosikit.errors`

`CodeError` is an exception that carries an `ErrorCode` and a message.
`new_resource_not_exist_err(msg)` builds one that says a resource does not
exist. `is_resource_not_exist_err(err)` tells whether an exception is such an
error. It also answers true when such an error appears anywhere in the
exception's `__cause__` or `__context__` chain.

### `cosikit.keylock`

`KeyMutexLock(size)` holds a fixed pool of `size` mutexes. A string key is
mapped to one of them by its 32-bit FNV-1 hash, so work on the same key is
serialised. It offers `lock(key)`, `unlock(key)` and `locked(key)`. A size
that is not positive raises `ValueError`. Unlocking a lock that is not held
raises `RuntimeError`.

### `cosikit.utils`

- `hmac_sha256(key, value)` returns the raw HMAC-SHA256 digest.
- `get_sorted_url_query_string(param)` joins `key=value` pairs sorted by key.
  The values are query-escaped, so a space becomes `+`.
- `contains_element(elements, target)` tells whether `target` is one of
  `elements`.
- `build_tls_config(root_ca)` returns a client `ssl.SSLContext`. With no root
  CA, certificates are not verified. With PEM bytes, only that CA is trusted,
  the hostname is checked and TLS 1.2 is the minimum version.

### `cosikit.api`

`UserAPI` is an abstract interface with these methods:

- `create_user`
- `get_user`
- `delete_user`
- `create_user_access`
- `delete_user_access`
- `list_user_access_keys`

Each takes an input dataclass and returns an output dataclass, for example
`CreateUserInput` and `CreateUserOutput`. `ListUserAccessKeysOutput` holds a
list of access key ids.

### `cosikit.log_handlers`

- `PlainTextFormatter(timestamp_format, pid)` writes lines of the form
  `<time> <pid>[field:value] [LEVEL]:  <message>`. The fields come from a
  `fields` mapping on the record. Critical records are labelled `[FATAL]`.
- `ConsoleHandler(formatter)` writes debug, info and warning records to
  stdout, and error and critical records to stderr.
- `FileHandler(path, formatter, max_size, max_backups)` appends to a file and
  creates its directory if needed. Once the file reaches `max_size` bytes, it
  is renamed with a `YYYYmmdd-HHMMSS` suffix and made read-only, and only the
  newest `max_backups` backups are kept. `max_size` may also be a string such
  as `"20M"`. The defaults are 20 MiB and 9 backups.
- `parse_size(value)` turns `"100"`, `"100K"` or `"100M"` into a byte count.
  It raises `ValueError` on anything that is not an integer.
- `sorted_backup_log_files(file_path)` lists a log file's backups, newest
  first.

### `cosikit.logger`

This is a process-wide logger. On import it logs to the console at info
level.

`init_logging(log_name, log_module="file", log_level="info",
log_file_dir="/var/log/huawei-cosi", log_file_size="20971520", max_backups=9)`
replaces it. `log_module` is either `"file"` or `"console"`, and `log_level`
is one of `debug`, `info`, `warning`, `error` or `fatal`.

The module-level functions `debug`, `info`, `warning`, `error` and `fatal`
log through the current logger. `fatal` then raises `SystemExit(1)`.
`get_logger()` returns the current logger, and `add_field(field, value)`
returns a copy of it that attaches that field to every line.

Request ids are kept in a context variable:

- `set_request_info(metadata)` generates a new id. It returns outgoing
  metadata with the id under `cosi-chain-requestid`.
- `handle_request_id(metadata)` adopts the id from incoming metadata when
  there is exactly one, and otherwise generates a new one.
- `get_request_id()` returns the current id.
- `add_context()` returns the logger with a `requestID` field when an id is
  set.

### `cosikit.version`

`init_version_config_map(client, container_name, version, namespace)` records
a container's version in the `huawei-cosi-version` config map.

- It creates the config map if it does not exist.
- It retries every second when an update hits a `ConflictError`.
- Other failures are raised as `RuntimeError`.

`create_version_config_map` creates the map and leaves an existing one as it
is. `resolve_namespace()` reads the `env-namepsace` environment variable and
falls back to `huawei-cosi`.

`InMemoryConfigMapClient` is a self-contained store of `ConfigMap` records
with optimistic concurrency. It raises `NotFoundError`, `ConflictError` and
`AlreadyExistsError`. Any object with the same `get`, `create` and `update`
methods can be used as the client.

### `cosikit.poe`

These functions parse IAM-style XML documents:

- `handle_error_response`, which returns an `ErrorResponse` exception
- `parse_create_user_response`
- `parse_get_user_response`
- `parse_delete_user_response`
- `parse_create_access_key_response`
- `parse_delete_access_key_response`
- `parse_list_access_keys_response`

Each checks the root element and raises `ValueError` on a malformed or
unexpected document.

`create_user(call, user_input)`, `get_user(call, user_input)` and
`delete_user(call, user_input)` perform the user operations through a `call`
function. `call` receives the request parameters (`Action`, `UserName`) and
returns the response body. A `NoSuchEntity` error makes `get_user` return
`None`, and makes `delete_user` succeed.

## Example

```python
from cosikit import poe
from cosikit.api import GetUserInput
from cosikit.keylock import KeyMutexLock

NOT_FOUND = b"""<ErrorResponse>
<Error><Code>NoSuchEntity</Code><Message>no such user</Message></Error>
<RequestId>req-1</RequestId>
</ErrorResponse>"""


def call(params):
    # A real call would send params to the storage endpoint and return the body.
    raise poe.handle_error_response(NOT_FOUND)


locks = KeyMutexLock(100)
locks.lock("demo")
try:
    user = poe.get_user(call, GetUserInput(user_name="demo"))
finally:
    locks.unlock("demo")

print(user)  # None
```

## What it does not do

- There is no HTTP client for the storage backend. Requests are not signed or
  sent by this package; the `call` function you pass in does that.
- Access-key operations exist only as response parsers. No module provides a
  concrete `UserAPI` implementation.
- Version registration talks only to a client object you supply, such as
  `InMemoryConfigMapClient`. The package does not connect to a Kubernetes
  cluster or read kubeconfig files.
- There is no gRPC server and no command-line program.

## Tests

The `test` extra installs pytest. The tests live in `tests/`.