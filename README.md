# binderkit

Building blocks for Binder-style inter-process communication, in pure Python
with no third-party dependencies.

## What is inside

- `binderkit.service_manager`: `ServiceManager` keeps a registry of named
  services as `BinderService` records.
  - `add_service(name, binder, allow_isolated, dump_priority, calling_pid)`
    checks the name with `is_valid_service_name`, which allows 1 to 127
    characters of letters, digits, `_`, `-`, `.` and `/`. It replaces any
    earlier registration under the same name and notifies the callbacks
    registered for that name.
  - If the binder has a `link_to_death` method, the manager links itself as
    the death recipient. `binder_died(who)` then removes the services and
    callbacks that belonged to `who`.
  - `get_service` looks a service up and calls the `try_start_service` hook
    when it is missing. `check_service` looks it up without that hook.
  - `list_services(dump_priority)` returns the sorted names whose `DumpFlag`
    overlaps the flags you pass.
  - `register_for_notifications` and `unregister_for_notifications` manage
    the callbacks. Callbacks are objects with an `on_registration(name, binder)`
    method.
  - Refused requests raise `ServiceManagerError`. Its `code` attribute is
    `BAD_VALUE`, `BAD_TYPE`, `NULL_POINTER`, `ILLEGAL_ARGUMENT` or
    `ILLEGAL_STATE`.
- `binderkit.cpc_service_manager`: `CpcServiceManager` is a registry of
  services across processors.
  - Names are given as `cpu/service`. Services are stored by service name as
    `CpcService(binder, cpuname)`.
  - `list_services` returns `cpu/service` strings ordered by service name.
  - Registration callbacks receive the manager itself as the binder.
    `binder_died` drops the services of a dead binder.
  - Unsupported calls raise `ServiceStatusError` with
    `ExceptionCode.UNSUPPORTED_OPERATION`. These are `is_declared`,
    `get_declared_instances`, `updatable_via_apex`, `get_updatable_names`,
    `get_connection_info`, `register_client_callback`,
    `try_unregister_service` and `get_service_debug_info`.
- `binderkit.threads`: `BinderThread` repeatedly calls `thread_loop()` until
  it returns False or an exit is requested.
  - Control it with `run(name, priority, stack)`, `request_exit`,
    `request_exit_and_wait`, `join`, `is_running`, `get_tid` and
    `exit_pending`. Subclasses may override `ready_to_run`.
  - Starting a running thread raises `ThreadError`. So does waiting on a
    thread from inside itself, or joining a thread whose loop raised.
- `binderkit.hashmap`: `HashMap` and `StringHashMap` are chained hash maps.
  - `insert_entry` takes an `InsertStrategy` (`ADD`, `SET`, `UPDATE`,
    `APPEND`). Buckets are chosen with `hash_bits`, and string keys are
    hashed with `str_hash`.
  - `find`, `delete` and `erase` raise `KeyError` for missing keys. `get`
    returns None instead.
- `binderkit.vector`: `Vector` is a sequence whose capacity starts at 16,
  doubles when full and halves when a quarter full.
  - `get` and `delete` raise `IndexError` out of range. `set`, `remove_at`
    and `remove_item_at` ignore such an index or return None.
  - `StringVector` stores private `BinderString` copies.
- `binderkit.binder_string`: `BinderString` holds at most 63 bytes of UTF-8
  text. It has `copy_to`, `dup`, `clear` and `compare`.
- `binderkit.timers`: clock readings come from `system_time(Clock...)`,
  `uptime_nanos` and `uptime_millis`.
  - The unit conversion functions truncate toward zero.
  - `to_millisecond_timeout_delay` returns 0 for a timeout already passed
    and -1 for one too far away. Otherwise it returns the delay rounded up
    to whole milliseconds.
- `binderkit.callbacks`: the abstract `IServiceCallback` and
  `IClientCallback` interfaces.
  - A process-wide default can be installed with
    `set_default_service_callback` or `set_default_client_callback`. Only
    the first call succeeds.
- `binderkit.binderlog`: tagged logging through the standard `logging`
  module (`log_write`, `binder_log`, `DebugLevel`).
  - `binder_log` writes only `ERROR` and `WARNING` messages.
  - `check` logs a failed condition without raising. The fatal checks
    `fatal_if`, `log_assert` and `fatal` raise `FatalError`.

## Example

```python
from binderkit.cpc_service_manager import CpcServiceManager

manager = CpcServiceManager()
manager.add_service("cpu1/audio", binder=object(), allow_isolated=False, dump_priority=0)
print(manager.list_services(0))   # ['cpu1/audio']
print(manager.get_service("audio") is not None)   # True
```

## What it does not do

- The registries are ordinary in-process objects. Nothing here opens a
  binder driver, serialises calls, or carries requests between processes or
  processors. A "binder" is any Python object you register.
- There is no reference-counting layer.
- There are no command-line programs or server daemons to run.

## Running the tests

```
pip install -e .[test]
pytest
```