# SPDX-License-Identifier: MIT
# Copyright (c) 2025 remote-config contributors

"""Session credential lifecycle for the Vault backend.

AppRole login yields a token with a lease. A :class:`LifetimeWatcher` renews
that token in the background, and a :class:`TokenRenewer` keeps a watcher
running for as long as the store lives: whenever a watcher finishes (renewal
failed, the lease ran out, or the token is not renewable) it logs the reason,
logs in again when the token itself is gone, and starts a fresh watcher.

The renewer is the only writer of the client's token after construction.
Requests made by the store read ``client.token`` at call time, so a watch
running concurrently picks up a replaced token on its next cycle and only
sees renewal problems as ordinary read errors.
"""

import functools
import queue
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional, Protocol

import requests
from hvac.exceptions import Forbidden, VaultError

from remote_logging import Logger, create_logger

from .exceptions import LoginError, RemoteConfigError

RENEWED = "renewed"
DONE = "done"
CANCEL = "cancel"

# Renew once this fraction of the lease has elapsed
RENEW_FRACTION = 2 / 3
DEFAULT_MIN_RENEW_INTERVAL = 5.0

# Upper bound on waiting for a stopped watcher thread
_WATCHER_JOIN_SECONDS = 1.0

_VAULT_ERRORS = (VaultError, requests.exceptions.RequestException)


@dataclass(frozen=True)
class Lease:
    """A session token and the terms it was granted on.

    Attributes:
        client_token: The session token
        lease_duration: Seconds the token stays valid; 0 means it does not expire
        renewable: Whether the token may be renewed
        ttl: Increment requested on each renewal, in seconds (0 lets Vault pick)
        granted_at: time.monotonic() reading when the lease was granted
    """

    client_token: str
    lease_duration: int
    renewable: bool
    ttl: int = 0
    granted_at: float = field(default_factory=time.monotonic, compare=False)


@dataclass(frozen=True)
class RenewalEvent:
    """Lifecycle event posted by a watcher (or by cancel) to the renewal loop."""

    kind: str
    error: Optional[Exception] = None
    lease: Optional[Lease] = None
    relogin: bool = False


class Watcher(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...

    def join(self, timeout: Optional[float] = None) -> None: ...


WatcherFactory = Callable[[Lease, Callable[[RenewalEvent], None]], Watcher]


def approle_login(client: Any, role_id: str, secret_id: Optional[str]) -> Lease:
    """Exchange AppRole credentials for a session token.

    Sets ``client.token`` to the new token and looks it up to learn its TTL.

    Args:
        client: hvac.Client
        role_id: AppRole role id
        secret_id: AppRole secret id (may be None for roles without one)

    Returns:
        The lease of the new token

    Raises:
        LoginError: If login or the token lookup fails
    """
    try:
        response = client.auth.approle.login(role_id=role_id, secret_id=secret_id)
        auth = response["auth"]
        client.token = auth["client_token"]
        data = client.auth.token.lookup_self()["data"]
    except (*_VAULT_ERRORS, KeyError, TypeError) as e:
        raise LoginError(f"AppRole login failed: {e}") from e

    return Lease(
        client_token=auth["client_token"],
        lease_duration=int(auth.get("lease_duration") or 0),
        renewable=bool(data.get("renewable", auth.get("renewable", False))),
        ttl=int(data.get("ttl") or 0),
    )


class LifetimeWatcher:
    """Renews one token lease until renewal stops being possible.

    Renewal happens once ``RENEW_FRACTION`` of the current lease has elapsed
    since it was granted (never sooner than ``min_interval`` after the watcher
    starts or renews), so a watcher started late in a lease retries promptly.
    Each success posts a ``renewed`` event; the watcher then posts exactly one
    ``done`` event and exits when:

    * a renewal request fails (``error`` set; ``relogin`` when Vault denied it)
    * the token is not renewable (``relogin`` set, after the renewal delay)
    * Vault grants a lease shorter than ``min_interval`` (``relogin`` set)

    A token whose lease never expires is left alone until :meth:`stop`.
    """

    def __init__(
        self,
        client: Any,
        lease: Lease,
        notify: Callable[[RenewalEvent], None],
        min_interval: float = DEFAULT_MIN_RENEW_INTERVAL,
    ):
        self._client = client
        self.lease = lease
        self._notify = notify
        self.min_interval = min_interval
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._run, name="vault-lifetime-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _renew_delay(self, lease: Lease) -> float:
        elapsed = time.monotonic() - lease.granted_at
        return max(lease.lease_duration * RENEW_FRACTION - elapsed, self.min_interval)

    def _run(self) -> None:
        lease = self.lease
        if lease.lease_duration <= 0:
            self._stopped.wait()
            return

        while True:
            if self._stopped.wait(self._renew_delay(lease)):
                return

            if not lease.renewable:
                self._notify(RenewalEvent(DONE, relogin=True))
                return

            try:
                response = self._client.auth.token.renew_self(increment=lease.ttl or None)
                auth = response["auth"]
                lease = replace(
                    lease,
                    client_token=auth.get("client_token") or lease.client_token,
                    lease_duration=int(auth["lease_duration"]),
                    renewable=bool(auth.get("renewable", False)),
                    granted_at=time.monotonic(),
                )
            except (*_VAULT_ERRORS, KeyError, TypeError) as e:
                self._notify(RenewalEvent(DONE, error=e, relogin=isinstance(e, Forbidden)))
                return

            self.lease = lease
            self._notify(RenewalEvent(RENEWED, lease=lease))

            if lease.lease_duration < self.min_interval:
                self._notify(RenewalEvent(DONE, relogin=True))
                return


class TokenRenewer:
    """Background loop keeping a session token valid until cancelled.

    The loop waits on one queue that carries every event it reacts to, so a
    cancel wakes it immediately even while a watcher is sleeping:

    * ``cancel``: stop the active watcher and exit
    * ``done``: log why, log in again if the token must be replaced and a
      login callable is available, then start a fresh watcher
    * ``renewed``: record the new lease and keep waiting

    Events from a watcher that has already been replaced are ignored.

    Attributes:
        lease: Most recent lease known to the loop
        restarts: Number of times a finished watcher was replaced
        renewals: Number of successful renewals observed
    """

    def __init__(
        self,
        lease: Lease,
        watcher_factory: WatcherFactory,
        login: Optional[Callable[[], Lease]] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize the renewal loop without starting it.

        Args:
            lease: Lease of the token obtained at login
            watcher_factory: Builds a watcher for a lease and an event callback
            login: Performs a fresh login and returns its lease
            logger: Logger for renewal lifecycle records
        """
        self.lease = lease
        self._watcher_factory = watcher_factory
        self._login = login
        self.logger = logger or create_logger(name="remote_config.renewal")
        self.restarts = 0
        self.renewals = 0

        self._events: queue.Queue[tuple[int, RenewalEvent]] = queue.Queue()
        self._cancelled = threading.Event()
        self._generation = 0
        self._watcher: Optional[Watcher] = None
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "TokenRenewer":
        """Start the renewal loop on a daemon thread."""
        if self._thread is not None:
            raise RuntimeError("Token renewer already started")

        self._thread = threading.Thread(target=self._run, name="vault-token-renewer", daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Stop the active watcher and end the loop."""
        self._cancelled.set()
        self._events.put((-1, RenewalEvent(CANCEL)))

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _post(self, generation: int, event: RenewalEvent) -> None:
        self._events.put((generation, event))

    def _start_watcher(self) -> None:
        self._generation += 1
        self._watcher = self._watcher_factory(self.lease, functools.partial(self._post, self._generation))
        self._watcher.start()

    def _run(self) -> None:
        try:
            self._start_watcher()
            while True:
                generation, event = self._events.get()
                if event.kind == CANCEL:
                    return
                if generation != self._generation:
                    continue

                if event.kind == DONE:
                    self._restart(event)
                elif event.kind == RENEWED:
                    self.renewals += 1
                    if event.lease is not None:
                        self.lease = event.lease
                    self.logger.debug("Successfully renewed token for Vault provider")
        except Exception:
            self.logger.exception("Token renewal stopped unexpectedly")
        finally:
            if self._watcher is not None:
                self._watcher.stop()
                self._watcher.join(_WATCHER_JOIN_SECONDS)
            self.logger.debug("Token renewal stopped", restarts=self.restarts)

    def _restart(self, event: RenewalEvent) -> None:
        if event.error is not None:
            self.logger.error(
                f"Error renewing token for Vault provider - {event.error}",
                error_type=type(event.error).__name__,
            )
        else:
            self.logger.info("Token lease can no longer be renewed")

        if event.relogin and self._login is not None and not self._cancelled.is_set():
            try:
                self.lease = self._login()
                self.logger.info("Logged in to Vault again after lease ended")
            except RemoteConfigError as e:
                self.logger.error(f"Re-login to Vault failed - {e}")

        self.restarts += 1
        self._start_watcher()
