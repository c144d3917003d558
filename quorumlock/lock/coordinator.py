"""
Lock Coordinator.
Implementasi Redlock di atas beberapa independent nodes:
- Quorum acquisition dengan retry/backoff/deadline
- TTL dan clock drift accounting
- Release, renewal, dan best-effort status probe

Tidak ada background task di sini; renewal dan release
sepenuhnya dikendalikan oleh caller.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from .errors import ConfigurationError, LockAcquisitionError, LockRemovalError, LockRenewalError
from .models import AcquireOptions, LockedResource, LockStatus, now_ms
from .options import (
    DEFAULT_DRIFT_FACTOR,
    DEFAULT_PREFIX,
    DEFAULT_RETRY_DELAY,
    UNSET,
    compute_drift,
    compute_quorum,
    resolve_options,
    validate_defaults,
)
from .tokens import generate_token
from ..nodes.base import LockNode
from ..nodes.redis_node import DEFAULT_SOCKET_TIMEOUT, connect_nodes
from ..utils.metrics import metrics, measure_time

logger = logging.getLogger(__name__)


def _elapsed_ms(since: float) -> float:
    return (time.monotonic() - since) * 1000


class LockCoordinator:
    """
    Distributed lock coordinator (Redlock).

    Lock dianggap acquired hanya jika minimal quorum nodes
    menyimpan resource -> token, dan round selesai sebelum TTL habis.
    Node set dan quorum immutable setelah init.
    """

    def __init__(self,
                 nodes: Sequence[LockNode],
                 prefix: str = DEFAULT_PREFIX,
                 ttl: Optional[int] = None,
                 retry_delay: int = DEFAULT_RETRY_DELAY,
                 fail_after: Optional[int] = None,
                 drift_factor: float = DEFAULT_DRIFT_FACTOR,
                 token_factory: Callable[[], str] = generate_token,
                 clock: Callable[[], int] = now_ms,
                 logger: Optional[logging.Logger] = None):
        """
        Args:
            nodes: Nodes yang sudah connected
            prefix: Prefix untuk semua lock keys
            ttl: Default TTL (ms), None = lock tidak expire
            retry_delay: Default delay antar attempts (ms)
            fail_after: Default deadline untuk lock() (ms), None = unbounded
            drift_factor: Fraction dari TTL untuk clock drift compensation
            token_factory: Generator token unik per acquisition
            clock: Wall clock dalam ms untuk acquired_at/expires_at
            logger: Optional logging sink
        """
        if not nodes:
            raise ConfigurationError("No lock nodes provided")

        self._defaults = AcquireOptions(ttl=ttl, retry_delay=retry_delay, fail_after=fail_after)
        validate_defaults(self._defaults, drift_factor)

        self._nodes: Tuple[LockNode, ...] = tuple(nodes)
        self._quorum = compute_quorum(len(self._nodes))
        self._prefix = prefix
        self._drift_factor = drift_factor
        self._token_factory = token_factory
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

        metrics.set_nodes(len(self._nodes))

        self._logger.info(f"LockCoordinator initialized with {len(self._nodes)} node(s), "
                          f"quorum={self._quorum}")

    @classmethod
    async def connect(cls,
                      urls: List[str],
                      socket_timeout: float = DEFAULT_SOCKET_TIMEOUT,
                      clear_on_startup: bool = False,
                      **defaults) -> 'LockCoordinator':
        """
        Connect ke Redis nodes dan create coordinator.

        Quorum dihitung dari node yang reachable saat startup.
        """
        nodes = await connect_nodes(urls, socket_timeout)
        coordinator = cls(nodes, **defaults)

        if clear_on_startup:
            await coordinator.clear()

        return coordinator

    @classmethod
    async def from_config(cls, config=None) -> 'LockCoordinator':
        """
        Create coordinator dari Config (environment variables).

        Config di-import di sini supaya lock core tetap bisa di-import
        walaupun environment berisi nilai yang invalid.
        """
        if config is None:
            from ..utils.config import Config
            config = Config

        return await cls.connect(
            config.get_nodes(),
            socket_timeout=config.REDIS_SOCKET_TIMEOUT,
            clear_on_startup=config.LOCK_CLEAR_ON_STARTUP,
            **config.coordinator_options()
        )

    @property
    def nodes(self) -> Tuple[LockNode, ...]:
        return self._nodes

    @property
    def quorum(self) -> int:
        return self._quorum

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def defaults(self) -> AcquireOptions:
        return self._defaults

    def resource_name(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _majority_reached(self, count: int) -> bool:
        return count >= self._quorum

    async def _broadcast(self,
                         operation: str,
                         resource: str,
                         call: Callable[[LockNode], Awaitable[bool]]) -> Tuple[int, int]:
        """
        Jalankan satu operation di semua nodes secara parallel.

        Per-node failures di-log dan dihitung, tidak pernah
        meng-abort round.

        Returns:
            (successes, errors)
        """
        results = await asyncio.gather(*(call(node) for node in self._nodes),
                                       return_exceptions=True)

        successes = 0
        errors = 0
        for node, result in zip(self._nodes, results):
            if isinstance(result, Exception):
                errors += 1
                self._logger.error(f"Error on {operation} for resource: {resource} "
                                   f"on node: {node.name}, Error: {result!r}")
            elif isinstance(result, BaseException):
                # CancelledError, KeyboardInterrupt: jangan ditelan
                raise result
            elif result:
                successes += 1
                self._logger.debug(f"{operation} succeeded for resource: {resource} on node: {node.name}")

        metrics.record_node_errors(operation, errors)
        return successes, errors

    async def _release_quietly(self, resource: str, token: str):
        """
        Best-effort release di semua nodes (termasuk yang mungkin
        tidak berhasil di-lock). Errors diabaikan.
        """
        released, errors = await self._broadcast(
            'cleanup', resource, lambda node: node.release(resource, token))
        self._logger.debug(f"Cleanup for resource: {resource} released {released} "
                           f"partial lock(s), {errors} node error(s)")

    async def lock(self,
                   key: str,
                   ttl: Any = UNSET,
                   retry_delay: Any = UNSET,
                   fail_after: Any = UNSET) -> LockedResource:
        """
        Acquire lock untuk key.

        Args:
            key: Lock key (tanpa prefix)
            ttl: TTL (ms); None = permanent; UNSET = default
            retry_delay: Delay antar attempts (ms)
            fail_after: Deadline (ms); None = retry terus

        Returns:
            LockedResource

        Raises:
            LockAcquisitionError: majority nodes error, atau deadline terlewati
        """
        options = resolve_options(self._defaults, ttl, retry_delay, fail_after)
        resource = self.resource_name(key)
        token = self._token_factory()

        outcome = 'failed'
        timer = measure_time()
        try:
            with timer:
                locked = await self._acquire(resource, token, options)
            outcome = 'acquired'
            return locked
        finally:
            metrics.record_operation('lock', outcome, timer.elapsed or 0.0)

    async def _acquire(self, resource: str, token: str, options: AcquireOptions) -> LockedResource:
        drift = compute_drift(options.ttl, self._drift_factor)
        process_start = time.monotonic()
        attempt = 0

        while True:
            attempt += 1
            start = self._clock()
            round_start = time.monotonic()

            self._logger.debug(f"Trying (attempt: {attempt}) to acquire lock for resource: {resource}")
            acquired, errored = await self._broadcast(
                'lock', resource, lambda node: node.acquire(resource, token, options.ttl))

            elapsed = _elapsed_ms(round_start)

            # Majority DAN round selesai sebelum TTL di node pertama habis
            if self._majority_reached(acquired) and (options.ttl is None or elapsed < options.ttl):
                if acquired == len(self._nodes):
                    self._logger.info(f"Lock acquired (attempt: {attempt}) for resource: {resource} "
                                      f"on all instances")
                else:
                    self._logger.info(f"Lock acquired (attempt: {attempt}) for resource: {resource} "
                                      f"on majority: {acquired} of {len(self._nodes)} instances")

                return LockedResource(
                    resource=resource,
                    token=token,
                    ttl=options.ttl + drift if options.ttl is not None else None,
                    acquired_at=self._clock(),
                    expires_at=start + options.ttl - drift if options.ttl is not None else None
                )

            if acquired:
                await self._release_quietly(resource, token)

            if self._majority_reached(errored):
                self._logger.debug(f"Failed (attempt: {attempt}) to acquire lock for resource: {resource}. "
                                   f"Majority of nodes errored")
                raise LockAcquisitionError(
                    f"Failed to acquire lock for resource: {resource}. "
                    f"Majority of nodes errored ({errored} of {len(self._nodes)})",
                    resource=resource,
                    attempts=attempt
                )

            if options.fail_after is not None and _elapsed_ms(process_start) > options.fail_after:
                self._logger.debug(f"Failed (attempt: {attempt}) to acquire lock for resource: {resource}. "
                                   f"Exceeded failure time limit: {options.fail_after}ms")
                raise LockAcquisitionError(
                    f"Failed to acquire lock for resource: {resource}. "
                    f"Exceeded failure time limit: {options.fail_after}ms",
                    resource=resource,
                    attempts=attempt
                )

            self._logger.debug(f"Failed on attempt: {attempt} to acquire lock for resource: {resource} "
                               f"({acquired} acquired, {errored} errored). Retrying...")
            await asyncio.sleep(options.retry_delay / 1000)

    async def unlock(self, locked: LockedResource) -> bool:
        """
        Release lock di semua nodes.

        Partial release (di bawah quorum) tetap return True; sisa
        copies akan hilang sendiri lewat TTL.

        Raises:
            LockRemovalError: jika tidak ada node yang release
        """
        resource = locked.resource
        self._logger.debug(f"Trying to release lock for resource: {resource}")

        with measure_time() as timer:
            released, _ = await self._broadcast(
                'unlock', resource, lambda node: node.release(resource, locked.token))

        if not released:
            metrics.record_operation('unlock', 'failed', timer.elapsed)
            raise LockRemovalError(f"Could not remove lock for resource: {resource}", resource=resource)

        if not self._majority_reached(released):
            self._logger.warning(f"Lock partially removed for resource: {resource} "
                                 f"({released} of {len(self._nodes)} instances)")
            metrics.record_operation('unlock', 'partial', timer.elapsed)
        else:
            self._logger.info(f"Lock removed for resource: {resource} "
                              f"({released} of {len(self._nodes)} instances)")
            metrics.record_operation('unlock', 'released', timer.elapsed)

        return True

    async def renew(self, locked: LockedResource, ttl: int) -> LockedResource:
        """
        Extend TTL lock ke ttl (ms) dari sekarang.

        Returns:
            LockedResource baru dengan acquired_at/expires_at yang di-refresh

        Raises:
            LockRenewalError: lock permanent, atau renewal tidak mencapai quorum
        """
        resource = locked.resource

        if locked.ttl is None:
            raise LockRenewalError(f"Lock for resource: {resource} has no TTL; "
                                   f"a permanent lock cannot be renewed", resource=resource)
        if isinstance(ttl, bool) or not isinstance(ttl, int) or ttl <= 0:
            raise ValueError(f"ttl must be a positive integer (ms), got {ttl!r}")

        start = self._clock()
        round_start = time.monotonic()

        renewed, errored = await self._broadcast(
            'renew', resource, lambda node: node.renew(resource, locked.token, ttl))

        elapsed = _elapsed_ms(round_start)

        if self._majority_reached(renewed) and elapsed < ttl:
            drift = compute_drift(ttl, self._drift_factor)
            self._logger.info(f"Lock renewed for resource: {resource} on {renewed} "
                              f"of {len(self._nodes)} instances")
            metrics.record_operation('renew', 'renewed', elapsed / 1000)
            return LockedResource(
                resource=resource,
                token=locked.token,
                ttl=ttl + drift,
                acquired_at=self._clock(),
                expires_at=start + ttl - drift
            )

        metrics.record_operation('renew', 'failed', elapsed / 1000)
        self._logger.error(f"Failed to renew lock for resource: {resource} "
                           f"({renewed} renewed, {errored} errored, quorum {self._quorum})")
        raise LockRenewalError(f"Could not renew lock for resource: {resource}", resource=resource)

    async def check_status(self, locked: LockedResource) -> LockStatus:
        """
        Best-effort liveness probe.

        Return jawaban definitive (ACQUIRED/LOCKED) pertama dari node
        manapun. Ini bukan quorum vote.
        """
        for node in self._nodes:
            try:
                result = await node.status(locked.resource, locked.token)
            except Exception as e:
                metrics.record_node_errors('status', 1)
                self._logger.error(f"Error checking lock status for resource: {locked.resource} "
                                   f"on node: {node.name}, Error: {e!r}")
                continue

            if result in (LockStatus.ACQUIRED, LockStatus.LOCKED):
                return result

        return LockStatus.AVAILABLE

    @asynccontextmanager
    async def hold(self, key: str, **options):
        """
        Async context manager: acquire saat enter, release saat exit.

        Contoh penggunaan:
            async with coordinator.hold("orders:42", ttl=5000) as locked:
                ...
        """
        locked = await self.lock(key, **options)
        try:
            yield locked
        finally:
            try:
                await self.unlock(locked)
            except LockRemovalError as e:
                self._logger.warning(f"Lock for resource: {locked.resource} already gone on exit: {e}")

    async def clear(self) -> int:
        """
        Hapus semua keys dengan prefix di semua nodes.
        Hanya untuk testing; jangan dipakai di production.
        """
        results = await asyncio.gather(*(node.clear(self._prefix) for node in self._nodes),
                                       return_exceptions=True)
        removed = 0
        for node, result in zip(self._nodes, results):
            if isinstance(result, Exception):
                self._logger.error(f"Failed to clear prefix '{self._prefix}' on node: {node.name}: {result!r}")
            elif isinstance(result, BaseException):
                raise result
            else:
                removed += result
        return removed

    async def aclose(self, clear: bool = False):
        """Close semua node connections"""
        if clear:
            await self.clear()

        self._logger.info(f"Disconnecting from {len(self._nodes)} lock node(s)")
        for node in self._nodes:
            await node.aclose()
