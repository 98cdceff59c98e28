import asyncio
import collections
import contextlib
import logging

from . import errors
from .builder import SiteReference, build_origin_pool
from .config import XCConfiguration
from .metrics import ReconcileStats
from .models import ServiceAdded, ServiceEvent, ServiceRemoved, ServiceUpdated
from .naming import canonicalize


logger = logging.getLogger(__name__)


class Reconciler:
    """
    Reconciles origin pools with the NodePort services they are derived from.

    Each event results in at most one write to the XC API. Failures are logged and
    end the attempt; the next event for the service is the only retry.
    """
    def __init__(
        self,
        config: XCConfiguration,
        resolver,
        client,
        stats: ReconcileStats | None = None
    ):
        self._config = config
        self._site = SiteReference.from_config(config)
        self._resolver = resolver
        self._client = client
        self.stats = stats or ReconcileStats()
        # Attempts for the same origin pool must not overlap
        self._locks = {}
        self._lock_users = collections.Counter()

    async def handle(self, event: ServiceEvent):
        """
        Handles a single service event.
        """
        match event:
            case ServiceAdded(service=service) | ServiceUpdated(service=service):
                if service.is_node_reachable:
                    await self.reconcile(service)
                else:
                    logger.debug("ignoring service %s of type %s", service.key, service.spec.type)
            case ServiceRemoved(service=service):
                if service.is_node_reachable:
                    await self.remove(service)
                else:
                    logger.debug("ignoring removal of service %s", service.key)
            case _:
                raise TypeError(f"unknown service event: {event!r}")

    @contextlib.asynccontextmanager
    async def _pool_lock(self, name):
        """
        Holds the lock for the named origin pool.

        The lock is discarded once no attempt is holding or waiting for it.
        """
        lock = self._locks.setdefault(name, asyncio.Lock())
        self._lock_users[name] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[name] -= 1
            if not self._lock_users[name]:
                del self._lock_users[name]
                del self._locks[name]

    def _pool_name(self, service):
        name = canonicalize(service.metadata.name)
        if not name:
            logger.error("service %s does not map to a valid origin pool name", service.key)
        return name

    async def reconcile(self, service):
        """
        Creates or replaces the origin pool for the given service.
        """
        name = self._pool_name(service)
        if not name:
            self.stats.record("apply", "invalid")
            return
        if not service.node_port:
            logger.error("service %s has no node port assigned - skipping", service.key)
            self.stats.record("apply", "invalid")
            return
        async with self._pool_lock(name):
            try:
                exists = await self._client.exists(name)
            except errors.OriginSyncError as exc:
                logger.error("error checking if origin pool %s exists: %s", name, exc)
                self.stats.record("check", "failed")
                return
            action = "update" if exists else "create"
            try:
                endpoints = await self._resolver.resolve(service)
            except errors.ResolutionError as exc:
                logger.error("error resolving endpoints for service %s: %s", service.key, exc)
                self.stats.record(action, "failed")
                return
            if not endpoints:
                logger.warning("service %s has no endpoints", service.key)
            try:
                pool = build_origin_pool(service, endpoints, self._site, self._config)
            except errors.PreconditionError as exc:
                logger.error("cannot build origin pool %s: %s", name, exc)
                self.stats.record(action, "invalid")
                return
            try:
                if exists:
                    logger.info("origin pool %s exists - updating", name)
                    await self._client.replace(pool)
                else:
                    logger.info("creating origin pool %s for service %s", name, service.key)
                    await self._client.create(pool)
            except errors.OriginSyncError as exc:
                logger.error("failed to %s origin pool %s: %s", action, name, exc)
                self.stats.record(action, "failed")
            else:
                logger.info(
                    "%s origin pool %s with %d origin server(s)",
                    "updated" if exists else "created",
                    name,
                    len(pool.origin_servers)
                )
                self.stats.record(action, "success")
                self.stats.pool_applied(name, len(pool.origin_servers))

    async def remove(self, service):
        """
        Deletes the origin pool for the given service.
        """
        name = self._pool_name(service)
        if not name:
            self.stats.record("delete", "invalid")
            return
        async with self._pool_lock(name):
            try:
                await self._client.delete(name)
            except errors.NotFound:
                logger.info("origin pool %s is already absent", name)
                self.stats.record("delete", "absent")
                self.stats.pool_removed(name)
            except errors.OriginSyncError as exc:
                logger.error("failed to delete origin pool %s: %s", name, exc)
                self.stats.record("delete", "failed")
            else:
                logger.info("deleted origin pool %s for service %s", name, service.key)
                self.stats.record("delete", "success")
                self.stats.pool_removed(name)
