"""
HTTP Lock Gateway.
Expose LockCoordinator lewat aiohttp supaya process non-Python
bisa memakai lock yang sama:
- Acquire / release / renew locks
- Best-effort status probe
- Health check dan Prometheus metrics
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from aiohttp import web

from ..lock.coordinator import LockCoordinator
from ..lock.errors import LockAcquisitionError, LockRemovalError, LockRenewalError
from ..lock.models import LockedResource
from ..lock.options import UNSET
from ..utils.metrics import metrics

logger = logging.getLogger(__name__)


class LockGateway:
    """
    HTTP front untuk satu LockCoordinator.

    Gateway tidak menyimpan state lock; LockedResource dikembalikan
    ke client dan dikirim balik saat release/renew.
    """

    def __init__(self, coordinator: LockCoordinator, host: str = 'localhost', port: int = 8080):
        """
        Args:
            coordinator: Coordinator yang sudah connected
            host: Host address
            port: Port number
        """
        self.coordinator = coordinator
        self.host = host
        self.port = port

        # HTTP server
        self.app = web.Application()
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

        # Setup routes
        self._setup_routes()

        # Running state
        self._running = False

        logger.info(f"LockGateway initialized at {host}:{port}")

    def _setup_routes(self):
        """Setup HTTP API routes"""
        self.app.router.add_post('/api/lock/acquire', self.handle_acquire_lock)
        self.app.router.add_post('/api/lock/release', self.handle_release_lock)
        self.app.router.add_post('/api/lock/renew', self.handle_renew_lock)
        self.app.router.add_post('/api/lock/status', self.handle_lock_status)
        self.app.router.add_get('/api/status', self.handle_status)
        self.app.router.add_get('/api/metrics', self.handle_metrics)
        self.app.router.add_get('/health', self.handle_health)

    async def start(self):
        """Start HTTP server"""
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        self._running = True
        logger.info(f"LockGateway started at http://{self.host}:{self.port}")

    async def stop(self):
        """Stop HTTP server (coordinator tetap milik caller)"""
        self._running = False

        if self.site:
            await self.site.stop()
        if self.runner:
            await self.runner.cleanup()

        logger.info("LockGateway stopped")

    @staticmethod
    async def _read_json(request: web.Request) -> Dict[str, Any]:
        try:
            data = await request.json()
        except ValueError:
            raise web.HTTPBadRequest(reason='invalid JSON body')
        if not isinstance(data, dict):
            raise web.HTTPBadRequest(reason='JSON body must be an object')
        return data

    @staticmethod
    def _parse_locked(data: Dict[str, Any]) -> LockedResource:
        try:
            return LockedResource.from_dict(data)
        except (KeyError, TypeError):
            raise web.HTTPBadRequest(reason='body must contain resource and token')

    async def handle_acquire_lock(self, request: web.Request) -> web.Response:
        """HTTP endpoint untuk acquire lock"""
        data = await self._read_json(request)
        key = data.get('key')
        if not key or not isinstance(key, str):
            raise web.HTTPBadRequest(reason='key is required')

        options = {
            name: data[name] if name in data else UNSET
            for name in ('ttl', 'retry_delay', 'fail_after')
        }

        try:
            locked = await self.coordinator.lock(key, **options)
        except ValueError as e:
            raise web.HTTPBadRequest(reason=str(e))
        except LockAcquisitionError as e:
            return web.json_response({'error': e.message, 'attempts': e.attempts}, status=409)

        return web.json_response(locked.to_dict())

    async def handle_release_lock(self, request: web.Request) -> web.Response:
        """HTTP endpoint untuk release lock"""
        locked = self._parse_locked(await self._read_json(request))

        try:
            released = await self.coordinator.unlock(locked)
        except LockRemovalError as e:
            return web.json_response({'error': e.message}, status=409)

        return web.json_response({'released': released, 'resource': locked.resource})

    async def handle_renew_lock(self, request: web.Request) -> web.Response:
        """HTTP endpoint untuk renew lock"""
        data = await self._read_json(request)
        locked = self._parse_locked(data.get('lock') or {})

        try:
            renewed = await self.coordinator.renew(locked, data.get('ttl'))
        except ValueError as e:
            raise web.HTTPBadRequest(reason=str(e))
        except LockRenewalError as e:
            return web.json_response({'error': e.message}, status=409)

        return web.json_response(renewed.to_dict())

    async def handle_lock_status(self, request: web.Request) -> web.Response:
        """HTTP endpoint untuk status probe"""
        locked = self._parse_locked(await self._read_json(request))
        status = await self.coordinator.check_status(locked)
        return web.json_response({'resource': locked.resource, 'status': status.value})

    async def handle_status(self, request: web.Request) -> web.Response:
        """Get gateway dan coordinator status"""
        defaults = self.coordinator.defaults
        status = {
            'address': f"{self.host}:{self.port}",
            'running': self._running,
            'nodes': [node.name for node in self.coordinator.nodes],
            'quorum': self.coordinator.quorum,
            'prefix': self.coordinator.prefix,
            'defaults': {
                'ttl': defaults.ttl,
                'retry_delay': defaults.retry_delay,
                'fail_after': defaults.fail_after
            }
        }
        return web.json_response(status)

    async def handle_metrics(self, request: web.Request) -> web.Response:
        """Export Prometheus metrics"""
        metrics_data = metrics.get_metrics()
        return web.Response(body=metrics_data, content_type='text/plain')

    async def handle_health(self, request: web.Request) -> web.Response:
        """Health check endpoint"""
        if self._running:
            return web.json_response({'status': 'healthy'})
        else:
            return web.json_response({'status': 'unhealthy'}, status=503)


async def serve_forever(gateway: LockGateway):
    """Run gateway sampai di-cancel"""
    await gateway.start()
    try:
        while True:
            await asyncio.sleep(1)
    finally:
        await gateway.stop()
