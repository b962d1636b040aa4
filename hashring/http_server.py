import asyncio
import logging
from datetime import datetime, timezone

from aiohttp import web

from .node import DEFAULT_HOST, DEFAULT_PORT, Node
from .ring_manager import RingManager
from .stats import DistributionReport

logger = logging.getLogger(__name__)

API_PREFIX = "/api/ring"

MAX_NODE_ID_LENGTH = 50
MAX_HOST_LENGTH = 100
MAX_KEY_COUNT = 1_000_000
MAX_KEY_PREFIX_LENGTH = 20
DEFAULT_KEY_COUNT = 1000
DEFAULT_KEY_PREFIX = "testkey"


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _is_blank(value):
    return not isinstance(value, str) or not value.strip()


def validate_node_request(data):
    """Return ``(node, errors)``; ``node`` is None when any rule fails."""
    errors = []
    node_id = data.get("id")
    host = data.get("host", DEFAULT_HOST)
    port = data.get("port", DEFAULT_PORT)

    if _is_blank(node_id):
        errors.append("node id is required")
    elif len(node_id) > MAX_NODE_ID_LENGTH:
        errors.append(f"node id must be 1-{MAX_NODE_ID_LENGTH} characters")

    if not isinstance(host, str):
        errors.append("host must be a string")
    elif len(host) > MAX_HOST_LENGTH:
        errors.append(f"host must not exceed {MAX_HOST_LENGTH} characters")

    if not _is_int(port) or port <= 0:
        errors.append("port must be a positive integer")

    if errors:
        return None, errors
    return Node(node_id, host, port), []


def validate_distribution_request(data):
    """Return ``(key_count, key_prefix, errors)``."""
    errors = []
    key_count = data.get("key_count", DEFAULT_KEY_COUNT)
    key_prefix = data.get("key_prefix", DEFAULT_KEY_PREFIX)

    if not _is_int(key_count) or key_count < 1:
        errors.append("key_count must be at least 1")
    elif key_count > MAX_KEY_COUNT:
        errors.append(f"key_count must not exceed {MAX_KEY_COUNT:,}")

    if _is_blank(key_prefix):
        errors.append("key_prefix is required")
    elif len(key_prefix) > MAX_KEY_PREFIX_LENGTH:
        errors.append(f"key_prefix must be 1-{MAX_KEY_PREFIX_LENGTH} characters")

    return key_count, key_prefix, errors


def envelope(success, message=None, data=None, error=None):
    body = {"success": success}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    return body


def ok(message, data=None):
    return web.json_response(envelope(True, message=message, data=data))


def fail(error, status):
    return web.json_response(envelope(False, error=error), status=status)


async def read_json(request):
    """Return ``(data, error)``; an empty body reads as ``{}``."""
    if not request.body_exists:
        return {}, None
    try:
        data = await request.json()
    except ValueError as e:
        return None, f"Invalid JSON: {e}"
    if not isinstance(data, dict):
        return None, "Invalid JSON: expected an object"
    return data, None


class RingHTTPServer:
    def __init__(self, ring=None, host=DEFAULT_HOST, port=DEFAULT_PORT):
        self.ring = ring if ring is not None else RingManager()
        self.host = host
        self.port = port
        self.runner = None
        self.app = self._create_app()

    def _create_app(self):
        app = web.Application()
        app["ring"] = self.ring

        app.router.add_post(f"{API_PREFIX}/nodes", self.handle_register)
        app.router.add_delete(f"{API_PREFIX}/nodes", self.handle_reset)
        app.router.add_get(f"{API_PREFIX}/nodes/lookup/{{key:.*}}", self.handle_lookup)
        app.router.add_delete(f"{API_PREFIX}/nodes/{{node_id}}", self.handle_deregister)
        app.router.add_get(f"{API_PREFIX}/ring/info", self.handle_ring_info)
        app.router.add_post(f"{API_PREFIX}/test/distribution", self.handle_distribution)

        return app

    async def handle_register(self, request):
        data, error = await read_json(request)
        if error:
            return fail(error, 400)

        node, errors = validate_node_request(data)
        if errors:
            return fail("; ".join(errors), 400)

        try:
            self.ring.register_node(node)
        except Exception as e:
            logger.exception("register failed for node=%s", node.id)
            return fail(str(e), 500)
        return ok(f"Node registered: {node.id} ({node.address})")

    async def handle_deregister(self, request):
        node_id = request.match_info["node_id"]
        try:
            self.ring.deregister_node(node_id)
        except Exception as e:
            logger.exception("deregister failed for node=%s", node_id)
            return fail(str(e), 500)
        return ok(f"Node deregistered: {node_id}")

    async def handle_reset(self, request):
        self.ring.reset()
        return ok("All nodes removed")

    async def handle_lookup(self, request):
        key = request.match_info["key"]
        try:
            node = self.ring.resolve(key)
        except Exception as e:
            logger.exception("lookup failed for key=%r", key)
            return fail(str(e), 500)

        if node is None:
            return ok(
                "No owner found (ring is empty)",
                {"key": key, "node_id": None, "node_address": None, "found": False},
            )
        return ok(
            "Owner found",
            {"key": key, "node_id": node.id, "node_address": node.address, "found": True},
        )

    async def handle_ring_info(self, request):
        info = self.ring.ring_info()
        return ok("Ring info", info.to_dict())

    async def handle_distribution(self, request):
        data, error = await read_json(request)
        if error:
            return fail(error, 400)

        key_count, key_prefix, errors = validate_distribution_request(data)
        if errors:
            return fail("; ".join(errors), 400)

        keys = (f"{key_prefix}_{i}" for i in range(key_count))
        loop = asyncio.get_running_loop()
        try:
            distribution = await loop.run_in_executor(None, self.ring.distribution, keys)
        except Exception as e:
            logger.exception("distribution test failed")
            return fail(str(e), 500)

        report = DistributionReport.build(key_count, distribution)
        message = (
            f"Distribution test complete - {key_count} keys over {report.node_count} nodes "
            f"(uniformity score: {report.uniformity_score:.2f})"
        )
        return ok(message, report.to_dict())

    async def start(self):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()

        site = web.TCPSite(self.runner, self.host, self.port)
        await site.start()

        print(f"Hash ring server running on http://{self.host}:{self.port}")
        print("Routes:")
        print(f"  POST   {API_PREFIX}/nodes                   - Register a node")
        print(f"  DELETE {API_PREFIX}/nodes/{{node_id}}         - Deregister a node")
        print(f"  DELETE {API_PREFIX}/nodes                   - Remove all nodes")
        print(f"  GET    {API_PREFIX}/nodes/lookup/{{key}}      - Find the owner of a key")
        print(f"  GET    {API_PREFIX}/ring/info               - Ring statistics")
        print(f"  POST   {API_PREFIX}/test/distribution       - Distribution test")

    async def stop(self):
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
