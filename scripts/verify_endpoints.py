"""
Probe every configured RPC endpoint and print its status.
Run: python scripts/verify_endpoints.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from rpcguard.config import get_settings
from rpcguard.core.exceptions import ClassifiedError
from rpcguard.logging_config import configure_logging
from rpcguard.services.rpc_client import RpcClient


async def verify_endpoints() -> bool:
    """Run a health check and one retried call through the pool."""
    settings = get_settings()
    configure_logging(settings.log_level)

    print("\n🔍 Checking RPC endpoints...")
    async with RpcClient.from_settings(settings) as client:
        health = await client.health_check()
        for url, status in health["endpoints"].items():
            mark = "✅" if status["status"] == "healthy" else "❌"
            detail = status.get("error", status.get("result"))
            print(f"   {mark} {url}: {detail}")

        print(f"\n   Overall: {health['status']}")

        print("\n🔁 Resilient call: getSlot")
        try:
            slot = await client.call("getSlot")
            print(f"   ✅ Slot: {slot}")
        except ClassifiedError as e:
            print(f"   ❌ {e.severity.value}/{e.kind.value} after {e.attempts} attempt(s): {e}")

        pool = client.endpoint_manager.get_connection_status()
        print(f"\n   Pool: {pool.available}/{pool.total} available, {pool.blacklisted} blacklisted")

    return health["status"] != "unhealthy"


if __name__ == "__main__":
    ok = asyncio.run(verify_endpoints())
    sys.exit(0 if ok else 1)
