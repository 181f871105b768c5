#!/usr/bin/env python3
import sys
import os

print("Running preflight check...")
try:
    # Set dummy env vars to avoid surprises during config load
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import paygate.main
    print("Import paygate.main: OK")

    from paygate.gateway.client import GatewayClient
    gw = GatewayClient()
    print(f"validate-user endpoint: {gw.validate_user_url}")
    print(f"complete-transaction endpoint: {gw.complete_transaction_url}")
    print(f"gateway timeout: {gw.timeout if gw.timeout is not None else 'none'}")

    from paygate.store.redis_conn import get_redis
    get_redis().ping()
    print("Redis ping: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
