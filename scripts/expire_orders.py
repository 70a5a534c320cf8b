# scripts/expire_orders.py
"""Expire unpaid bank-transfer orders whose payment window has passed.

Run from cron every minute:
    python -m scripts.expire_orders
"""
import asyncio
import argparse
import logging

from app.db import async_session
from app.services.order_status import expire_pending_orders

log = logging.getLogger("scripts.expire_orders")


async def run_once() -> int:
    async with async_session() as session:
        count = await expire_pending_orders(session)
        await session.commit()
    return count


async def run_forever(interval: int):
    while True:
        count = await run_once()
        if count:
            log.info("expired %s orders", count)
        await asyncio.sleep(interval)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Expire stale pending-payment orders")
    parser.add_argument("--loop", action="store_true", help="Keep running instead of exiting after one pass")
    parser.add_argument("--interval", type=int, default=60, help="Seconds between passes with --loop")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.loop:
        asyncio.run(run_forever(args.interval))
    else:
        print(f"✅ Expired {asyncio.run(run_once())} orders.")
