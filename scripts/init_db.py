# scripts/init_db.py
import asyncio
import logging

from app.db import create_db_and_tables


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(create_db_and_tables())
    print("✅ All missing tables created.")
