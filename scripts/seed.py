#!/usr/bin/env python3
"""
Seed script: creates a demo API client. Reference configuration and rules are
seeded by migration 001.
Run after migrations: python scripts/seed.py
"""

import asyncio
import os
import sys
from datetime import datetime, timezone
from uuid import uuid4

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from persona_engine.auth.middleware import hash_api_key
from persona_engine.config import settings
from persona_engine.database import strip_ssl_query

API_KEY = "sk_demo_persona_12345"  # Demo API key - print this for user
CLIENT_NAME = "persona-admin"


async def seed():
    url, connect_args = strip_ssl_query(settings.database_url)
    engine = create_async_engine(url, connect_args=connect_args)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        api_key_hash = hash_api_key(API_KEY)
        result = await session.execute(
            text("SELECT client_id FROM api_clients WHERE api_key_hash = :hash"),
            {"hash": api_key_hash},
        )
        if result.fetchone():
            print("API client already exists, using existing.")
        else:
            await session.execute(
                text("""
                    INSERT INTO api_clients (client_id, name, tenant_id, api_key_hash, created_at)
                    VALUES (:cid, :name, :tenant, :hash, :now)
                """),
                {
                    "cid": str(uuid4()),
                    "name": CLIENT_NAME,
                    "tenant": "demo",
                    "hash": api_key_hash,
                    "now": datetime.now(timezone.utc),
                },
            )
            await session.commit()

        result = await session.execute(text("SELECT count(*) FROM persona_rules"))
        print(f"Persona rules configured: {result.scalar_one()}")

    await engine.dispose()

    print("Seed complete!")
    print(f"API Key: {API_KEY}")
    print(f"Use: Authorization: Bearer {API_KEY}")
    print("Example: curl -X POST http://localhost:8000/v1/persona/profiles/P-1001/assign-personas \\")
    print('  -H "Authorization: Bearer ' + API_KEY + '" \\')
    print('  -H "Content-Type: application/json" \\')
    print('  -d \'{"consent":true,"data":{"nationality":"SA","age":30,"income":25000,"gender":"Female"}}\'')


if __name__ == "__main__":
    asyncio.run(seed())
