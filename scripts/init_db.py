"""Script to initialize the database without running migrations."""

import asyncio

from sqlalchemy import text

from slotbook.database import engine
from slotbook.models import metadata


async def init_db() -> None:
    """Create extensions, tables and the appointment overlap constraint."""
    async with engine.begin() as conn:
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))
        await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "btree_gist"'))

        # The overlap exclusion constraint is attached to table creation
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
