"""Quick database check script."""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select, text

from sharepool.db import engine
from sharepool.models import Base


async def check():
    print(f"Connecting to {engine.url.render_as_string(hide_password=True)}...")

    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))

        tables = sorted(Base.metadata.tables.values(), key=lambda t: t.name)
        print(f"\nTables expected: {len(tables)}")
        for table in tables:
            try:
                count = await conn.scalar(select(func.count()).select_from(table))
            except Exception as e:
                print(f"  - {table.name}: MISSING ({type(e).__name__})")
                await conn.rollback()
                continue
            print(f"  - {table.name}: {count} rows")

    await engine.dispose()
    print("\nDatabase connection OK!")


if __name__ == "__main__":
    asyncio.run(check())
