"""
Example 03: Async Usage

This example demonstrates AsyncConnectionManager with transactions.
"""

import asyncio

from pool_lite import MEMORY, AsyncConnectionManager, Query


async def main():
    manager = AsyncConnectionManager(database=MEMORY)

    print("=== Async Usage ===\n")

    async with manager.get_connection() as conn:
        await conn.execute(Query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)"))

        async with conn.transaction():
            for i in range(1, 6):
                await conn.execute(Query("INSERT INTO users VALUES (?, ?)"), [i, f"User-{i}"])

        _, result = await conn.execute(Query("SELECT * FROM users"))
        print(f"{result.num_rows} rows: {result.rows}")

    await manager.close()


if __name__ == "__main__":
    asyncio.run(main())
