"""
Example 01: Basic Query Execution

This example demonstrates connecting, executing queries directly and reading
normalized results with PoolLite's Connection.
"""

import tempfile
from pathlib import Path

from pool_lite import Command, Connection, Query


def main():
    # Create a temporary database file
    db_path = Path(tempfile.mkdtemp()) / "example.db"

    conn = Connection.connect(database=str(db_path))

    # Set up the database with some test data
    conn.execute(Query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT NOT NULL)"))
    for user_id, name in [(1, "Alice"), (2, "Bob"), (3, "Charlie")]:
        conn.execute(
            Query("INSERT INTO users (id, name) VALUES (?, ?)", command=Command.INSERT),
            [user_id, name],
        )

    print("=== Basic Query Execution ===\n")

    # Row-returning query: columns and rows in engine order
    _, result = conn.execute(Query("SELECT * FROM users WHERE id < ?"), [3])
    print(f"columns: {result.columns}")
    print(f"rows ({result.num_rows}): {result.rows}\n")

    # No matches still yields an empty list
    _, result = conn.execute(Query("SELECT * FROM users WHERE id > ?"), [100])
    print(f"no matches: {result.rows}\n")

    # Data modification: rows is None, num_rows counts changed rows
    _, result = conn.execute(
        Query("UPDATE users SET name = ? WHERE id = ?", command=Command.UPDATE),
        ["Bobby", 2],
    )
    print(f"update: rows={result.rows} num_rows={result.num_rows}\n")

    # Clean up
    conn.disconnect()
    db_path.unlink()
    db_path.parent.rmdir()


if __name__ == "__main__":
    main()
