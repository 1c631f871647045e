"""
Example 02: Prepared Statements and Checkout

This example demonstrates the checkout protocol, preparing a statement once,
running it with different parameters and releasing it.
"""

from pool_lite import MEMORY, BusyConnectionError, Connection, EngineError, Query


def main():
    conn = Connection.connect(database=MEMORY)
    conn.execute(Query("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)"))
    conn.execute(Query("INSERT INTO users VALUES (1, 'Jim'), (2, 'Bob'), (3, 'Dave')"))

    print("=== Prepared Statements ===\n")

    conn.checkout()
    query = conn.prepare(Query("SELECT name FROM users WHERE id <= ? ORDER BY id"))
    for limit in (1, 2, 3):
        _, result = conn.execute(query, [limit])
        print(f"id <= {limit}: {result.rows}")
    conn.close(query)
    conn.checkin()

    # Preparing against a missing table fails without touching the connection
    try:
        conn.prepare(Query("SELECT * FROM orders"))
    except EngineError as e:
        print(f"\nprepare failed: {e.message}")

    # A second checkout while busy is a disconnect-class error
    conn.checkout()
    try:
        conn.checkout()
    except BusyConnectionError as e:
        print(f"double checkout: {e.message}")

    conn.disconnect()


if __name__ == "__main__":
    main()
