import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
SESSION = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Carts ===")
if SESSION:
    cur.execute(
        "SELECT id, account_id, session_id, created_at, updated_at FROM carts WHERE session_id=?",
        (SESSION,),
    )
else:
    cur.execute("SELECT id, account_id, session_id, created_at, updated_at FROM carts ORDER BY created_at DESC LIMIT 20")
carts = cur.fetchall()
for r in carts:
    print({"id": r[0], "account_id": r[1], "session_id": r[2], "created_at": r[3], "updated_at": r[4]})

print("\n=== Cart Items ===")
cart_ids = [r[0] for r in carts]
if cart_ids:
    marks = ",".join("?" for _ in cart_ids)
    cur.execute(
        f"SELECT id, cart_id, product_id, flavor_id, size_id, quantity, unit_price, total_price, observations "
        f"FROM cart_items WHERE cart_id IN ({marks}) ORDER BY cart_id, id",
        cart_ids,
    )
    for r in cur.fetchall():
        print(
            {
                "id": r[0],
                "cart_id": r[1],
                "product_id": r[2],
                "flavor_id": r[3],
                "size_id": r[4],
                "quantity": r[5],
                "unit_price": r[6],
                "total_price": r[7],
                "observations": r[8],
            }
        )

print("\n=== Duplicate combinations (should be empty) ===")
cur.execute(
    "SELECT cart_id, product_id, flavor_id, size_id, COUNT(*) FROM cart_items "
    "GROUP BY cart_id, product_id, flavor_id, size_id HAVING COUNT(*) > 1"
)
dupes = cur.fetchall()
for r in dupes:
    print(r)
if not dupes:
    print("none")

conn.close()
