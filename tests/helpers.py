"""Shared test models, schema and collaborators."""

import datetime
from typing import Optional

from datamapper import Entity, MemoryResultCache, many, one


class Customer(Entity):
    id: Optional[int] = None
    name: str
    orders = many("Order", target_column="customer_id")


class Order(Entity, table="orders", alias="o"):
    id: Optional[int] = None
    status: str = "new"
    placed_at: Optional[datetime.datetime] = None
    note: Optional[str] = None
    customer = one("Customer", own_column="customer_id")
    lines = many("OrderLine", target_column="order_id")


class OrderLine(Entity):
    id: Optional[int] = None
    product: str
    quantity: int = 1
    order = one("Order", own_column="order_id")


SCHEMA = (
    """CREATE TABLE customer (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL
    )""",
    """CREATE TABLE orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        status TEXT NOT NULL DEFAULT 'new',
        placed_at TEXT,
        note TEXT,
        customer_id INTEGER REFERENCES customer(id)
    )""",
    """CREATE TABLE order_line (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        product TEXT NOT NULL,
        quantity INTEGER NOT NULL DEFAULT 1,
        order_id INTEGER REFERENCES orders(id)
    )""",
)

SEED = (
    ("INSERT INTO customer (id, name) VALUES (?, ?)", (1, "Alice")),
    ("INSERT INTO customer (id, name) VALUES (?, ?)", (2, "Bob")),
    ("INSERT INTO orders (id, status, placed_at, note, customer_id) VALUES (?, ?, ?, ?, ?)",
     (1, "open", "2024-03-01 10:00:00", None, 1)),
    ("INSERT INTO orders (id, status, placed_at, note, customer_id) VALUES (?, ?, ?, ?, ?)",
     (2, "open", None, "gift", 1)),
    ("INSERT INTO orders (id, status, placed_at, note, customer_id) VALUES (?, ?, ?, ?, ?)",
     (3, "closed", None, None, 2)),
    ("INSERT INTO orders (id, status, placed_at, note, customer_id) VALUES (?, ?, ?, ?, ?)",
     (4, "open", None, None, None)),
    ("INSERT INTO order_line (id, product, quantity, order_id) VALUES (?, ?, ?, ?)", (1, "pen", 2, 1)),
    ("INSERT INTO order_line (id, product, quantity, order_id) VALUES (?, ?, ?, ?)", (2, "ink", 1, 1)),
    ("INSERT INTO order_line (id, product, quantity, order_id) VALUES (?, ?, ?, ?)", (3, "pad", 5, 2)),
)


class RecordingConnection:
    """Execution wrapper remembering every statement it runs."""

    def __init__(self, connection):
        self.connection = connection
        self.statements: list[tuple[str, tuple]] = []

    def execute(self, sql, parameters=()):
        parameters = tuple(parameters)
        self.statements.append((sql, parameters))
        return self.connection.execute(sql, parameters)

    def last_insert_id(self):
        return self.connection.last_insert_id()

    def affected_rows(self):
        return self.connection.affected_rows()

    @property
    def selects(self) -> list[str]:
        return [sql for sql, _ in self.statements if sql.startswith("SELECT")]

    def reset(self):
        self.statements.clear()


class SpyResultCache(MemoryResultCache):
    """In-memory result cache logging its calls as ``(method, key_or_tags, detail)``."""

    def __init__(self):
        super().__init__()
        self.calls: list[tuple] = []

    def load(self, key):
        value = super().load(key)
        self.calls.append(("load", key, value is not None))
        return value

    def save(self, key, value, tags=(), expire=None):
        self.calls.append(("save", key, tuple(tags)))
        super().save(key, value, tags, expire)

    def clean(self, tags):
        tags = tuple(tags)
        self.calls.append(("clean", tags, None))
        super().clean(tags)
