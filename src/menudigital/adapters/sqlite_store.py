"""SQLite implementation of MenuStore.

All SQL, schema management, and low-level persistence lives here.
Application code should depend on the port, not on this module directly.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any

from menudigital.defaults import (
    DEFAULT_COLORS,
    DEFAULT_SECTIONS,
    PREDEFINED_ITEMS,
    REGISTRATION_COLORS,
    REGISTRATION_TEMPLATE_ID,
    SEED_PLANS,
    SEED_TABLE_COUNT,
    SEED_TEMPLATES,
)
from menudigital.models import MenuItem, MenuTemplate, Restaurant, Table, User

log = logging.getLogger("menudigital.store")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS subscription_plans (
    id            INTEGER PRIMARY KEY,
    name          TEXT NOT NULL UNIQUE,
    items_limit   INTEGER NOT NULL DEFAULT 0,
    images_limit  INTEGER NOT NULL DEFAULT 0,
    start_date    TEXT,
    end_date      TEXT
);

CREATE TABLE IF NOT EXISTS menu_templates (
    id             INTEGER PRIMARY KEY,
    type           TEXT NOT NULL,
    name           TEXT NOT NULL,
    fields         TEXT,
    default_colors TEXT
);

CREATE TABLE IF NOT EXISTS restaurants (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT NOT NULL,
    logo_url    TEXT,
    colors      TEXT,
    sections    TEXT,
    template_id INTEGER REFERENCES menu_templates(id),
    plan_id     INTEGER REFERENCES subscription_plans(id)
);

CREATE TABLE IF NOT EXISTS users (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    name          TEXT NOT NULL,
    email         TEXT NOT NULL UNIQUE,
    password      TEXT NOT NULL,
    role          TEXT NOT NULL DEFAULT 'free',
    restaurant_id INTEGER REFERENCES restaurants(id)
);

CREATE TABLE IF NOT EXISTS menu_items (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    restaurant_id INTEGER NOT NULL REFERENCES restaurants(id),
    name          TEXT NOT NULL,
    price         REAL NOT NULL DEFAULT 0,
    description   TEXT NOT NULL DEFAULT '',
    category      TEXT NOT NULL DEFAULT '',
    image_url     TEXT NOT NULL DEFAULT ''
);
CREATE INDEX IF NOT EXISTS idx_menu_items_restaurant ON menu_items(restaurant_id);

CREATE TABLE IF NOT EXISTS mesas (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    numero_mesa INTEGER NOT NULL UNIQUE,
    qr_url      TEXT NOT NULL DEFAULT ''
);
"""


def parse_json_safe(raw: Any, default: Any) -> Any:
    """Decode a JSON text column, falling back to *default* when unusable."""
    if raw is None or raw == "" or raw == "[object Object]":
        return default
    if isinstance(raw, (dict, list)):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        log.warning("Unparseable JSON column, using default: %s", e)
        return default


# ---------------------------------------------------------------------------
# SqliteStore
# ---------------------------------------------------------------------------

class SqliteStore:
    """MenuStore backed by a single SQLite file."""

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)
            self._seed(conn)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        pass  # connections are per-call; nothing to tear down

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path))
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        return conn

    def _seed(self, conn: sqlite3.Connection) -> None:
        for plan in SEED_PLANS:
            conn.execute(
                "INSERT OR IGNORE INTO subscription_plans (id, name, items_limit, images_limit) "
                "VALUES (?, ?, ?, ?)",
                (plan["id"], plan["name"], plan["items_limit"], plan["images_limit"]),
            )
        for tpl in SEED_TEMPLATES:
            conn.execute(
                "INSERT OR IGNORE INTO menu_templates (id, type, name, fields, default_colors) "
                "VALUES (?, ?, ?, ?, ?)",
                (tpl["id"], tpl["type"], tpl["name"],
                 json.dumps(tpl["fields"]), json.dumps(tpl["default_colors"])),
            )
        for n in range(1, SEED_TABLE_COUNT + 1):
            conn.execute(
                "INSERT OR IGNORE INTO mesas (numero_mesa, qr_url) VALUES (?, ?)",
                (n, f"/qr/mesa-{n}.png"),
            )

    def ping(self) -> None:
        """Raise if the database is not reachable."""
        with self._connect() as conn:
            conn.execute("SELECT 1").fetchone()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def register_owner(self, name: str, email: str, password_hash: str, role: str) -> User:
        """Create a restaurant, its owner and the starter menu atomically."""
        conn = self._connect()
        try:
            with conn:
                cur = conn.execute(
                    "INSERT INTO restaurants (name, template_id, colors) VALUES (?, ?, ?)",
                    (f"{name}'s Restaurant", REGISTRATION_TEMPLATE_ID,
                     json.dumps(REGISTRATION_COLORS)),
                )
                restaurant_id = cur.lastrowid
                cur = conn.execute(
                    "INSERT INTO users (name, email, password, role, restaurant_id) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (name, email, password_hash, role, restaurant_id),
                )
                user_id = cur.lastrowid
                conn.executemany(
                    "INSERT INTO menu_items (restaurant_id, name, price, description, category, image_url) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    [
                        (restaurant_id, it["name"], it["price"], it.get("description", ""),
                         it["category"], it.get("image_url", ""))
                        for it in PREDEFINED_ITEMS
                    ],
                )
        finally:
            conn.close()
        log.info("Registered user %s with restaurant %s", user_id, restaurant_id)
        return User(id=user_id, name=name, email=email, role=role,
                    restaurant_id=restaurant_id, password_hash=password_hash)

    def get_user_by_email(self, email: str) -> User | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE LOWER(email) = ?", (email.lower(),)
            ).fetchone()
        return _row_to_user(row) if row else None

    def get_user(self, user_id: int) -> User | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return _row_to_user(row) if row else None

    def update_user_role(self, user_id: int, role: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute("UPDATE users SET role = ? WHERE id = ?", (role, user_id))
            return cur.rowcount > 0

    # ------------------------------------------------------------------
    # Restaurants
    # ------------------------------------------------------------------

    def get_restaurant(self, restaurant_id: int) -> Restaurant | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT r.*, p.name AS plan_name, p.items_limit, p.images_limit, "
                "p.start_date, p.end_date "
                "FROM restaurants r LEFT JOIN subscription_plans p ON r.plan_id = p.id "
                "WHERE r.id = ?",
                (restaurant_id,),
            ).fetchone()
        return _row_to_restaurant(row) if row else None

    def update_restaurant(
        self,
        restaurant_id: int,
        *,
        name: str | None,
        colors: dict[str, Any] | None,
        logo_url: str | None,
        sections: dict[str, Any] | None,
        plan_id: int | None,
    ) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE restaurants SET name = COALESCE(?, name), colors = ?, logo_url = ?, "
                "sections = ?, plan_id = ? WHERE id = ?",
                (
                    name,
                    json.dumps(colors) if colors is not None else None,
                    logo_url,
                    json.dumps(sections) if sections is not None else None,
                    plan_id,
                    restaurant_id,
                ),
            )
            return cur.rowcount > 0

    def set_logo_url(self, restaurant_id: int, logo_url: str) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE restaurants SET logo_url = ? WHERE id = ?", (logo_url, restaurant_id)
            )
            return cur.rowcount > 0

    def set_template(self, restaurant_id: int, template_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE restaurants SET template_id = ? WHERE id = ?", (template_id, restaurant_id)
            )
            return cur.rowcount > 0

    def count_restaurants(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM restaurants").fetchone()[0]

    # ------------------------------------------------------------------
    # Menu items
    # ------------------------------------------------------------------

    def list_menu_items(self, restaurant_id: int) -> list[MenuItem]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM menu_items WHERE restaurant_id = ? ORDER BY id", (restaurant_id,)
            ).fetchall()
        return [_row_to_item(r) for r in rows]

    def get_menu_item(self, restaurant_id: int, item_id: int) -> MenuItem | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM menu_items WHERE id = ? AND restaurant_id = ?",
                (item_id, restaurant_id),
            ).fetchone()
        return _row_to_item(row) if row else None

    def add_menu_item(
        self,
        restaurant_id: int,
        *,
        name: str,
        price: float = 0.0,
        description: str = "",
        category: str = "",
        image_url: str = "",
    ) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO menu_items (restaurant_id, name, price, description, category, image_url) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (restaurant_id, name, price, description, category, image_url),
            )
            return cur.lastrowid

    def update_menu_item(self, restaurant_id: int, item_id: int, **fields: Any) -> bool:
        allowed = {"name", "price", "description", "category", "image_url"}
        changes = {k: v for k, v in fields.items() if k in allowed and v is not None}
        if not changes:
            return self.get_menu_item(restaurant_id, item_id) is not None
        assignments = ", ".join(f"{k} = ?" for k in changes)
        params = [*changes.values(), item_id, restaurant_id]
        with self._connect() as conn:
            cur = conn.execute(
                f"UPDATE menu_items SET {assignments} WHERE id = ? AND restaurant_id = ?",
                params,
            )
            return cur.rowcount > 0

    def delete_menu_item(self, restaurant_id: int, item_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "DELETE FROM menu_items WHERE id = ? AND restaurant_id = ?",
                (item_id, restaurant_id),
            )
            return cur.rowcount > 0

    def count_menu_items(self, restaurant_id: int) -> int:
        with self._connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM menu_items WHERE restaurant_id = ?", (restaurant_id,)
            ).fetchone()[0]

    # ------------------------------------------------------------------
    # Templates and tables
    # ------------------------------------------------------------------

    def list_templates(self) -> list[MenuTemplate]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM menu_templates ORDER BY id").fetchall()
        return [_row_to_template(r) for r in rows]

    def list_tables(self) -> list[Table]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, numero_mesa, qr_url FROM mesas ORDER BY numero_mesa"
            ).fetchall()
        return [Table(id=r["id"], numero_mesa=r["numero_mesa"], qr_url=r["qr_url"]) for r in rows]


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        role=row["role"],
        restaurant_id=row["restaurant_id"],
        password_hash=row["password"],
    )


def _row_to_restaurant(row: sqlite3.Row) -> Restaurant:
    keys = row.keys()
    plan = None
    if "plan_name" in keys and row["plan_name"] is not None:
        plan = {
            "plan_name": row["plan_name"],
            "items_limit": row["items_limit"],
            "images_limit": row["images_limit"],
            "start_date": row["start_date"],
            "end_date": row["end_date"],
        }
    return Restaurant(
        id=row["id"],
        name=row["name"],
        logo_url=row["logo_url"],
        colors=parse_json_safe(row["colors"], dict(DEFAULT_COLORS)),
        sections=parse_json_safe(row["sections"], {k: list(v) for k, v in DEFAULT_SECTIONS.items()}),
        template_id=row["template_id"],
        plan_id=row["plan_id"],
        plan=plan,
    )


def _row_to_item(row: sqlite3.Row) -> MenuItem:
    return MenuItem(
        id=row["id"],
        restaurant_id=row["restaurant_id"],
        name=row["name"],
        price=row["price"],
        description=row["description"],
        category=row["category"],
        image_url=row["image_url"],
    )


def _row_to_template(row: sqlite3.Row) -> MenuTemplate:
    return MenuTemplate(
        id=row["id"],
        type=row["type"],
        name=row["name"],
        fields=parse_json_safe(row["fields"], {k: list(v) for k, v in DEFAULT_SECTIONS.items()}),
        default_colors=parse_json_safe(row["default_colors"], dict(DEFAULT_COLORS)),
    )
