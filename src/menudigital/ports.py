"""Storage port interface for menudigital.

Defines the Protocol any persistence backend must implement.  The REST
routers depend on ``MenuStore``; the notification hub never touches storage.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from menudigital.models import MenuItem, MenuTemplate, Restaurant, Table, User


@runtime_checkable
class MenuStore(Protocol):
    def ping(self) -> None: ...
    def close(self) -> None: ...

    # Users
    def register_owner(self, name: str, email: str, password_hash: str, role: str) -> User: ...
    def get_user_by_email(self, email: str) -> User | None: ...
    def get_user(self, user_id: int) -> User | None: ...
    def update_user_role(self, user_id: int, role: str) -> bool: ...

    # Restaurants
    def get_restaurant(self, restaurant_id: int) -> Restaurant | None: ...
    def update_restaurant(
        self,
        restaurant_id: int,
        *,
        name: str | None,
        colors: dict[str, Any] | None,
        logo_url: str | None,
        sections: dict[str, Any] | None,
        plan_id: int | None,
    ) -> bool: ...
    def set_logo_url(self, restaurant_id: int, logo_url: str) -> bool: ...
    def set_template(self, restaurant_id: int, template_id: int) -> bool: ...
    def count_restaurants(self) -> int: ...

    # Menu items
    def list_menu_items(self, restaurant_id: int) -> list[MenuItem]: ...
    def get_menu_item(self, restaurant_id: int, item_id: int) -> MenuItem | None: ...
    def add_menu_item(
        self,
        restaurant_id: int,
        *,
        name: str,
        price: float = 0.0,
        description: str = "",
        category: str = "",
        image_url: str = "",
    ) -> int: ...
    def update_menu_item(self, restaurant_id: int, item_id: int, **fields: Any) -> bool: ...
    def delete_menu_item(self, restaurant_id: int, item_id: int) -> bool: ...
    def count_menu_items(self, restaurant_id: int) -> int: ...

    # Templates and tables
    def list_templates(self) -> list[MenuTemplate]: ...
    def list_tables(self) -> list[Table]: ...
