"""Single source of truth for shared constants and configuration defaults.

Every magic number, threshold, or default that appears in more than one module
is defined here.  Constants that are truly local to one module stay there.
"""

from __future__ import annotations

from typing import Any


# ---------------------------------------------------------------------------
# Notification channel
# ---------------------------------------------------------------------------

RECONNECT_DELAY_SECONDS = 5.0
MAX_RECONNECT_ATTEMPTS = 5
KEEPALIVE_INTERVAL_SECONDS = 30.0
SEND_TIMEOUT_SECONDS = 10.0         # one stalled client must not hold up a broadcast

CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001           # hub shutdown
CLOSE_SERVICE_RESTART = 1012      # hub no longer accepting
CLOSE_ORIGIN_REJECTED = 4003      # Origin Gate refusal (HTTP 403 on upgrade)

# ---------------------------------------------------------------------------
# Origins selected by deployment environment
# ---------------------------------------------------------------------------

ENV_DEVELOPMENT = "development"
ENV_PRODUCTION = "production"

# Entries prefixed with "re:" are regular expressions (full match).
DEFAULT_ALLOWED_ORIGINS: dict[str, list[str]] = {
    ENV_PRODUCTION: [
        "https://menu-digital-bdhg.vercel.app",
        r"re:https://[\w-]+\.vercel\.app",
    ],
    ENV_DEVELOPMENT: [
        "http://localhost:5173",
        "http://192.168.18.26:5173",
    ],
}

# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

JWT_ALGORITHM = "HS256"
INSECURE_JWT_SECRET = "secret_key"     # development fallback only
JWT_TTL_SECONDS = 3600
PASSWORD_HASH_ITERATIONS = 240_000
DEFAULT_ROLE = "free"
PLANS = ("free", "basic", "premium")

# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

LOGO_MAX_BYTES = 5 * 1024 * 1024
MENU_FILE_MAX_BYTES = 10 * 1024 * 1024
LOGO_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png"})
MENU_FILE_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gltf", ".glb"})
UPLOADS_URL_PREFIX = "/uploads"

# ---------------------------------------------------------------------------
# Menu defaults
# ---------------------------------------------------------------------------

DEFAULT_COLORS: dict[str, str] = {"primary": "#FF9800", "secondary": "#4CAF50"}
DEFAULT_SECTIONS: dict[str, list[Any]] = {
    "Platos Principales": [],
    "Postres": [],
    "Bebidas": [],
}

# New restaurants start on the rotisserie template with its palette.
REGISTRATION_TEMPLATE_ID = 2
REGISTRATION_COLORS: dict[str, str] = {"primary": "#F28C38", "secondary": "#1A1A1A"}

PREDEFINED_ITEMS: list[dict[str, Any]] = [
    {"category": "Entradas", "name": "Salchipapas Especial", "price": 18,
     "description": "Papas fritas con salchicha, queso y salsas"},
    {"category": "Entradas", "name": "Anticuchos de Corazón", "price": 25,
     "description": "Servidos con papas doradas y ají especial"},
    {"category": "Entradas", "name": "Choclo con Queso", "price": 15,
     "description": "Choclo tierno acompañado de queso serrano"},
    {"category": "Platos Principales", "name": "Pollo a la Brasa (1/4 con papas y ensalada)", "price": 22},
    {"category": "Platos Principales", "name": "Pollo a la Brasa (1/2 con papas y ensalada)", "price": 40},
    {"category": "Platos Principales", "name": "Pollo Entero + Papas + Ensalada + Gaseosa 1.5L", "price": 78},
    {"category": "Acompañamientos", "name": "Papas fritas adicionales", "price": 10},
    {"category": "Acompañamientos", "name": "Ensalada fresca", "price": 8},
    {"category": "Acompañamientos", "name": "Arroz chaufa de pollo", "price": 18},
    {"category": "Postres", "name": "Crema Volteada", "price": 12},
    {"category": "Postres", "name": "Pie de Limón", "price": 14},
    {"category": "Bebidas", "name": "Chicha Morada 1 vaso", "price": 10},
    {"category": "Bebidas", "name": "Gaseosa personal", "price": 8},
    {"category": "Bebidas", "name": "Cerveza 620ml", "price": 18},
]

SEED_TEMPLATES: list[dict[str, Any]] = [
    {"id": 1, "type": "classic", "name": "Clásico",
     "fields": DEFAULT_SECTIONS, "default_colors": DEFAULT_COLORS},
    {"id": 2, "type": "polleria", "name": "Pollería",
     "fields": {"Entradas": [], "Platos Principales": [], "Acompañamientos": [],
                "Postres": [], "Bebidas": []},
     "default_colors": REGISTRATION_COLORS},
    {"id": 3, "type": "3d", "name": "Vitrina 3D",
     "fields": DEFAULT_SECTIONS, "default_colors": {"primary": "#212121", "secondary": "#FFC107"}},
]

SEED_PLANS: list[dict[str, Any]] = [
    {"id": 1, "name": "free", "items_limit": 20, "images_limit": 5},
    {"id": 2, "name": "basic", "items_limit": 100, "images_limit": 50},
    {"id": 3, "name": "premium", "items_limit": 1000, "images_limit": 1000},
]

SEED_TABLE_COUNT = 10
