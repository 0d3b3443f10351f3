import os

# environment defaults; secrets.json and CLI flags override them (see settings.py)
DB_URL = os.getenv("DB_URL", "sqlite:///./pickem.db")

EDITOR_PASSWORD = os.getenv("EDITOR_PASSWORD", "editor")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin")

JWT_SECRET = os.getenv("JWT_SECRET", "pickem-dev-secret")
JWT_ALG = "HS256"

CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")

# Upper bound for bracket propagation passes (guards against cyclic links).
BRACKET_MAX_PASSES = int(os.getenv("BRACKET_MAX_PASSES", "32"))
