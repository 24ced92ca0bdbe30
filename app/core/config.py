import os

def get_secret(secret_name: str) -> str | None:
    secret_path = f'/run/secrets/{secret_name}'
    try:
        with open(secret_path, 'r', encoding='utf-8') as secret_file:
            return secret_file.read().strip()
    except IOError:
        return os.getenv(secret_name)


DB_PASSWORD = get_secret('db_password')
SECRET_KEY = get_secret('secret_key')

POSTGRES_DB = os.getenv("POSTGRES_DB")
POSTGRES_USER = os.getenv("POSTGRES_USER")
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
REDIS_URL = os.getenv("REDIS_URL")

if POSTGRES_USER and DB_PASSWORD and POSTGRES_DB:
    DATABASE_URL = f"postgresql+asyncpg://{POSTGRES_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{POSTGRES_DB}"
else:
    raise ValueError("Can't build DATABASE_URL")

ALGORITHM = "HS256"
JWT_ISSUER = "inventory-api"
JWT_AUDIENCE = "inventory-admin"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEFAULT_TIME_ZONE = os.getenv("DEFAULT_TIME_ZONE", "UTC")

AUDIT_STREAM = os.getenv("AUDIT_STREAM", "audit:inventory")
