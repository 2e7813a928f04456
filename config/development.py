import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# "firebase" (Realtime Database) or "mysql"
STORE_BACKEND = os.getenv("STORE_BACKEND", "firebase").lower()

FIREBASE_CONFIG = {
    "database_url": os.getenv("FIREBASE_DATABASE_URL", "http://localhost:9000/?ns=attendance-admin-dev"),
    "project_id": os.getenv("FIREBASE_PROJECT_ID", "attendance-admin-dev"),
    "credentials_path": os.getenv("FIREBASE_CREDENTIALS", ""),
    "http_timeout": os.getenv("FIREBASE_HTTP_TIMEOUT", "30"),
}

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_admin"),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

DEBUG = True

# If enabled (mysql backend), the records table is created on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(32 * 1024 * 1024)))
