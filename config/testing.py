import os

SECRET_KEY = "test-secret"

STORE_BACKEND = os.getenv("STORE_BACKEND", "firebase").lower()

FIREBASE_CONFIG = {
    "database_url": os.getenv("FIREBASE_DATABASE_URL", "http://localhost:9000/?ns=attendance-admin-test"),
    "project_id": "attendance-admin-test",
    "credentials_path": "",
    "http_timeout": "5",
}

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_admin_test"),
}

LOG_LEVEL = "WARNING"

DEBUG = False
TESTING = True

AUTO_INIT_DB = False

MAX_UPLOAD_BYTES = 8 * 1024 * 1024
