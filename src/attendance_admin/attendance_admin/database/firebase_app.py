from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import credentials, db


@dataclass
class FirebaseConfig:
    database_url: str
    project_id: Optional[str] = None
    credentials_path: Optional[str] = None
    http_timeout: Optional[float] = None
    app_name: str = "attendance-admin"


def firebase_config_from_settings(firebase_config: dict) -> FirebaseConfig:
    timeout = firebase_config.get("http_timeout")
    return FirebaseConfig(
        database_url=str(firebase_config["database_url"]),
        project_id=firebase_config.get("project_id") or None,
        credentials_path=firebase_config.get("credentials_path") or None,
        http_timeout=float(timeout) if timeout not in (None, "") else None,
        app_name=str(firebase_config.get("app_name") or "attendance-admin"),
    )


class FirebaseConnection:
    """Singleton-like holder of the firebase-admin app for the Realtime Database.

    The app is initialized lazily on first use so building the container does
    not require credentials until a backend call is made.
    """

    _instance: Optional["FirebaseConnection"] = None

    def __init__(self, config: FirebaseConfig):
        self._config = config
        self._app = None

    @classmethod
    def get_instance(cls, config: FirebaseConfig) -> "FirebaseConnection":
        if cls._instance is None:
            cls._instance = FirebaseConnection(config)
        return cls._instance

    def app(self):
        if self._app is None:
            try:
                self._app = firebase_admin.get_app(self._config.app_name)
            except ValueError:
                self._app = firebase_admin.initialize_app(
                    self._credential(), self._options(), name=self._config.app_name
                )
        return self._app

    def root(self) -> db.Reference:
        return db.reference("/", app=self.app())

    def _credential(self):
        if self._config.credentials_path:
            return credentials.Certificate(self._config.credentials_path)
        return credentials.ApplicationDefault()

    def _options(self) -> dict:
        options = {"databaseURL": self._config.database_url}
        if self._config.project_id:
            options["projectId"] = self._config.project_id
        if self._config.http_timeout is not None:
            options["httpTimeout"] = self._config.http_timeout
        return options
