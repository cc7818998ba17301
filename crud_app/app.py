"""Main application entry point"""

from pathlib import Path
from typing import Optional, Union

from .auth.session_manager import SessionManager
from .services.catalog_service import CatalogService
from .services.store import Store
from .storage.local_storage import JsonFileStorage, LocalStorage, MemoryStorage
from .utils.config import Settings, load_settings
from .utils.logger import get_logger, setup_logger

logger = get_logger(__name__)


class CrudApp:
    """Owns the single Store and SessionManager of a running process"""

    def __init__(self, settings: Optional[Settings] = None, storage: Optional[LocalStorage] = None):
        self.settings = settings or Settings()
        self._storage_override = storage
        self.storage: Optional[LocalStorage] = None
        self.store: Optional[Store] = None
        self.sessions: Optional[SessionManager] = None
        self.catalog: Optional[CatalogService] = None

    def _build_storage(self) -> LocalStorage:
        if self._storage_override is not None:
            return self._storage_override
        if self.settings.storage.backend == "memory":
            return MemoryStorage()
        return JsonFileStorage(self.settings.storage.file_path)

    def initialize(self, configure_logging: bool = True) -> "CrudApp":
        """Wire storage, store and session manager, then resume any saved session"""
        if configure_logging:
            log = self.settings.logging
            setup_logger(
                log_level=log.level,
                log_format=log.format,
                file_path=log.file_path,
                max_bytes=log.max_bytes,
                backup_count=log.backup_count,
            )

        logger.info(
            "Initializing application",
            app_name=self.settings.app.name,
            version=self.settings.app.version,
            environment=self.settings.app.environment,
            storage_backend=self.settings.storage.backend,
        )

        storage_settings = self.settings.storage
        auth_settings = self.settings.auth

        self.storage = self._build_storage()
        self.store = Store(
            self.storage,
            database_key=storage_settings.database_key,
            session_expiry_hours=auth_settings.session_expiry_hours,
            bcrypt_rounds=auth_settings.bcrypt_rounds,
        )
        self.sessions = SessionManager(
            self.store,
            self.storage,
            token_key=storage_settings.token_key,
            user_id_key=storage_settings.user_id_key,
            min_password_length=auth_settings.min_password_length,
        )
        self.catalog = CatalogService(self.store, self.sessions)

        resumed = self.sessions.resume_session()
        logger.info(
            "Application ready",
            users=self.store.count_users(),
            products=self.store.count_products(),
            session_resumed=resumed,
        )
        return self


def create_app(
    config_path: Optional[Union[str, Path]] = None,
    storage: Optional[LocalStorage] = None,
    configure_logging: bool = True,
) -> CrudApp:
    """Load settings and return an initialized application"""
    settings = load_settings(config_path)
    return CrudApp(settings, storage=storage).initialize(configure_logging=configure_logging)
