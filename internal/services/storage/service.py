"""
Storage service: Singleton service for object storage operations

This module provides a singleton service that manages object storage operations
through pluggable backend implementations (filesystem, S3).
"""

import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Union

from .backends.abstract import AbstractStorageBackend, WalkFunc
from .backends.filesystem import FSStorageBackend
from .backends.s3 import S3StorageBackend
from .credentials import AbstractCredentialSource, EnvCredentialSource, StaticCredentialSource
from .exceptions import StorageConfigError, StorageError
from .signer import DEFAULT_REGION, RequestSigner

if TYPE_CHECKING:
    from internal.config.manager import ConfigManager

logger = logging.getLogger(__name__)


class StorageService:
    """
    Singleton service for object storage operations.

    The backend is configured once through injectConfig and then used for
    every save, fetch and walk call.

    Supported backends:
    - fs: Filesystem-based storage
    - s3: AWS S3 or S3-compatible storage

    Usage:
        configManager = ConfigManager("config.toml")
        initLogging(configManager.getLoggingConfig())

        storage = StorageService.getInstance()
        storage.injectConfig(configManager)

        with storage.save("backups/db.bson") as writer:
            writer.write(data)

        with storage.fetch("backups/db.bson") as stream:
            data = stream.read()

        storage.walk("backups", lambda key, err: print(key))

    Thread Safety:
        The singleton instance creation is thread-safe using RLock.
        Individual backend operations depend on backend implementation.
    """

    _instance: Union["StorageService", None] = None
    _lock = threading.RLock()

    def __new__(cls) -> "StorageService":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
            return cls._instance

    def __init__(self):
        if not hasattr(self, "initialized"):
            self.backend: AbstractStorageBackend | None = None
            self.initialized = False
            logger.info("StorageService created, awaiting configuration")

    @classmethod
    def getInstance(cls) -> "StorageService":
        """Get singleton instance."""
        return cls()

    @staticmethod
    def _createS3Backend(s3Config: Dict[str, Any]) -> S3StorageBackend:
        bucketEndpoint = s3Config.get("bucket-endpoint")
        if not bucketEndpoint:
            raise StorageConfigError("S3 configuration missing required parameter: bucket-endpoint")

        credentialSource: AbstractCredentialSource
        if s3Config.get("key-id") or s3Config.get("key-secret"):
            credentialSource = StaticCredentialSource(s3Config.get("key-id"), s3Config.get("key-secret"))
        else:
            credentialSource = EnvCredentialSource()

        signer = RequestSigner(credentialSource, region=s3Config.get("region") or DEFAULT_REGION)
        return S3StorageBackend(bucketEndpoint, signer, requestTimeout=s3Config.get("request-timeout"))

    def _replaceBackend(self, backend: AbstractStorageBackend) -> None:
        """Install a new backend, closing the previous one if it holds resources."""
        previous = self.backend
        self.backend = backend
        if previous is None or previous is backend:
            return

        closeMethod = getattr(previous, "close", None)
        if callable(closeMethod):
            closeMethod()
            logger.debug(f"Closed previous {type(previous).__name__}")

    def injectConfig(self, configManager: "ConfigManager") -> None:
        """
        Initialize service with configuration from ConfigManager.

        Args:
            configManager: The configuration manager containing storage settings

        Raises:
            StorageConfigError: If configuration is invalid or backend creation fails

        Configuration format:
            {
                "type": "fs",  # or "s3"
                "fs": {"root": "./backups"},
                "s3": {
                    "bucket-endpoint": "https://mongotool.s3.amazonaws.com",
                    "region": "us-east-1",
                    "key-id": "...",      # optional, AWS_ACCESS_KEY_ID otherwise
                    "key-secret": "...",  # optional, AWS_SECRET_ACCESS_KEY otherwise
                    "request-timeout": 60 # optional, no timeout otherwise
                }
            }
        """
        try:
            config = configManager.getStorageConfig()

            if not config:
                raise StorageConfigError("Storage configuration is missing")

            storageType = config.get("type")
            if not storageType:
                raise StorageConfigError("Storage type is not specified in configuration")

            if storageType == "fs":
                fsConfig = config.get("fs")
                if not fsConfig:
                    raise StorageConfigError("Filesystem storage configuration is missing")

                root = fsConfig.get("root")
                if not root:
                    raise StorageConfigError("Filesystem root is not specified")

                self._replaceBackend(FSStorageBackend(root))
                logger.info(f"Initialized FSStorageBackend with root: {root}")

            elif storageType == "s3":
                s3Config = config.get("s3")
                if not s3Config:
                    raise StorageConfigError("S3 storage configuration is missing")

                s3Backend = self._createS3Backend(s3Config)
                self._replaceBackend(s3Backend)
                logger.info(f"Initialized S3StorageBackend with bucket endpoint: {s3Backend.bucketEndpoint}")

            else:
                raise StorageConfigError(f"Unknown storage type: {storageType}")

            self.initialized = True
            logger.info(f"StorageService initialized with {storageType} backend")

        except StorageConfigError:
            raise
        except StorageError as e:
            raise StorageConfigError(f"Failed to initialize storage service: {e}") from e

    def _ensureInitialized(self) -> AbstractStorageBackend:
        """
        Ensure the service is initialized before operations.

        Raises:
            StorageConfigError: If service is not initialized
        """
        if not self.initialized or self.backend is None:
            raise StorageConfigError("StorageService is not initialized. Call injectConfig() first")
        return self.backend

    def save(self, path: str) -> Any:
        """
        Open an object for writing; it is stored when the writer is closed.

        Raises:
            StorageConfigError: If service is not initialized or credentials are missing
            StorageError: If the backend fails
        """
        backend = self._ensureInitialized()
        writer = backend.save(path)
        logger.debug(f"Opened object for writing: {path}")
        return writer

    def fetch(self, path: str) -> Any:
        """
        Open an object for reading. The caller must close what is returned.

        Raises:
            StorageConfigError: If service is not initialized or credentials are missing
            StorageError: If the backend fails
        """
        backend = self._ensureInitialized()
        result = backend.fetch(path)
        logger.debug(f"Opened object for reading: {path}")
        return result

    def walk(self, prefix: str, visit: WalkFunc) -> None:
        """
        Visit every key under a prefix.

        Raises:
            StorageConfigError: If service is not initialized or credentials are missing
            StorageError: If the backend fails
        """
        backend = self._ensureInitialized()
        backend.walk(prefix, visit)
        logger.debug(f"Walked prefix: '{prefix}'")
