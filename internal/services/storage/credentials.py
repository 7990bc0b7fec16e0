"""
Credential sources for the object store

Credentials are looked up on every signing call and never cached, so a
rotated key in the environment is picked up by the next request.
"""

import os
from abc import ABC, abstractmethod
from typing import NamedTuple, Optional

from .exceptions import StorageConfigError

ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"


class Credentials(NamedTuple):
    accessKeyId: str
    secretAccessKey: str


class AbstractCredentialSource(ABC):
    """Supplies object store credentials at call time."""

    @abstractmethod
    def getCredentials(self) -> Credentials:
        """
        Return the current credentials.

        Raises:
            StorageConfigError: If any required value is missing
        """
        pass


class EnvCredentialSource(AbstractCredentialSource):
    """Reads AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY from the process environment."""

    def __init__(self, accessKeyEnv: str = ACCESS_KEY_ENV, secretKeyEnv: str = SECRET_KEY_ENV):
        self.accessKeyEnv = accessKeyEnv
        self.secretKeyEnv = secretKeyEnv

    def getCredentials(self) -> Credentials:
        accessKeyId = os.getenv(self.accessKeyEnv, "")
        if not accessKeyId:
            raise StorageConfigError(f"Missing {self.accessKeyEnv} environment variable")

        secretAccessKey = os.getenv(self.secretKeyEnv, "")
        if not secretAccessKey:
            raise StorageConfigError(f"Missing {self.secretKeyEnv} environment variable")

        return Credentials(accessKeyId, secretAccessKey)


class StaticCredentialSource(AbstractCredentialSource):
    """Fixed credentials, typically taken from the [storage.s3] config section."""

    def __init__(self, accessKeyId: Optional[str], secretAccessKey: Optional[str]):
        self._accessKeyId = accessKeyId or ""
        self._secretAccessKey = secretAccessKey or ""

    def getCredentials(self) -> Credentials:
        if not self._accessKeyId:
            raise StorageConfigError("Missing object store access key id")
        if not self._secretAccessKey:
            raise StorageConfigError("Missing object store secret access key")
        return Credentials(self._accessKeyId, self._secretAccessKey)
