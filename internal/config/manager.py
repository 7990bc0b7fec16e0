"""
Configuration management for the storage layer.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import tomli

import lib.utils as utils

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Configuration file is missing or cannot be parsed."""

    pass


def replaceMatchToEnv(match: re.Match[str]) -> str:
    """Replace environment variable placeholders with actual values.

    Args:
        match: A regex match object containing the environment variable name.

    Returns:
        str: The value of the environment variable or the original placeholder
             if the variable is not set.
    """
    key = match.group(1)
    return os.getenv(key, match.group(0))


def substituteEnvVars(value: Any) -> Any:
    """Recursively substitute environment variable placeholders in configuration values.

    Placeholders have the form ${VAR_NAME}. Strings, dictionaries and lists are
    processed, every other type is returned unchanged.
    """
    if isinstance(value, str):
        return re.sub(r"\$\{([A-Za-z_][A-Za-z0-9_-]*)\}", replaceMatchToEnv, value)
    elif isinstance(value, dict):
        return {k: substituteEnvVars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [substituteEnvVars(item) for item in value]
    return value


class ConfigManager:
    """Loads TOML configuration and exposes its sections."""

    def __init__(
        self, configPath: str = "config.toml", configDirs: Optional[List[str]] = None, dotEnvFile: str = ".env"
    ):
        """Initialize ConfigManager with config file path and optional config directories."""
        self.config_path = configPath
        self.config_dirs = configDirs or []
        utils.load_dotenv(path=dotEnvFile)
        self.config = substituteEnvVars(self._loadConfig())

    def _findTomlFilesRecursive(self, directory: str) -> List[Path]:
        """Recursively find all .toml files in a directory."""
        tomlFiles: List[Path] = []
        dirPath = Path(directory)

        if not dirPath.is_dir():
            logger.warning(f"Config directory {directory} does not exist or is not a directory, skipping")
            return tomlFiles

        for tomlFile in dirPath.rglob("*.toml"):
            if tomlFile.is_file():
                tomlFiles.append(tomlFile)
                logger.debug(f"Found config file: {tomlFile}")

        return sorted(tomlFiles)

    def _mergeConfigs(self, baseConfig: Dict[str, Any], newConfig: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge two configuration dictionaries, newConfig wins."""
        merged = baseConfig.copy()

        for key, value in newConfig.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = self._mergeConfigs(merged[key], value)
            else:
                merged[key] = value

        return merged

    def _loadTomlFile(self, path: Path) -> Dict[str, Any]:
        try:
            with open(path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    def _loadConfig(self) -> Dict[str, Any]:
        """
        Load configuration from the main TOML file and optional config directories.

        Files found in config directories are merged over the main file in
        sorted path order.

        Raises:
            ConfigError: If the main file is missing and no config directories are given,
                         or if any file is not valid TOML
        """
        configFile = Path(self.config_path)
        hasConfigFile = configFile.exists()
        if not hasConfigFile and not self.config_dirs:
            raise ConfigError(f"Configuration file {self.config_path} not found")

        config: Dict[str, Any] = {}
        if hasConfigFile:
            config = self._loadTomlFile(configFile)
            logger.info(f"Loaded main config from {self.config_path}")

        for configDir in self.config_dirs:
            tomlFiles = self._findTomlFilesRecursive(configDir)
            logger.info(f"Found {len(tomlFiles)} .toml files in {configDir}")

            for tomlFile in tomlFiles:
                config = self._mergeConfigs(config, self._loadTomlFile(tomlFile))
                logger.info(f"Merged config from {tomlFile}")

        logger.info("Configuration loaded")
        return config

    def get(self, key: str, default=None) -> Any:
        """Get configuration value by key."""
        return self.config.get(key, default)

    def getLoggingConfig(self) -> Dict[str, Any]:
        """Get logging-specific configuration."""
        return self.get("logging", {})

    def getStorageConfig(self) -> Dict[str, Any]:
        """
        Get storage service configuration.

        Structure:
        - type: Backend type ("fs" or "s3")
        - fs: Filesystem backend configuration (if type is "fs")
            - root: Root directory for stored objects
        - s3: Object store backend configuration (if type is "s3")
            - bucket-endpoint: Full bucket URL
            - region: Signing region (optional, "us-east-1" by default)
            - key-id / key-secret: Credentials (optional, taken from
              AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY at call time otherwise)
            - request-timeout: Per-request timeout in seconds (optional)

        Returns:
            Dict[str, Any]: Storage configuration, empty dict if the section is absent.

        Example:
            {
                "type": "s3",
                "s3": {
                    "bucket-endpoint": "https://mongotool.s3.amazonaws.com",
                    "region": "eu-west-1"
                }
            }
        """
        return self.get("storage", {})
