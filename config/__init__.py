"""Configuration module for managing server and client settings."""

from config.settings import (
    ClientConfig,
    ServerConfig,
    Config,
)

__all__ = [
    'ClientConfig',
    'ServerConfig',
    'Config',
]
