"""
Configuration Management

Simple utility for loading and validating environment configuration.
"""

import os
from typing import Optional
from dotenv import load_dotenv


def load_config(env_path: Optional[str] = None) -> bool:
    """
    Load environment configuration from .env file.

    Args:
        env_path: Optional path to .env file. If None, searches in current directory.

    Returns:
        bool: True if .env file was found and loaded, False otherwise
    """
    if env_path:
        return load_dotenv(env_path)
    return load_dotenv()


def get_database_config() -> dict:
    """
    Get the forms database configuration.

    Returns:
        dict: psycopg2 connection keyword arguments

    Raises:
        ValueError: If required configuration is missing
    """
    config = {
        "host": os.getenv("FORMSDB_HOST"),
        "port": os.getenv("FORMSDB_PORT", "5432"),
        "database": os.getenv("FORMSDB_NAME"),
        "user": os.getenv("FORMSDB_USER"),
        "password": os.getenv("FORMSDB_PASS"),
    }

    missing = [k for k, v in config.items() if not v]
    if missing:
        raise ValueError(
            f"Missing forms database configuration: {missing}. "
            f"Please check your .env file."
        )

    config["sslmode"] = os.getenv("FORMSDB_SSLMODE", "prefer")
    return config


def get_pool_config() -> dict:
    """
    Connection pool sizing for the forms database.

    Returns:
        dict: min_connections and max_connections
    """
    min_connections = int(os.getenv("FORMSDB_POOL_MIN", "1"))
    max_connections = int(os.getenv("FORMSDB_POOL_MAX", "10"))
    if max_connections < min_connections:
        raise ValueError(
            f"FORMSDB_POOL_MAX ({max_connections}) must be at least FORMSDB_POOL_MIN ({min_connections})"
        )
    return {"min_connections": min_connections, "max_connections": max_connections}


def get_app_config() -> dict:
    """
    Get application configuration settings.

    Returns:
        dict: Application settings
    """
    return {
        "timezone": os.getenv("TIMEZONE", "Europe/Copenhagen"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "chart_cache_ttl_seconds": int(os.getenv("CHART_CACHE_TTL_SECONDS", "30")),
        "default_shift_start": os.getenv("DEFAULT_SHIFT_START", "08:00"),
        "default_shift_end": os.getenv("DEFAULT_SHIFT_END", "16:00"),
        "default_target_parts": int(os.getenv("DEFAULT_TARGET_PARTS", "100")),
        "default_cycle_time_seconds": float(os.getenv("DEFAULT_CYCLE_TIME_SECONDS", "18")),
    }


def validate_config() -> list:
    """
    Validate all required configuration is present.

    Returns:
        list: List of configuration problems (empty if all valid)
    """
    problems = []

    try:
        get_database_config()
    except ValueError as e:
        problems.append(f"FORMS DB: {str(e)}")

    try:
        get_pool_config()
    except ValueError as e:
        problems.append(f"POOL: {str(e)}")

    try:
        get_app_config()
    except ValueError as e:
        problems.append(f"APP: {str(e)}")

    return problems
