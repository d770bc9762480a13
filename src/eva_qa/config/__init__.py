"""
Configuration module - Centralized settings management.

This module provides type-safe configuration management using Pydantic,
supporting environment variables, YAML files, and CLI arguments.

Usage:
    from eva_qa.config import create_config, load_config

    settings = create_config(base_url="http://localhost:5173")
    settings = load_config(config_path="eva-qa.yaml", exploration={"max_depth": 3})

Environment Variables:
    EVA_QA__BASE_URL=http://localhost:5173
    EVA_QA__EXPLORATION__MAX_STATES=200
    EVA_QA__IDENTITY__SENSITIVITY=low
"""

from eva_qa.config.settings import (
    Settings,
    ExplorationSettings,
    IdentitySettings,
    DiscoverySettings,
    ResponsiveValidatorSettings,
    AccessibilityValidatorSettings,
    ValidatorSettings,
    ActionSchema,
    OutputSettings,
    LoggingSettings,
)
from eva_qa.config.loader import ConfigLoader, load_config, create_config

__all__ = [
    "Settings",
    "ExplorationSettings",
    "IdentitySettings",
    "DiscoverySettings",
    "ResponsiveValidatorSettings",
    "AccessibilityValidatorSettings",
    "ValidatorSettings",
    "ActionSchema",
    "OutputSettings",
    "LoggingSettings",
    "ConfigLoader",
    "load_config",
    "create_config",
]
