"""
Configuration Management
"""

import os
import logging
from pathlib import Path
from typing import Dict, Any, Optional

import yaml

logger = logging.getLogger(__name__)

_config_cache: Optional[Dict[str, Any]] = None

DEFAULT_CONFIG_FILE = 'config/forge.yaml'


def _defaults() -> Dict[str, Any]:
    return {
        'gateway': {
            'base_url': 'https://ai.gateway.lovable.dev/v1',
            'chat_model': 'google/gemini-2.0-flash',
            'compliance_model': 'google/gemini-2.0-flash',
            'timeout_seconds': 60.0,
        },
        'generator': {
            'package_version': '1.0.0',
            'agent_temperature': 0.7,
            'agent_max_tokens': 4096,
        },
        'agents': {
            'custom_model': 'google/gemini-3-flash-preview',
        },
        'storage': {
            'mock_db': 'storage/mock_db.json',
        },
    }


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(config_file: str = None) -> Dict[str, Any]:
    """Load configuration defaults and merge the YAML file over them."""
    global _config_cache

    config = _defaults()
    path = Path(config_file or os.getenv('AIOS_FORGE_CONFIG', DEFAULT_CONFIG_FILE))

    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                file_config = yaml.safe_load(f)
            if file_config:
                _merge(config, file_config)
            logger.debug(f"Loaded configuration from {path}")
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not load config file {path}: {e}")

    _config_cache = config
    return config


def get_config() -> Dict[str, Any]:
    """Get the current configuration."""
    global _config_cache
    if _config_cache is None:
        load_config()
    return _config_cache or {}


def get_gateway_config() -> Dict[str, Any]:
    """Get LLM gateway configuration."""
    return get_config().get('gateway', {})


def get_generator_config() -> Dict[str, Any]:
    """Get package generator configuration."""
    return get_config().get('generator', {})


def get_custom_agent_model() -> str:
    return get_config().get('agents', {}).get('custom_model', 'google/gemini-3-flash-preview')
