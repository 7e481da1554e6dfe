"""
Template Loader - Static runtime files shipped as package data
"""

import re
import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / 'templates'

_PLACEHOLDER = re.compile(r'\{(\w+)\}')


@lru_cache(maxsize=None)
def load_template(filename: str) -> str:
    """Load a template file from the templates directory."""
    try:
        path = TEMPLATES_DIR / filename
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except Exception as e:
        logger.error(f"Failed to load template {filename}: {e}")
        raise


def render_template(filename: str, **params) -> str:
    """
    Substitute {key} placeholders in a template.

    Only keys passed in params are replaced, in a single pass, so braces
    belonging to TypeScript or JSON and braces inside substituted values
    are left alone.
    """
    template = load_template(filename)
    if not params:
        return template

    def replace(match):
        key = match.group(1)
        return str(params[key]) if key in params else match.group(0)

    return _PLACEHOLDER.sub(replace, template)
