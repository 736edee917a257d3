# core/config_validator.py

from typing import List
from core.config import settings, Settings
from core.logging_config import logger
from core.roles import load_role_catalog


def validate_required_config(config: Settings = settings) -> List[str]:
    """
    Validate that all required settings are present and usable.
    Returns list of problems.
    """
    missing = []

    # Required for role lookups
    if not config.SUPABASE_URL:
        missing.append("SUPABASE_URL")
    if not config.SUPABASE_SERVICE_ROLE_KEY:
        missing.append("SUPABASE_SERVICE_ROLE_KEY")

    if config.ROLE_CACHE_TTL_SECONDS <= 0:
        missing.append("ROLE_CACHE_TTL_SECONDS (must be positive)")
    if config.ROLE_LOOKUP_TIMEOUT_SECONDS <= 0:
        missing.append("ROLE_LOOKUP_TIMEOUT_SECONDS (must be positive)")
    if config.AUDIT_BACKEND.lower() not in ("log", "supabase"):
        missing.append("AUDIT_BACKEND (must be 'log' or 'supabase')")

    return missing


def validate_optional_config(config: Settings = settings) -> List[str]:
    """
    Validate optional but recommended configuration.
    Returns list of warnings.
    """
    warnings = []

    if not config.SUPABASE_ANON_KEY:
        warnings.append("SUPABASE_ANON_KEY (optional but recommended)")
    if not config.ROLE_CATALOG_PATH:
        warnings.append("ROLE_CATALOG_PATH (using built-in role catalog)")

    return warnings


def validate_config_on_startup(config: Settings = settings):
    """
    Validate configuration on application startup.
    Raises RuntimeError if critical config is missing or the role catalog
    does not load. Logs warnings for optional config.
    """
    missing_required = validate_required_config(config)
    missing_optional = validate_optional_config(config)

    if missing_required:
        error_msg = f"Missing or invalid required configuration: {', '.join(missing_required)}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    try:
        load_role_catalog(config.ROLE_CATALOG_PATH)
    except ValueError as e:
        logger.error(f"Role catalog invalid: {e}")
        raise RuntimeError(f"Role catalog invalid: {e}") from e

    for warning in missing_optional:
        logger.warning(f"Optional configuration missing: {warning}")

    logger.info("Configuration validation passed")
