"""Active check-in configuration per company."""
from typing import Any, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from app.core.cache import TTLCache, get_or_fetch, global_cache
from app.core.config import settings
from app.db.models import Company
from app.engine import CheckInConfig, InvalidConfigError, load_config

logger = structlog.get_logger(__name__)


def config_cache_key(company_id: int) -> str:
    return f"company_config:{company_id}"


def get_active_config(db: Session, company_id: int, cache: Optional[TTLCache] = None) -> CheckInConfig:
    """
    Load and validate a company's check-in configuration.

    Validated configs are cached for CONFIG_CACHE_TTL seconds; invalid ones are
    never cached so a fix by an admin takes effect on the next request.

    Raises:
        InvalidConfigError: If the company does not exist or its settings are invalid
    """
    if cache is None:
        cache = global_cache

    def fetch_config() -> CheckInConfig:
        company = db.query(Company).filter(Company.id == company_id).first()
        if company is None:
            raise InvalidConfigError(f"No check-in configuration for company {company_id}")
        try:
            return load_config(company.settings)
        except InvalidConfigError as e:
            logger.error("invalid_company_config", company_id=company_id, error=str(e))
            raise

    return get_or_fetch(cache, config_cache_key(company_id), fetch_config, ttl_seconds=settings.CONFIG_CACHE_TTL)


def update_company_config(
    db: Session,
    company_id: int,
    changes: Dict[str, Any],
    cache: Optional[TTLCache] = None,
) -> CheckInConfig:
    """
    Apply a partial update to a company's configuration.

    The merged result is validated as a whole before anything is written, so a
    rejected update leaves the stored settings untouched.

    Raises:
        ValueError: If the company does not exist
        InvalidConfigError: If the merged configuration is invalid
    """
    if cache is None:
        cache = global_cache

    company = db.query(Company).filter(Company.id == company_id).first()
    if company is None:
        raise ValueError("Company not found")

    merged = dict(company.settings or {})
    merged.update(changes)
    config = load_config(merged)

    company.settings = config.model_dump(mode="json")
    db.commit()

    cache.invalidate(config_cache_key(company_id))
    logger.info("company_config_updated", company_id=company_id, fields=sorted(changes))

    return config
