"""Schema management for RDBMS-backed deployments.

The memory provider used in development and tests needs none of this.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

_RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _rdbms_providers(domain: Domain):
    for provider in domain.providers.values():
        if provider.conn_info["provider"] in _RDBMS_PROVIDERS:
            yield provider


def _bind_models(domain: Domain, provider) -> None:
    # Touching `_dao` builds the SQLAlchemy model for each record
    records = list(domain.registry.aggregates.values()) + list(domain.registry.entities.values())
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> None:
    """Create tables for merchants, menu items, customers and orders."""
    with domain.domain_context():
        for provider in _rdbms_providers(domain):
            _bind_models(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("schema_created", provider=provider.name)


def drop_db(domain: Domain) -> None:
    with domain.domain_context():
        for provider in _rdbms_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
            logger.info("schema_dropped", provider=provider.name)
