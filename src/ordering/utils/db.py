"""Database wiring for the ordering domain.

Without ``DATABASE_URL`` the domain keeps Protean's in-memory provider,
which is what development and the test suite use. With it, the default
database points at PostgreSQL (or SQLite for ``sqlite://`` URLs) through
Protean's SQLAlchemy provider.
"""

import os

from protean.domain import Domain
from sqlalchemy import create_engine

SQL_PROVIDERS = ("sqlite", "postgresql")


def configure_database(domain: Domain, url: str | None = None) -> None:
    """Point the default database at ``url``. Must run before ``domain.init()``."""
    url = url or os.environ.get("DATABASE_URL")
    if not url:
        return
    provider = "sqlite" if url.startswith("sqlite") else "postgresql"
    domain.config["databases"]["default"] = {"provider": provider, "database_uri": url}


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in SQL_PROVIDERS:
            yield provider


def setup_db(domain: Domain) -> bool:
    """Create tables for every SQL-backed aggregate. Returns False for memory providers."""
    created = False
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Accessing _dao registers the aggregate and its entities with SQLAlchemy
            for _, record in domain.registry.aggregates.items():
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018
            for _, record in domain.registry.entities.items():
                if record.cls.meta_.provider == provider.name:
                    domain.repository_for(record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)
            created = True
    return created


def drop_db(domain: Domain) -> bool:
    dropped = False
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            dropped = True
    return dropped
