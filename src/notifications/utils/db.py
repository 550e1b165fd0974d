"""Schema management for SQLAlchemy-backed providers.

The memory provider needs no schema. For sqlite/postgresql providers the
tables of every aggregate, entity and projection are created (or dropped)
through the provider's SQLAlchemy metadata. Capabilities are probed from
the resulting schema, so call `reset_capabilities()` after a migration in
a running process.
"""

from protean.domain import Domain
from sqlalchemy import create_engine

RELATIONAL_PROVIDERS = ("sqlite", "postgresql")


def _relational_providers(domain: Domain):
    return [
        provider
        for _, provider in domain.providers.items()
        if provider.conn_info["provider"] in RELATIONAL_PROVIDERS
    ]


def _register_models(domain: Domain, provider):
    # Touching `_dao` makes Protean build and register the SQLAlchemy model
    records = [
        *domain.registry.aggregates.values(),
        *domain.registry.entities.values(),
        *domain.registry.projections.values(),
    ]
    for record in records:
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create tables for every relational provider of the domain."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            _register_models(domain, provider)
            provider._metadata.create_all(create_engine(provider.conn_info["database_uri"]))


def drop_db(domain: Domain):
    """Drop tables for every relational provider of the domain."""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            provider._metadata.drop_all(create_engine(provider.conn_info["database_uri"]))
