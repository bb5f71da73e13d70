from protean.domain import Domain
from sqlalchemy import create_engine


def _relational_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in ("sqlite", "postgresql"):
            yield provider


def setup_db(domain: Domain):
    """Create tables for every aggregate and entity backed by a relational provider"""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            # Accessing the repository's _dao registers the model with SQLAlchemy
            for _, aggregate_record in domain.registry.aggregates.items():
                if aggregate_record.cls.meta_.provider == provider.name:
                    domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

            for _, entity_record in domain.registry.entities.items():
                if entity_record.cls.meta_.provider == provider.name:
                    domain.repository_for(entity_record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop the tables created by setup_db"""
    with domain.domain_context():
        for provider in _relational_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
