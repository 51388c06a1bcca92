"""Database initialization script with seed tokens for local development."""

from datetime import timedelta

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from custozero.config import settings
from custozero.database import Base, create_db_engine, create_session_factory
from custozero.models import AccessToken
from custozero.services.repositories import AccessTokenRepository
from custozero.services.token_policy import temporary_expiry, utcnow


def create_tables(engine: Engine):
    """Create all database tables."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")


def seed_data(db: Session):
    """Seed one token per state the frontend has to render."""
    print("\nSeeding database with sample tokens...")
    repository = AccessTokenRepository(db)
    now = utcnow()

    active = repository.create(
        "ativo@example.com",
        customer_name="Cliente Ativo",
        order_id="seed-active",
        expires_at=temporary_expiry(now),
    )
    lifetime = repository.create(
        "vitalicio@example.com",
        customer_name="Cliente Vitalício",
        order_id="seed-lifetime",
        is_lifetime=True,
    )
    expired = repository.create(
        "expirado@example.com",
        customer_name="Cliente Expirado",
        order_id="seed-expired",
        expires_at=now - timedelta(hours=1),
    )
    db.commit()

    print("Seed data created successfully!")
    for access_token in (active, lifetime, expired):
        print(f"  {access_token.email}: {access_token.token}")


def init_db():
    """Initialize database with tables and seed data."""
    print("Initializing database...")

    engine = create_db_engine(settings.database_url)
    create_tables(engine)

    db = create_session_factory(engine)()
    try:
        # Check if data already exists
        existing_tokens = db.query(AccessToken).count()
        if existing_tokens > 0:
            print(f"\nDatabase already has {existing_tokens} tokens. Skipping seed data.")
            return

        seed_data(db)
        print("\nDatabase initialization complete!")

    except Exception as e:
        print(f"\nError during database initialization: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    init_db()
