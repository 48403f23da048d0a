"""Initialize the database with the default client application."""

from loguru import logger

from models.config import settings
from repositories.database import Base, SessionLocal, engine
from repositories.db_models import ClientApplication


def init_db() -> None:
    """Create tables and the default client application if missing."""
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        existing = (
            db.query(ClientApplication)
            .filter(ClientApplication.client_id == settings.DEFAULT_CLIENT_ID)
            .first()
        )
        if not existing:
            db.add(
                ClientApplication(
                    client_id=settings.DEFAULT_CLIENT_ID,
                    label=settings.DEFAULT_CLIENT_LABEL,
                    is_default=True,
                )
            )
            db.commit()
            print(f"[OK] Default client '{settings.DEFAULT_CLIENT_ID}' created")

        print("\n[OK] Database initialization complete!")

    except Exception as e:
        logger.error(f"Error initializing database: {e!r}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
