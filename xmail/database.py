from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from xmail.config import DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    # In-memory SQLite must share one connection across threads
    engine = create_engine(
        DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
else:
    # Create engine with connection pooling
    engine = create_engine(
        DATABASE_URL,
        echo=False,  # Set True for SQL debugging
        pool_pre_ping=True  # Verify connections before use
    )

# Session factory for request-scoped sessions
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def get_db():
    """
    FastAPI dependency to get a database session.
    
    Usage:
        @router.get("/home/inbox")
        def inbox(db: Session = Depends(get_db)):
            ...
    
    Yields:
        Session: Database session that auto-closes after request
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
