from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from lapak.app.core.config import DATABASE_URL, DB_ECHO, DB_MAX_OVERFLOW, DB_POOL_SIZE

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    pool_size=DB_POOL_SIZE,
    max_overflow=DB_MAX_OVERFLOW,
    echo=DB_ECHO,
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
