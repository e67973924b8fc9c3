from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./procboard.db")
NAMESPACE_DATABASE_URL = os.getenv("NAMESPACE_DATABASE_URL", DATABASE_URL)


def build_engine(url: str):
    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    else:
        connect_args = {}
    return create_engine(url, connect_args=connect_args)


# purpose: metadata registry store (process_metadata) and the store holding derived namespaces
engine = build_engine(DATABASE_URL)
namespace_engine = engine if NAMESPACE_DATABASE_URL == DATABASE_URL else build_engine(NAMESPACE_DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

Base = declarative_base()
