from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.ext.asyncio.session import AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(db_url: str) -> sessionmaker:
    engine = create_async_engine(db_url, future=True, echo=False)
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
