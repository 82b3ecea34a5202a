from sqlalchemy import Column, String

from app.db.base import Base


class CategoryRow(Base):
    __tablename__ = "categories"

    # the name is the key; products reference it by value, not by FK
    name = Column(String, primary_key=True)
