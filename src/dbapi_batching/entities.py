"""
Post / PostComment schema used by the batching harness.

Identifiers are assigned by the harness, so neither primary key is
auto-generated.
"""

from typing import List

from sqlalchemy import BigInteger, Column, ForeignKey, Integer, MetaData, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Post(Base):
    """Parent record."""

    __tablename__ = "post"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    title = Column(String(255))
    version = Column(Integer, nullable=False, default=0)


class PostComment(Base):
    """Child record referencing its Post by identifier."""

    __tablename__ = "post_comment"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    post_id = Column(BigInteger, ForeignKey("post.id"), nullable=False)
    review = Column(String(255))
    version = Column(Integer, nullable=False, default=0)


class BatchEntityProvider:
    """Supplies the mapped entities and their schema to an integration."""

    def entities(self) -> List[type]:
        # Parent first: creation order follows foreign key dependencies
        return [Post, PostComment]

    @property
    def metadata(self) -> MetaData:
        return Base.metadata
