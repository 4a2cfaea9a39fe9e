"""
Auction house data model

Notes
-----
Data model class names are prefixed with a 'T', which identifies them as classes that map to database tables.
This naming convention also avoids name collision with similarly named domain model classes, e.g.,

`TPlayerArtwork` is a data model class vs `Artwork` is a domain model class

"""
from abc import ABC
from typing import Any

from sqlalchemy import Integer, JSON, event, Engine
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, MappedAsDataclass

from artauction.apps.auction_house.domain.artwork import ArtworkId


class Base(MappedAsDataclass, DeclarativeBase):
    """
    Data model base class.

    All data model classes should extend Base.
    """

    # pylint: disable=too-few-public-methods

    type_annotation_map = {
        ArtworkId: Integer,
        dict[str, Any]: JSON,
    }


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    """
    Enables foreign keys in sqlite
    """
    if "sqlite" not in type(dbapi_connection).__module__.lower():
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class AsyncSqlAlchemySupport(ABC):
    """
    AsyncSqlAlchemySupport
    """

    # pylint: disable=too-few-public-methods

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
