# This file is a part of Throttlegate.
#
# Copyright (C) 2017,2018 WIREMIND SAS <dev@wiremind.fr>
#
# Throttlegate is free software; you can redistribute it and/or modify it
# under the terms of the GNU Lesser General Public License as published by
# the Free Software Foundation, either version 3 of the License, or (at
# your option) any later version.
#
# Throttlegate is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY; without even the implied warranty of MERCHANTABILITY or
# FITNESS FOR A PARTICULAR PURPOSE. See the GNU Lesser General Public
# License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.
import datetime
import os
from typing import Optional, Tuple

from sqlalchemy import Column, DateTime, String, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..common import generate_unique_id
from ..errors import ConflictError
from ..lease import LeaseRecord
from .base import DocumentStore

Base = declarative_base()

DEFAULT_POSTGRES_URI = "postgresql+asyncpg://throttlegate@localhost:5432/throttlegate"


class StoredLease(Base):

    __tablename__ = "leases"

    id = Column(String, primary_key=True)
    lease_id = Column(String(length=255), nullable=True)
    leased_until = Column(DateTime(timezone=True), nullable=True)
    etag = Column(String(length=36), nullable=False)

    def as_record(self) -> LeaseRecord:
        return LeaseRecord(id=self.id, lease_id=self.lease_id, leased_until=self.leased_until)


class PostgresDocumentStore(DocumentStore):
    """Document store on a SQL table, one row per key.

    Rows are never deleted.  Every write stores a fresh etag, and replaces
    are ``UPDATE ... WHERE etag = :etag`` statements, so the database
    arbitrates concurrent writers.  Any SQLAlchemy asyncio driver works;
    PostgreSQL through asyncpg is the default.

    Parameters:
      url(str): An optional database URL.  Defaults to the
        ``THROTTLEGATE_POSTGRESQL_URL`` environment variable, then to
        ``postgresql+asyncpg://throttlegate@localhost:5432/throttlegate``.
      engine(AsyncEngine): An optional engine.  If this is passed, ``url``
        is ignored.
    """

    def __init__(self, *, url: Optional[str] = None, engine: Optional[AsyncEngine] = None) -> None:
        self.url = url or os.getenv("THROTTLEGATE_POSTGRESQL_URL") or DEFAULT_POSTGRES_URI
        self.engine = engine or create_async_engine(self.url)
        self.client = sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)

    async def init_db(self) -> None:
        """Create the leases table if it does not exist yet."""
        async with self.engine.begin() as connection:
            await connection.run_sync(Base.metadata.create_all)

    async def read(self, key: str) -> Optional[Tuple[LeaseRecord, str]]:
        async with self.client() as session:
            stored = await session.get(StoredLease, key)
            if stored is None:
                return None
            return stored.as_record(), stored.etag

    async def create(self, record: LeaseRecord) -> str:
        etag = generate_unique_id()
        try:
            async with self.client() as session, session.begin():
                session.add(
                    StoredLease(id=record.id, lease_id=record.lease_id, leased_until=record.leased_until, etag=etag)
                )
        except IntegrityError as e:
            raise ConflictError(f"lease {record.id!r} already exists") from e
        return etag

    async def replace(self, record: LeaseRecord, etag: str) -> str:
        new_etag = generate_unique_id()
        async with self.client() as session, session.begin():
            result = await session.execute(
                update(StoredLease)
                .where(StoredLease.id == record.id, StoredLease.etag == etag)
                .values(lease_id=record.lease_id, leased_until=record.leased_until, etag=new_etag)
                .execution_options(synchronize_session=False)
            )
        if result.rowcount != 1:
            raise ConflictError(f"lease {record.id!r} was modified concurrently")
        return new_etag

    async def clean(self) -> None:
        """Delete every lease."""
        async with self.client() as session, session.begin():
            await session.execute(delete(StoredLease))

    async def close(self) -> None:
        await self.engine.dispose()
