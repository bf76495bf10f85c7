from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from fastapi import Depends
from sqlalchemy import delete as sa_delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .db import get_db
from .errors import NotFoundError, StorageError
from .models import Chapter, College, Mcq, StudentMcqResponse, Subject, Topic, TopicUpload, User


logger = logging.getLogger(__name__)

Record = Dict[str, Any]

TABLES = {
	model.__tablename__: model
	for model in (Subject, Chapter, Topic, College, User, Mcq, TopicUpload, StudentMcqResponse)
}

_UPSERT_DIALECTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


def to_dict(row: Any) -> Record:
	return {c.name: getattr(row, c.name) for c in row.__table__.columns}


class Storage:
	"""Table-keyed record store over a SQLAlchemy session.

	Records go in and come out as plain dicts. Every SQLAlchemy failure is rolled back and
	re-raised as StorageError so route handlers deal with one error type.
	"""

	def __init__(self, db: Session) -> None:
		self.db = db

	def _model(self, table: str):
		try:
			return TABLES[table]
		except KeyError:
			raise StorageError(f"unknown table: {table}")

	@contextmanager
	def _guard(self, action: str, table: str) -> Iterator[None]:
		try:
			yield
		except SQLAlchemyError as e:
			self.db.rollback()
			reason = str(getattr(e, "orig", None) or e)
			logger.error("storage %s on %s failed: %s", action, table, reason)
			raise StorageError(reason) from e

	def _where(self, model, filters: Optional[Record]) -> list:
		conditions = []
		for key, value in (filters or {}).items():
			column = getattr(model, key, None)
			if column is None:
				raise StorageError(f"unknown column {model.__tablename__}.{key}")
			if isinstance(value, (list, tuple, set)):
				conditions.append(column.in_(list(value)))
			else:
				conditions.append(column == value)
		return conditions

	def _order(self, model, order_by: Optional[Sequence[str]]) -> list:
		clauses = []
		for key in order_by or ():
			descending = key.startswith("-")
			column = getattr(model, key.lstrip("-"))
			clauses.append(column.desc() if descending else column.asc())
		return clauses

	def insert(self, table: str, records: Iterable[Record]) -> List[Record]:
		model = self._model(table)
		with self._guard("insert", table):
			try:
				rows = [model(**record) for record in records]
			except TypeError as e:
				raise StorageError(str(e))
			self.db.add_all(rows)
			self.db.commit()
			return [to_dict(row) for row in rows]

	def select_one(self, table: str, filters: Record) -> Optional[Record]:
		model = self._model(table)
		with self._guard("select", table):
			row = self.db.scalars(select(model).where(*self._where(model, filters)).limit(1)).first()
			return to_dict(row) if row is not None else None

	def require(self, table: str, filters: Record, what: str) -> Record:
		row = self.select_one(table, filters)
		if row is None:
			raise NotFoundError(f"{what} not found")
		return row

	def select_many(
		self,
		table: str,
		filters: Optional[Record] = None,
		order_by: Optional[Sequence[str]] = None,
	) -> List[Record]:
		model = self._model(table)
		stmt = select(model).where(*self._where(model, filters)).order_by(*self._order(model, order_by))
		with self._guard("select", table):
			return [to_dict(row) for row in self.db.scalars(stmt).all()]

	def update(self, table: str, patch: Record, filters: Record) -> List[Record]:
		model = self._model(table)
		with self._guard("update", table):
			rows = self.db.scalars(select(model).where(*self._where(model, filters))).all()
			for row in rows:
				for key, value in patch.items():
					if not hasattr(row, key):
						raise StorageError(f"unknown column {table}.{key}")
					setattr(row, key, value)
			self.db.commit()
			return [to_dict(row) for row in rows]

	def delete(self, table: str, filters: Record) -> None:
		model = self._model(table)
		with self._guard("delete", table):
			self.db.execute(sa_delete(model).where(*self._where(model, filters)))
			self.db.commit()

	def upsert(self, table: str, records: Iterable[Record], conflict_key: Sequence[str]) -> List[Record]:
		"""Insert records, updating the existing row when ``conflict_key`` already matches one.

		On SQLite and PostgreSQL this is a single ``INSERT ... ON CONFLICT DO UPDATE`` against the
		table's unique constraint, so two writers racing on the same key end with one row.
		"""
		model = self._model(table)
		records = list(records)
		primary_keys = {c.name for c in model.__table__.primary_key.columns}
		insert_fn = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)
		with self._guard("upsert", table):
			for record in records:
				values = {k: v for k, v in record.items() if k not in primary_keys}
				if insert_fn is None:
					self._upsert_read_then_write(model, values, conflict_key)
					continue
				stmt = insert_fn(model).values(**values)
				changes = {k: stmt.excluded[k] for k in values if k not in conflict_key and k != "created_at"}
				if "updated_at" in model.__table__.c:
					changes["updated_at"] = datetime.utcnow()
				if changes:
					stmt = stmt.on_conflict_do_update(index_elements=list(conflict_key), set_=changes)
				else:
					stmt = stmt.on_conflict_do_nothing(index_elements=list(conflict_key))
				self.db.execute(stmt)
			self.db.commit()
		return [self.select_one(table, {k: record[k] for k in conflict_key}) for record in records]

	def _upsert_read_then_write(self, model, values: Record, conflict_key: Sequence[str]) -> None:
		# Not atomic; dialects without ON CONFLICT rely on the unique constraint to reject the loser
		key = {k: values[k] for k in conflict_key}
		row = self.db.scalars(select(model).where(*self._where(model, key)).limit(1)).first()
		if row is None:
			self.db.add(model(**values))
			self.db.flush()
			return
		for k, v in values.items():
			if k != "created_at":
				setattr(row, k, v)


def get_storage(db: Session = Depends(get_db)) -> Storage:
	return Storage(db)
