"""
Resource persistence.

Every query the engine runs against the resource tables lives here, keyed by
ResourceKind. Writes commit immediately. Driver-level failures surface as
PersistenceUnavailable; a slug unique-constraint violation on insert surfaces
as SlugCollision.
"""
import functools
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import delete, exists, or_, select, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from textshare.core.errors import PersistenceUnavailable, SlugCollision
from textshare.models.file import SharedFile
from textshare.models.registry import KindSpec, spec_for

logger = logging.getLogger(__name__)


def _persistence_guard(method):
    """Translate driver errors into PersistenceUnavailable after rolling back."""

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except IntegrityError:
            raise
        except DBAPIError as e:
            self._safe_rollback()
            logger.error(f"Persistence call {method.__name__} failed: {e}")
            raise PersistenceUnavailable("The data store is temporarily unavailable") from e

    return wrapper


def _alive(spec: KindSpec, now: datetime):
    """WHERE clause matching rows that are neither expired nor exhausted."""
    model = spec.model
    clauses = [or_(model.expires_at.is_(None), model.expires_at > now)]
    if spec.ceiling:
        clauses.append(or_(spec.ceiling_column.is_(None), spec.counter_column < spec.ceiling_column))
    return clauses


def _dead(spec: KindSpec, now: datetime):
    """WHERE clause matching rows that are expired or exhausted."""
    model = spec.model
    expired = (model.expires_at.is_not(None)) & (model.expires_at <= now)
    if spec.ceiling:
        exhausted = (spec.ceiling_column.is_not(None)) & (spec.counter_column >= spec.ceiling_column)
        return or_(expired, exhausted)
    return expired


class ResourceRepository:
    """Persistence operations for all resource kinds, bound to one session."""

    def __init__(self, db: Session):
        self.db = db

    def _safe_rollback(self) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback after persistence failure also failed: {e}")

    # ------------------------------------------------------------------
    # Reads (always refreshed from the store, never served from the identity map)
    # ------------------------------------------------------------------

    @_persistence_guard
    def find_by_slug(self, kind, slug: str):
        spec = spec_for(kind)
        stmt = (
            select(spec.model)
            .where(spec.model.slug == slug)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    @_persistence_guard
    def find_by_id(self, kind, resource_id: int):
        spec = spec_for(kind)
        stmt = (
            select(spec.model)
            .where(spec.model.id == resource_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    @_persistence_guard
    def exists_by_slug(self, kind, slug: str) -> bool:
        spec = spec_for(kind)
        return bool(self.db.execute(select(exists().where(spec.model.slug == slug))).scalar())

    @_persistence_guard
    def find_bundle(self, bundle_slug: str) -> List[SharedFile]:
        stmt = (
            select(SharedFile)
            .where(SharedFile.bundle_slug == bundle_slug)
            .order_by(SharedFile.id)
        )
        return list(self.db.execute(stmt).scalars())

    @_persistence_guard
    def find_dead(self, kind, now: datetime) -> list:
        """Rows that are expired or exhausted, for kinds whose payload must go first."""
        spec = spec_for(kind)
        stmt = select(spec.model).where(_dead(spec, now)).order_by(spec.model.id)
        return list(self.db.execute(stmt).scalars())

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_resource(self, kind, fields: Dict[str, Any]):
        return self.create_resources(kind, [fields])[0]

    @_persistence_guard
    def create_resources(self, kind, rows: Iterable[Dict[str, Any]]) -> list:
        """
        Insert one or more rows of a kind in a single transaction.

        Raises:
            SlugCollision: A slug is already taken (the unique constraint fired)
        """
        spec = spec_for(kind)
        resources = [spec.model(**fields) for fields in rows]
        self.db.add_all(resources)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            for resource in resources:
                if self.exists_by_slug(kind, resource.slug):
                    raise SlugCollision(spec.kind.value, resource.slug)
            raise
        for resource in resources:
            self.db.refresh(resource)
        return resources

    @_persistence_guard
    def conditional_increment(self, kind, resource_id: int, now: datetime) -> Optional[int]:
        """
        Increment the usage counter if the row is still alive.

        Runs as one ``UPDATE ... WHERE id = :id AND <not expired> AND
        <below ceiling> RETURNING counter``, so two callers can never both
        pass the ceiling check.

        Returns:
            Optional[int]: The post-increment count, or None if no row matched
        """
        spec = spec_for(kind)
        counter = spec.counter_column
        stmt = (
            update(spec.model)
            .where(spec.model.id == resource_id, *_alive(spec, now))
            .values({spec.counter: counter + 1})
            .returning(counter)
            .execution_options(synchronize_session=False)
        )
        try:
            row = self.db.execute(stmt).first()
            self.db.commit()
        except DBAPIError:
            self._safe_rollback()
            raise
        return row[0] if row is not None else None

    @_persistence_guard
    def delete_where_expired(self, kind, now: datetime) -> int:
        spec = spec_for(kind)
        model = spec.model
        stmt = (
            delete(model)
            .where(model.expires_at.is_not(None), model.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return self._commit_delete(stmt)

    @_persistence_guard
    def delete_where_exhausted(self, kind) -> int:
        spec = spec_for(kind)
        if not spec.ceiling:
            return 0
        stmt = (
            delete(spec.model)
            .where(spec.ceiling_column.is_not(None), spec.counter_column >= spec.ceiling_column)
            .execution_options(synchronize_session=False)
        )
        return self._commit_delete(stmt)

    @_persistence_guard
    def delete_by_ids(self, kind, ids: List[int]) -> int:
        if not ids:
            return 0
        spec = spec_for(kind)
        stmt = (
            delete(spec.model)
            .where(spec.model.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return self._commit_delete(stmt)

    @_persistence_guard
    def delete_idle(self, kind, cutoff: datetime, require_unused: bool = False) -> int:
        """
        Delete rows created at or before ``cutoff``.

        Args:
            kind: Resource kind
            cutoff: Rows created at or before this instant are candidates
            require_unused: Only delete rows whose usage counter is still zero
        """
        spec = spec_for(kind)
        clauses = [spec.model.created_at <= cutoff]
        if require_unused:
            clauses.append(spec.counter_column == 0)
        stmt = (
            delete(spec.model)
            .where(*clauses)
            .execution_options(synchronize_session=False)
        )
        return self._commit_delete(stmt)

    def _commit_delete(self, stmt) -> int:
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except DBAPIError:
            self._safe_rollback()
            raise
        return result.rowcount or 0
