"""Persistence gateway used by every service and route.

All reads and writes go through ``EntityStore`` so database failures are
rolled back, logged once, and surfaced as ``InternalError``. Set-valued
references live in the ``associations`` table and are handled here as well.
"""

import logging
from collections.abc import Iterable, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from coursehub.core.errors import ConflictError, InternalError
from coursehub.core.identifiers import new_identifier
from coursehub.models.association import Association

logger = logging.getLogger(__name__)


def collection_name(model) -> str:
    return model.__tablename__


class EntityStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _translate_errors(self, action: str):
        try:
            yield
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning('Integrity error while %s: %s', action, exc.orig)
            raise ConflictError('A record with the same unique value already exists.') from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception('Database failure while %s', action)
            raise InternalError() from exc

    # --- Reads ---

    def find_by_id(self, model, entity_id: str):
        with self._translate_errors(f'loading {collection_name(model)}'):
            return self.db.get(model, entity_id)

    def find_one(self, model, **equals):
        with self._translate_errors(f'loading {collection_name(model)}'):
            return self.db.query(model).filter_by(**equals).first()

    def find_many(self, model, ids: Iterable[str] | None = None, order_by=None, **equals) -> list:
        with self._translate_errors(f'querying {collection_name(model)}'):
            query = self.db.query(model).filter_by(**equals)
            if ids is not None:
                query = query.filter(model.id.in_(list(ids)))
            if order_by is not None:
                query = query.order_by(order_by)
            return query.all()

    def exists(self, model, exclude_id: str | None = None, **equals) -> bool:
        with self._translate_errors(f'querying {collection_name(model)}'):
            query = self.db.query(model.id).filter_by(**equals)
            if exclude_id is not None:
                query = query.filter(model.id != exclude_id)
            return query.first() is not None

    def association_ids(self, owner, relation: str) -> list[str]:
        with self._translate_errors(f'loading {relation} of {collection_name(type(owner))}'):
            rows = (
                self.db.query(Association.target_id)
                .filter(
                    Association.owner_type == collection_name(type(owner)),
                    Association.owner_id == owner.id,
                    Association.relation == relation,
                )
                .order_by(Association.id.asc())
                .all()
            )
        return [target_id for (target_id,) in rows]

    def association_owner_ids(self, owner_model, relation: str, target_id: str) -> list[str]:
        """Ids of ``owner_model`` entities whose ``relation`` set holds ``target_id``."""
        with self._translate_errors(f'loading owners of {relation}'):
            rows = (
                self.db.query(Association.owner_id)
                .filter(
                    Association.owner_type == collection_name(owner_model),
                    Association.relation == relation,
                    Association.target_id == target_id,
                )
                .all()
            )
        return [owner_id for (owner_id,) in rows]

    # --- Writes ---

    def insert(self, entity, associations: Mapping[str, Iterable[str]] | None = None):
        """Persist a new entity together with its reference sets in one commit."""
        if entity.id is None:
            entity.id = new_identifier()

        with self._translate_errors(f'inserting into {collection_name(type(entity))}'):
            self.db.add(entity)
            for relation, target_ids in (associations or {}).items():
                self._replace_associations(entity, relation, target_ids)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def update_by_id(
        self,
        model,
        entity_id: str,
        fields: Mapping[str, Any],
        associations: Mapping[str, Iterable[str]] | None = None,
    ):
        entity = self.find_by_id(model, entity_id)
        if entity is None:
            return None

        with self._translate_errors(f'updating {collection_name(model)}'):
            for key, value in fields.items():
                setattr(entity, key, value)
            for relation, target_ids in (associations or {}).items():
                self._replace_associations(entity, relation, target_ids)
            if associations:
                entity.updated_at = func.now()
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def save(self, entity):
        """Commit in-place changes made to a loaded entity."""
        with self._translate_errors(f'saving {collection_name(type(entity))}'):
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def delete_by_id(self, model, entity_id: str) -> bool:
        entity = self.find_by_id(model, entity_id)
        if entity is None:
            return False

        with self._translate_errors(f'deleting from {collection_name(model)}'):
            # Only the owner's own reference sets go; references held by others stay.
            self.db.query(Association).filter(
                Association.owner_type == collection_name(model),
                Association.owner_id == entity_id,
            ).delete(synchronize_session=False)
            self.db.delete(entity)
            self.db.commit()
        return True

    def add_association(self, owner, relation: str, target_id: str) -> bool:
        """Add ``target_id`` to the owner's ``relation`` set; returns False if already present."""
        owner_type = collection_name(type(owner))
        with self._translate_errors(f'adding to {relation} of {owner_type}'):
            already_present = self.db.query(Association.id).filter(
                Association.owner_type == owner_type,
                Association.owner_id == owner.id,
                Association.relation == relation,
                Association.target_id == target_id,
            ).first()
            if already_present:
                return False

            self.db.add(Association(owner_type=owner_type, owner_id=owner.id, relation=relation, target_id=target_id))
            owner.updated_at = func.now()
            try:
                self.db.commit()
            except IntegrityError:
                # A concurrent request added the same edge first.
                self.db.rollback()
                return False
            self.db.refresh(owner)
        return True

    def _replace_associations(self, owner, relation: str, target_ids: Iterable[str]) -> None:
        owner_type = collection_name(type(owner))
        # Bulk delete runs immediately, so re-adding an existing edge cannot hit the unique constraint.
        self.db.query(Association).filter(
            Association.owner_type == owner_type,
            Association.owner_id == owner.id,
            Association.relation == relation,
        ).delete(synchronize_session=False)

        seen: set[str] = set()
        for target_id in target_ids:
            if target_id in seen:
                continue
            seen.add(target_id)
            self.db.add(Association(owner_type=owner_type, owner_id=owner.id, relation=relation, target_id=target_id))
