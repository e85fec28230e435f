"""Set-membership edges between entities.

Adding an edge is a set union: adding the same target twice leaves exactly
one edge. There is no removal besides replacing a whole set on update.
"""

import logging

from coursehub.core.errors import InvalidRole, NotFound
from coursehub.models.course import Course
from coursehub.models.file import File
from coursehub.models.group import Group
from coursehub.models.user import User
from coursehub.services import expansion
from coursehub.services.entity_store import EntityStore
from coursehub.services.references import validate_identifier

logger = logging.getLogger(__name__)

# (owner model, relation) -> (target model, target label, target predicate)
RELATION_TARGETS = {
    (Group, 'students'): (User, 'student', {'role': 'student'}),
    (Group, 'courses'): (Course, 'course', {}),
    (Course, 'files'): (File, 'file', {}),
    (Course, 'groups'): (Group, 'group', {}),
}


def relation_target(owner_model, relation: str):
    try:
        return RELATION_TARGETS[(owner_model, relation)]
    except KeyError:
        raise ValueError(f'{owner_model.__name__} has no relation named {relation!r}') from None


def add_association(store: EntityStore, owner_id: str, target_id: str, owner_model, relation: str) -> dict:
    """Add ``target_id`` to the owner's ``relation`` set and return the expanded owner."""
    target_model, target_label, predicate = relation_target(owner_model, relation)
    owner_label = owner_model.__tablename__.rstrip('s')

    validate_identifier(owner_id, f'{owner_label}_id')
    validate_identifier(target_id, f'{target_label}_id')

    target = store.find_one(target_model, id=target_id, **predicate)
    if target is None:
        if predicate and store.find_by_id(target_model, target_id) is not None:
            raise InvalidRole(relation, [target_id], role=predicate.get('role'))
        raise NotFound(f'{target_label.capitalize()} not found.')

    owner = store.find_by_id(owner_model, owner_id)
    if owner is None:
        raise NotFound(f'{owner_label.capitalize()} not found.')

    if store.add_association(owner, relation, target_id):
        logger.info('Added %s %s to %s of %s %s', target_label, target_id, relation, owner_label, owner_id)

    return expansion.expand(store, owner)
