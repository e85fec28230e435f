"""Reference validation shared by every write path.

A reference is a stored identifier pointing at another entity. It is checked
when written: the identifier must be well formed, the entity must exist and,
where a predicate is given (for example ``role='student'``), satisfy it.
Nothing here writes to the store.
"""

from collections.abc import Iterable

from coursehub.core.errors import InvalidReferenceFormat, InvalidRole, MissingReferences, NotFound
from coursehub.core.identifiers import is_valid_identifier
from coursehub.services.entity_store import EntityStore


def validate_identifier(value: object, field: str) -> str:
    if not is_valid_identifier(value):
        raise InvalidReferenceFormat(field, [value])
    return value


def validate_references(
    store: EntityStore,
    ids: Iterable[str] | None,
    model,
    field: str,
    **predicate,
) -> None:
    """Check that every id in ``ids`` names an existing ``model`` entity matching ``predicate``.

    ``None`` means the field was omitted and is not checked; an empty list is
    trivially valid. Malformed ids fail with ``InvalidReferenceFormat`` before
    the store is queried. Otherwise a single batch query is compared against
    the unique ids requested: ids that exist but fail the predicate raise
    ``InvalidRole``, ids that do not exist raise ``MissingReferences``.
    """
    if ids is None:
        return

    ids = list(ids)
    malformed = [value for value in ids if not is_valid_identifier(value)]
    if malformed:
        raise InvalidReferenceFormat(field, malformed)

    requested = set(ids)
    if not requested:
        return

    found = store.find_many(model, ids=requested, **predicate)
    if len(found) == len(requested):
        return

    unresolved = requested - {entity.id for entity in found}
    if predicate:
        wrong_kind = {entity.id for entity in store.find_many(model, ids=unresolved)}
        if wrong_kind:
            raise InvalidRole(field, wrong_kind, role=_describe(predicate))
    raise MissingReferences(field, unresolved)


def validate_reference(store: EntityStore, entity_id: str, model, field: str, **predicate):
    """Single required reference; returns the resolved entity."""
    validate_identifier(entity_id, field)
    entity = store.find_one(model, id=entity_id, **predicate)
    if entity is not None:
        return entity

    if predicate and store.find_by_id(model, entity_id) is not None:
        raise InvalidRole(field, [entity_id], role=_describe(predicate))
    raise MissingReferences(field, [entity_id], detail=f'{field.capitalize()} not found: {entity_id}')


def ensure_exists(store: EntityStore, model, entity_id: str, label: str):
    """Fetch an entity addressed directly by id, raising ``NotFound`` if it is absent."""
    validate_identifier(entity_id, f'{label}_id')
    entity = store.find_by_id(model, entity_id)
    if entity is None:
        raise NotFound(f'{label.capitalize()} not found.')
    return entity


def _describe(predicate: dict) -> str:
    if 'role' in predicate:
        return predicate['role']
    return ', '.join(f'{key}={value}' for key, value in predicate.items())
