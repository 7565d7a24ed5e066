"""Generic create/read/update/delete over the managed resources.

Every resource is described once by a `Resource` (model, write schema, read
schema) and all operations take the request's session as first argument.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Mapping, Type

import pydantic
from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .exceptions import NotFoundError, StorageError, ValidationError
from .logging import get_logger

_log = get_logger(__name__)


@dataclass(frozen=True)
class Resource:
    label: str
    model: Type[Any]
    fields: Type[schemas.FieldsBase]
    schema: Type[pydantic.BaseModel]


CATEGORIES = Resource(
    "Category", models.Category, schemas.CategoryFields, schemas.Category
)
INGREDIENTS = Resource(
    "Ingredient", models.Ingredient, schemas.IngredientFields, schemas.Ingredient
)
RECIPES = Resource("Recipe", models.Recipe, schemas.RecipeFields, schemas.Recipe)
MENUS = Resource("Menu", models.Menu, schemas.MenuFields, schemas.Menu)

RESOURCES = {
    "categories": CATEGORIES,
    "ingredients": INGREDIENTS,
    "recipes": RECIPES,
    "menus": MENUS,
}


def describe_validation_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "input"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def validate_fields(model: Type[pydantic.BaseModel], data: Mapping[str, Any]):
    try:
        return model.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        raise ValidationError(describe_validation_error(exc)) from exc


@contextmanager
def storage_errors(db: Session):
    """Roll back and re-raise database failures as StorageError."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        orig = getattr(exc, "orig", None)
        message = str(orig) if orig is not None else str(exc)
        _log.warning("Storage error: {}", message)
        raise StorageError(message) from exc


def _get_row(db: Session, resource: Resource, record_id: int):
    with storage_errors(db):
        row = db.get(resource.model, record_id)
    if row is None:
        raise NotFoundError(resource.label, record_id)
    return row


def list_records(db: Session, resource: Resource):
    model = resource.model
    with storage_errors(db):
        rows = db.query(model).order_by(model.name, model.id).all()
    return [resource.schema.model_validate(r) for r in rows]


def get_record(db: Session, resource: Resource, record_id: int):
    return resource.schema.model_validate(_get_row(db, resource, record_id))


def create_record(db: Session, resource: Resource, fields: Mapping[str, Any]) -> int:
    data = validate_fields(resource.fields, fields)
    row = resource.model(**data.model_dump())
    with storage_errors(db):
        db.add(row)
        db.commit()
        record_id = row.id
    _log.info("Created {} {}", resource.label, record_id)
    return record_id


def update_record(
    db: Session, resource: Resource, record_id: int, fields: Mapping[str, Any]
) -> bool:
    """Merge `fields` into the stored row and write the whole row back.

    Keys outside the resource's field schema are ignored, so the id can never
    be rewritten. Fields that are not supplied keep their stored value.
    """
    row = _get_row(db, resource, record_id)
    current = resource.fields.model_validate(row, from_attributes=True)
    merged = current.model_dump()
    merged.update(
        (k, v) for k, v in fields.items() if k in resource.fields.model_fields
    )
    data = validate_fields(resource.fields, merged)

    with storage_errors(db):
        for key, value in data.model_dump().items():
            setattr(row, key, value)
        db.commit()
    _log.info("Updated {} {}", resource.label, record_id)
    return True


def delete_record(db: Session, resource: Resource, record_id: int) -> bool:
    model = resource.model
    with storage_errors(db):
        result = db.execute(delete(model).where(model.id == record_id))
        db.commit()
    deleted = result.rowcount > 0
    if deleted:
        _log.info("Deleted {} {}", resource.label, record_id)
    return deleted
