"""
Entities router.

POST   /entities
GET    /entities
PATCH  /entities/{entity_id}
DELETE /entities/{entity_id}   — also removes every submission of the entity
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from sadhana.db.base import get_db
from sadhana.schemas.common import ERROR_RESPONSES
from sadhana.schemas.entity import EntityDeletedResponse, EntityIn, EntityResponse
from sadhana.services.submissions import (
    create_entity,
    delete_entity,
    list_entities,
    rename_entity,
)

router = APIRouter(prefix="/entities", tags=["entities"])


@router.post(
    "",
    response_model=EntityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an entity",
    responses={409: ERROR_RESPONSES[409], 422: ERROR_RESPONSES[422]},
)
def add_entity(body: EntityIn, db: Session = Depends(get_db)):
    return create_entity(db, body.name)


@router.get("", response_model=list[EntityResponse], summary="List entities by name")
def get_entities(db: Session = Depends(get_db)):
    return list_entities(db)


@router.patch(
    "/{entity_id}",
    response_model=EntityResponse,
    summary="Rename an entity",
    responses={404: ERROR_RESPONSES[404], 409: ERROR_RESPONSES[409]},
)
def patch_entity(entity_id: int, body: EntityIn, db: Session = Depends(get_db)):
    """Submissions reference the entity by id, so history follows the new name."""
    return rename_entity(db, entity_id, body.name)


@router.delete(
    "/{entity_id}",
    response_model=EntityDeletedResponse,
    summary="Delete an entity and all its submissions",
    responses={404: ERROR_RESPONSES[404]},
)
def remove_entity(entity_id: int, db: Session = Depends(get_db)):
    removed = delete_entity(db, entity_id)
    return EntityDeletedResponse(id=entity_id, submissions_removed=removed)
