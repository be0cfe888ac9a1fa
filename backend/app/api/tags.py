from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.core.database import get_db
from app.models.tag import Tag, DEFAULT_TAG_COLOR
from app.models.user import User
from app.schemas.tag import TagCreate, TagResponse

router = APIRouter(prefix="/api/tags", tags=["tags"])


@router.get("", response_model=list[TagResponse])
def list_tags(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return db.query(Tag).filter(Tag.user_id == user.id).order_by(Tag.name.asc()).all()


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    payload: TagCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    existing = db.query(Tag).filter(Tag.user_id == user.id, Tag.name == payload.name).first()
    if existing:
        raise HTTPException(status_code=409, detail="Tag with this name already exists")

    tag = Tag(user_id=user.id, name=payload.name, color=payload.color or DEFAULT_TAG_COLOR)
    db.add(tag)
    db.commit()
    db.refresh(tag)
    return tag


@router.delete("/{tag_id}")
def delete_tag(
    tag_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    tag = db.query(Tag).filter(Tag.id == tag_id, Tag.user_id == user.id).first()
    if not tag:
        raise HTTPException(status_code=404, detail="Tag not found")
    db.delete(tag)
    db.commit()
    return {"status": "ok", "message": "Tag deleted successfully"}
