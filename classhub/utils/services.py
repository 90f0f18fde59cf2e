from fastapi import HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError


def not_found(label: str):
    raise HTTPException(status_code=404, detail=f"{label} not found")


def get_or_404(db: Session, model, object_id: int, label: str):
    obj = db.query(model).filter(model.id == object_id).first()
    if not obj:
        not_found(label)
    return obj


def bad_request(detail: str):
    raise HTTPException(status_code=400, detail=detail)


def conflict(detail, **extra):
    if extra:
        raise HTTPException(status_code=409, detail={"message": detail, **extra})
    raise HTTPException(status_code=409, detail=detail)


def commit_or_rollback(db: Session, *refresh):
    """Commit the unit of work; roll back and re-raise on database errors."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    for obj in refresh:
        db.refresh(obj)
