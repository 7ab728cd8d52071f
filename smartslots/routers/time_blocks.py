# smartslots/routers/time_blocks.py
# PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.tables import Businesses as DBBusinesses
from ..models.tables import BusinessTimeBlocks as DBTimeBlocks
from ..schemas.time_blocks import TimeBlockCreate, TimeBlockRead

router = APIRouter(prefix="/time_blocks", tags=["time_blocks"])


@router.get("/", response_model=list[TimeBlockRead])
def list_time_blocks(business_id: str, db: Session = Depends(get_db)):
    return (
        db.query(DBTimeBlocks)
        .filter(DBTimeBlocks.business_id == business_id)
        .order_by(DBTimeBlocks.starts_at)
        .all()
    )


@router.post(
    "/", response_model=TimeBlockRead, status_code=status.HTTP_201_CREATED
)
def create_time_block(
    data: TimeBlockCreate,
    db: Session = Depends(get_db),
):
    if not db.get(DBBusinesses, data.business_id):
        raise HTTPException(status_code=404, detail="Business not found")

    obj = DBTimeBlocks(**data.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_time_block(id: int, business_id: str, db: Session = Depends(get_db)):
    obj = db.get(DBTimeBlocks, id)
    if not obj or obj.business_id != business_id:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
