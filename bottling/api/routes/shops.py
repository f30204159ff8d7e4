from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bottling.db.database import get_db
from bottling.models.inventory import Shop
from bottling.schemas.inventory import ShopCreate, ShopOut

router = APIRouter(prefix="/shops", tags=["Shops"])


@router.post("", response_model=ShopOut, status_code=status.HTTP_201_CREATED)
def create_shop(payload: ShopCreate, db: Session = Depends(get_db)):
    shop = Shop(
        code=payload.code.strip().upper(),
        name=payload.name.strip(),
        location=(payload.location or "").strip() or None,
    )
    db.add(shop)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Shop code already exists") from exc
    db.refresh(shop)
    return shop


@router.get("", response_model=list[ShopOut])
def list_shops(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    query = select(Shop)
    if not include_inactive:
        query = query.where(Shop.is_active.is_(True))
    return list(db.scalars(query.order_by(Shop.name.asc())).all())


@router.delete("/{shop_id}", response_model=ShopOut)
def archive_shop(shop_id: int, db: Session = Depends(get_db)):
    shop = db.get(Shop, shop_id)
    if not shop:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    shop.is_active = False
    db.commit()
    db.refresh(shop)
    return shop
