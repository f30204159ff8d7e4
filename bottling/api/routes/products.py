from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bottling.db.database import get_db
from bottling.schemas.inventory import AssignAllRequest, AssignReportOut, UnassignAllRequest, UnassignReportOut
from bottling.services.allocations import assign_all_to_shop, unassign_all_from_shop

router = APIRouter(prefix="/products", tags=["Products"])


@router.post("/assign-all-to-shop", response_model=AssignReportOut)
def assign_all_products_to_shop(payload: AssignAllRequest, db: Session = Depends(get_db)):
    return assign_all_to_shop(
        db,
        shop_id=payload.shop_id,
        default_quantity=payload.default_quantity,
        min_level=payload.min_level,
        max_level=payload.max_level,
        update_existing=payload.update_existing,
    )


@router.post("/unassign-all-from-shop", response_model=UnassignReportOut)
def unassign_all_products_from_shop(payload: UnassignAllRequest, db: Session = Depends(get_db)):
    return unassign_all_from_shop(db, shop_id=payload.shop_id)
