from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import unit as crud
from schemas.unit import Unit, UnitCreate, UnitUpdate, UnitGroup, UnitGroupCreate
from utils.request_context import get_actor

router = APIRouter(prefix="/units", tags=["Units"])


@router.post("/groups", response_model=UnitGroup, status_code=status.HTTP_201_CREATED)
def create_unit_group(group: UnitGroupCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_unit_group(db, group, user_id)


@router.get("/groups", response_model=List[UnitGroup])
def read_unit_groups(db: Session = Depends(get_db)):
    return crud.get_unit_groups(db)


@router.post("/", response_model=Unit, status_code=status.HTTP_201_CREATED)
def create_unit(unit: UnitCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_unit(db, unit, user_id)


@router.get("/", response_model=List[Unit])
def read_units(group_id: Optional[int] = None, db: Session = Depends(get_db)):
    return crud.get_units(db, group_id=group_id)


@router.get("/{unit_id}", response_model=Unit)
def read_unit(unit_id: int, db: Session = Depends(get_db)):
    db_unit = crud.get_unit(db, unit_id)
    if db_unit is None:
        raise HTTPException(status_code=404, detail="Unit not found")
    return db_unit


@router.put("/{unit_id}", response_model=Unit)
def update_unit(unit_id: int, unit: UnitUpdate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    db_unit = crud.update_unit(db, unit_id, unit, user_id)
    if db_unit is None:
        raise HTTPException(status_code=404, detail="Unit not found")
    return db_unit


@router.delete("/{unit_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_unit(unit_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_unit(db, unit_id, user_id):
        raise HTTPException(status_code=404, detail="Unit not found")
