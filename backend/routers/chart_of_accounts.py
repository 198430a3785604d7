from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import chart_of_accounts as crud
from schemas.chart_of_accounts import CoaCategory, CoaCategoryCreate, CoaCategoryUpdate, CoaCategoryNode
from utils.request_context import get_actor

router = APIRouter(
    prefix="/coa-categories",
    tags=["Chart of Accounts"],
)


@router.post("/", response_model=CoaCategory, status_code=status.HTTP_201_CREATED)
def create_category(category: CoaCategoryCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_category(db, category, user_id)


@router.get("/", response_model=List[CoaCategory])
def read_categories(category_type: Optional[str] = None, db: Session = Depends(get_db)):
    return crud.get_categories(db, category_type=category_type)


@router.get("/tree", response_model=List[CoaCategoryNode])
def read_category_tree(db: Session = Depends(get_db)):
    return crud.get_category_tree(db)


@router.post("/init-standard")
def init_standard_categories(db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    created = crud.init_standard_coa_categories(db, user_id)
    return {"created": created}


@router.get("/{category_id}", response_model=CoaCategory)
def read_category(category_id: int, db: Session = Depends(get_db)):
    db_category = crud.get_category(db, category_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return db_category


@router.put("/{category_id}", response_model=CoaCategory)
def update_category(category_id: int, category: CoaCategoryUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    db_category = crud.update_category(db, category_id, category, user_id)
    if db_category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return db_category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_category(db, category_id, user_id):
        raise HTTPException(status_code=404, detail="Category not found")
