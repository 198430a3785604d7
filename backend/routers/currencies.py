from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from database import get_db
from crud import currency as crud
from crud import ledger
from schemas.currency import Currency, CurrencyCreate, CurrencyUpdate, ExchangeRate, ExchangeRateCreate
from utils.request_context import get_actor

router = APIRouter(prefix="/currencies", tags=["Currencies"])


@router.post("/", response_model=Currency, status_code=status.HTTP_201_CREATED)
def create_currency(currency: CurrencyCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_currency(db, currency, user_id)


@router.get("/", response_model=List[Currency])
def read_currencies(db: Session = Depends(get_db)):
    return crud.get_currencies(db)


@router.get("/base", response_model=Currency)
def read_base_currency(db: Session = Depends(get_db)):
    db_currency = ledger.get_base_currency(db)
    if db_currency is None:
        raise HTTPException(status_code=404, detail="No base currency configured")
    return db_currency


@router.post("/exchange-rates", response_model=ExchangeRate, status_code=status.HTTP_201_CREATED)
def create_exchange_rate(exchange_rate: ExchangeRateCreate, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    return crud.create_exchange_rate(db, exchange_rate, user_id)


@router.get("/exchange-rates/latest")
def read_exchange_rate(from_currency_id: int, to_currency_id: int, db: Session = Depends(get_db)):
    rate = crud.get_exchange_rate(db, from_currency_id, to_currency_id)
    if rate is None:
        raise HTTPException(status_code=404, detail="No exchange rate recorded for this currency pair")
    return {"from_currency_id": from_currency_id, "to_currency_id": to_currency_id, "rate": rate}


@router.get("/exchange-rates/history", response_model=List[ExchangeRate])
def read_exchange_rate_history(from_currency_id: int, to_currency_id: int, skip: int = 0, limit: int = 100,
                               db: Session = Depends(get_db)):
    return crud.get_exchange_rate_history(db, from_currency_id, to_currency_id, skip=skip, limit=limit)


@router.get("/{currency_id}", response_model=Currency)
def read_currency(currency_id: int, db: Session = Depends(get_db)):
    db_currency = crud.get_currency(db, currency_id)
    if db_currency is None:
        raise HTTPException(status_code=404, detail="Currency not found")
    return db_currency


@router.put("/{currency_id}", response_model=Currency)
def update_currency(currency_id: int, currency: CurrencyUpdate, db: Session = Depends(get_db),
                    user_id: str = Depends(get_actor)):
    db_currency = crud.update_currency(db, currency_id, currency, user_id)
    if db_currency is None:
        raise HTTPException(status_code=404, detail="Currency not found")
    return db_currency


@router.post("/{currency_id}/set-base", response_model=Currency)
def set_base_currency(currency_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.set_base_currency(db, currency_id, user_id)


@router.delete("/{currency_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_currency(currency_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_currency(db, currency_id, user_id):
        raise HTTPException(status_code=404, detail="Currency not found")
