from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from crud import accounts as crud
from crud import ledger
from schemas.accounts import (
    Account as AccountSchema,
    AccountCreate,
    AccountUpdate,
    AccountCurrencyBalance as AccountCurrencyBalanceSchema,
    AccountMovementRequest,
    AccountTransaction as AccountTransactionSchema,
    AccountReconciliation,
)
from utils.request_context import get_actor

router = APIRouter(prefix="/accounts", tags=["Accounts"])


@router.post("/", response_model=AccountSchema, status_code=status.HTTP_201_CREATED)
def create_account(account: AccountCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    return crud.create_account(db, account, user_id)


@router.get("/", response_model=List[AccountSchema])
def read_accounts(
    account_type: Optional[str] = None,
    coa_category_id: Optional[int] = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return crud.get_accounts(db, account_type=account_type, coa_category_id=coa_category_id,
                             active_only=active_only, skip=skip, limit=limit)


@router.get("/{account_id}", response_model=AccountSchema)
def read_account(account_id: int, db: Session = Depends(get_db)):
    db_account = crud.get_account(db, account_id)
    if db_account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return db_account


@router.put("/{account_id}", response_model=AccountSchema)
def update_account(account_id: int, account: AccountUpdate, db: Session = Depends(get_db),
                   user_id: str = Depends(get_actor)):
    db_account = crud.update_account(db, account_id, account, user_id)
    if db_account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    return db_account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(account_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    if not crud.delete_account(db, account_id, user_id):
        raise HTTPException(status_code=404, detail="Account not found")


@router.post("/{account_id}/deposit", response_model=AccountTransactionSchema, status_code=status.HTTP_201_CREATED)
def deposit(account_id: int, request: AccountMovementRequest, db: Session = Depends(get_db),
            user_id: str = Depends(get_actor)):
    """Deposit into one currency of the account; is_full deposits the account's whole current balance."""
    return ledger.deposit_account(db, account_id, request, user_id)


@router.post("/{account_id}/withdraw", response_model=AccountTransactionSchema, status_code=status.HTTP_201_CREATED)
def withdraw(account_id: int, request: AccountMovementRequest, db: Session = Depends(get_db),
             user_id: str = Depends(get_actor)):
    """Withdraw from one currency of the account; is_full drains what that currency can cover."""
    return ledger.withdraw_account(db, account_id, request, user_id)


@router.get("/{account_id}/transactions", response_model=List[AccountTransactionSchema])
def read_account_transactions(account_id: int, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return ledger.get_account_transactions(db, account_id, skip=skip, limit=limit)


@router.get("/{account_id}/balances", response_model=List[AccountCurrencyBalanceSchema])
def read_account_balances(account_id: int, db: Session = Depends(get_db)):
    return ledger.get_all_account_balances(db, account_id)


@router.get("/{account_id}/balance")
def read_account_balance(account_id: int, currency_id: Optional[int] = None, db: Session = Depends(get_db)):
    if currency_id is not None:
        balance = ledger.get_account_balance_by_currency(db, account_id, currency_id)
    else:
        balance = ledger.get_account_balance(db, account_id)
    return {"account_id": account_id, "currency_id": currency_id, "balance": balance}


@router.get("/{account_id}/reconcile/{currency_id}", response_model=AccountReconciliation)
def reconcile_account(account_id: int, currency_id: int, db: Session = Depends(get_db)):
    return ledger.reconcile_account_balance(db, account_id, currency_id)
