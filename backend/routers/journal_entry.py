from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from database import get_db
from crud import journal_entry as crud
from schemas.journal_entry import JournalEntry, JournalEntryCreate, JournalEntryUpdate
from utils.request_context import get_actor

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)


@router.post("/", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def create_journal_entry(entry: JournalEntryCreate, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    """
    Create a journal entry. Each line moves its account's balance in the line's
    currency by debit minus credit.
    """
    return crud.create_journal_entry(db=db, entry=entry, user_id=user_id)


@router.get("/", response_model=List[JournalEntry])
def read_journal_entries(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db)
):
    return crud.get_journal_entries(db=db, start_date=start_date, end_date=end_date, account_id=account_id,
                                    skip=skip, limit=limit)


@router.get("/{entry_id}", response_model=JournalEntry)
def read_journal_entry(entry_id: int, db: Session = Depends(get_db)):
    db_entry = crud.get_journal_entry(db=db, entry_id=entry_id)
    if db_entry is None:
        raise HTTPException(status_code=404, detail="Journal entry not found")
    return db_entry


@router.put("/{entry_id}", response_model=JournalEntry)
def update_journal_entry(entry_id: int, entry: JournalEntryUpdate, db: Session = Depends(get_db),
                         user_id: str = Depends(get_actor)):
    return crud.update_journal_entry(db=db, entry_id=entry_id, entry=entry, user_id=user_id)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_journal_entry(entry_id: int, db: Session = Depends(get_db), user_id: str = Depends(get_actor)):
    crud.delete_journal_entry(db=db, entry_id=entry_id, user_id=user_id)
