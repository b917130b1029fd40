"""Owner-scoped medical history entries. File attachments are not stored here."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.dependencies import current_user_id
from app.types.api_schemas import MedicalRecordCreate, MedicalRecordUpdate
from app.types.reminder_contract import MedicalRecordEntry
import db

router = APIRouter(prefix="/api/medical-records", tags=["medical-records"])


@router.get("", response_model=List[MedicalRecordEntry])
async def list_records(user_id: str = Depends(current_user_id)):
    return await db.list_medical_records(user_id)


@router.post("", response_model=MedicalRecordEntry, status_code=status.HTTP_201_CREATED)
async def create_record(body: MedicalRecordCreate, user_id: str = Depends(current_user_id)):
    return await db.create_medical_record(user_id, body.model_dump())


@router.put("/{record_id}", response_model=MedicalRecordEntry)
async def update_record(
    record_id: str, body: MedicalRecordUpdate, user_id: str = Depends(current_user_id)
):
    updated = await db.update_medical_record(
        user_id, record_id, body.model_dump(exclude_unset=True)
    )
    if updated is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "medical record not found")
    return updated


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_record(record_id: str, user_id: str = Depends(current_user_id)):
    if not await db.delete_medical_record(user_id, record_id):
        raise HTTPException(status.HTTP_404_NOT_FOUND, "medical record not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
