from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import models, schemas
from ..deps import get_current_user, get_storage
from ..storage import Storage

router = APIRouter(prefix="/api/clinical-notes", tags=["clinical-notes"])


@router.get("", response_model=List[schemas.ClinicalNoteWithDetails])
def list_clinical_notes(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_clinical_notes()


@router.get("/patient/{patient_id}", response_model=List[schemas.ClinicalNoteWithDetails])
def clinical_notes_by_patient(
    patient_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_clinical_notes_by_patient(patient_id)


@router.get("/{note_id}", response_model=schemas.ClinicalNoteWithDetails)
def get_clinical_note(
    note_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    note = storage.get_clinical_note(note_id)
    if not note:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinical note not found")
    return note


@router.post("", response_model=schemas.ClinicalNoteOut, status_code=status.HTTP_201_CREATED)
def create_clinical_note(
    payload: schemas.ClinicalNoteCreate,
    storage: Storage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
):
    return storage.create_clinical_note(payload, caller_id=user.id)


@router.put("/{note_id}", response_model=schemas.ClinicalNoteOut)
def update_clinical_note(
    note_id: int,
    payload: schemas.ClinicalNoteUpdate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    note = storage.update_clinical_note(note_id, payload)
    if not note:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clinical note not found")
    return note


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_clinical_note(
    note_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    storage.delete_clinical_note(note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
