from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from .. import models, schemas
from ..deps import get_current_user, get_storage
from ..storage import Storage

router = APIRouter(prefix="/api/patients", tags=["patients"])


@router.get("", response_model=List[schemas.PatientOut])
def list_patients(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_patients()


@router.get("/search", response_model=List[schemas.PatientOut])
def search_patients(
    q: str = Query(default=""),
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    """Case-insensitive match on first name, last name or email."""
    query = q.strip()
    if not query:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required")
    return storage.search_patients(query)


@router.get("/{patient_id}", response_model=schemas.PatientOut)
def get_patient(
    patient_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    patient = storage.get_patient(patient_id)
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.post("", response_model=schemas.PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: schemas.PatientCreate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.create_patient(payload)


@router.put("/{patient_id}", response_model=schemas.PatientOut)
def update_patient(
    patient_id: int,
    payload: schemas.PatientUpdate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    patient = storage.update_patient(patient_id, payload)
    if not patient:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Patient not found")
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_patient(
    patient_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    storage.delete_patient(patient_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
