from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from .. import models, schemas
from ..deps import get_current_user, get_storage
from ..storage import Storage

router = APIRouter(prefix="/api/prescriptions", tags=["prescriptions"])


@router.get("", response_model=List[schemas.PrescriptionWithDetails])
def list_prescriptions(
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_prescriptions()


@router.get("/patient/{patient_id}", response_model=List[schemas.PrescriptionWithDetails])
def prescriptions_by_patient(
    patient_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    return storage.list_prescriptions_by_patient(patient_id)


@router.get("/{prescription_id}", response_model=schemas.PrescriptionWithDetails)
def get_prescription(
    prescription_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    prescription = storage.get_prescription(prescription_id)
    if not prescription:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prescription not found")
    return prescription


@router.post("", response_model=schemas.PrescriptionOut, status_code=status.HTTP_201_CREATED)
def create_prescription(
    payload: schemas.PrescriptionCreate,
    storage: Storage = Depends(get_storage),
    user: models.User = Depends(get_current_user),
):
    return storage.create_prescription(payload, caller_id=user.id)


@router.put("/{prescription_id}", response_model=schemas.PrescriptionOut)
def update_prescription(
    prescription_id: int,
    payload: schemas.PrescriptionUpdate,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    prescription = storage.update_prescription(prescription_id, payload)
    if not prescription:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Prescription not found")
    return prescription


@router.delete("/{prescription_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_prescription(
    prescription_id: int,
    storage: Storage = Depends(get_storage),
    _user: models.User = Depends(get_current_user),
):
    storage.delete_prescription(prescription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
