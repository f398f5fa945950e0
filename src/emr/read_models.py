"""Assembles denormalized read models from bare records.

Related rows are batch-fetched through the single-table repositories: one
query per referenced table per read, whatever the number of records.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import inspect

from . import schemas
from .exceptions import DataIntegrityError
from .repositories import AppointmentRepository, PatientRepository, UserRepository


def _columns(record) -> Dict[str, Any]:
    return {attr.key: getattr(record, attr.key) for attr in inspect(record).mapper.column_attrs}


class ReadModelAssembler:
    def __init__(
        self,
        users: UserRepository,
        patients: PatientRepository,
        appointments: AppointmentRepository,
    ):
        self.users = users
        self.patients = patients
        self.appointments = appointments

    def appointments_with_patient(self, records: Iterable) -> List[schemas.AppointmentWithPatient]:
        records = list(records)
        patients = self.patients.get_many(r.patient_id for r in records)
        doctors = self.users.get_many(r.doctor_id for r in records)
        return [
            schemas.AppointmentWithPatient.model_validate({
                **_columns(record),
                "patient": _require(patients, record.patient_id, "patient", record, schemas.PatientOut),
                "doctor": _require(doctors, record.doctor_id, "doctor", record, schemas.UserOut),
            })
            for record in records
        ]

    def appointment_with_patient(self, record) -> Optional[schemas.AppointmentWithPatient]:
        if record is None:
            return None
        return self.appointments_with_patient([record])[0]

    def clinical_notes_with_details(self, records: Iterable) -> List[schemas.ClinicalNoteWithDetails]:
        return self._with_details(records, schemas.ClinicalNoteWithDetails)

    def clinical_note_with_details(self, record) -> Optional[schemas.ClinicalNoteWithDetails]:
        if record is None:
            return None
        return self.clinical_notes_with_details([record])[0]

    def prescriptions_with_details(self, records: Iterable) -> List[schemas.PrescriptionWithDetails]:
        return self._with_details(records, schemas.PrescriptionWithDetails)

    def prescription_with_details(self, record) -> Optional[schemas.PrescriptionWithDetails]:
        if record is None:
            return None
        return self.prescriptions_with_details([record])[0]

    def _with_details(self, records: Iterable, read_model) -> list:
        records = list(records)
        patients = self.patients.get_many(r.patient_id for r in records)
        doctors = self.users.get_many(r.doctor_id for r in records)
        appointments = self.appointments.get_many(r.appointment_id for r in records)

        assembled = []
        for record in records:
            appointment = None
            if record.appointment_id is not None:
                appointment = _require(appointments, record.appointment_id, "appointment", record, schemas.AppointmentOut)
            assembled.append(read_model.model_validate({
                **_columns(record),
                "patient": _require(patients, record.patient_id, "patient", record, schemas.PatientOut),
                "doctor": _require(doctors, record.doctor_id, "doctor", record, schemas.UserOut),
                "appointment": appointment,
            }))
        return assembled


def _require(rows: Dict[Any, Any], key, kind: str, owner, read_model):
    row = rows.get(key)
    if row is None:
        raise DataIntegrityError(
            f"{owner.__tablename__} {owner.id} references missing {kind} {key}",
            {"table": owner.__tablename__, "id": owner.id, kind: key},
        )
    return read_model.model_validate(row)
