import logging
import uuid
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from . import models, schemas
from .config import settings
from .exceptions import ReferentialIntegrityError
from .read_models import ReadModelAssembler
from .repositories import (
    AppointmentRepository,
    ClinicalNoteRepository,
    PatientRepository,
    PrescriptionRepository,
    STAFF_ID_PREFIX,
    UserRepository,
)

logger = logging.getLogger(__name__)


class Storage:
    """Entity operations exposed to the route handlers.

    Writes go straight to one repository and return the bare record. Reads of
    appointments, clinical notes and prescriptions return read models with the
    referenced patient, doctor and appointment embedded.
    """

    def __init__(self, db: Session):
        self.users = UserRepository(db)
        self.patients = PatientRepository(db)
        self.appointments = AppointmentRepository(db)
        self.clinical_notes = ClinicalNoteRepository(db)
        self.prescriptions = PrescriptionRepository(db)
        self.read_models = ReadModelAssembler(self.users, self.patients, self.appointments)

    # --- Users ---
    def get_user(self, user_id: str) -> Optional[models.User]:
        return self.users.get_by_id(user_id)

    def upsert_user(self, profile: schemas.UserUpsert) -> models.User:
        user = self.users.upsert(profile.to_fields())
        logger.info(f"Upserted user {user.id}")
        return user

    # --- Staff ---
    def list_staff(self) -> List[models.User]:
        return self.users.find()

    def create_staff(self, data: schemas.StaffCreate) -> models.User:
        # No identity provider account is known yet; logins asserting this email resolve to the row
        user = self.users.insert({"id": f"{STAFF_ID_PREFIX}{uuid.uuid4()}", **data.model_dump()})
        logger.info(f"Added staff member {user.id} ({user.role})")
        return user

    def update_staff(self, user_id: str, data: schemas.StaffUpdate) -> Optional[models.User]:
        return self.users.update(user_id, data.to_fields())

    def delete_staff(self, user_id: str) -> bool:
        deleted = self.users.delete(user_id)
        if deleted:
            logger.info(f"Removed staff member {user_id}")
        return deleted

    # --- Patients ---
    def list_patients(self) -> List[models.Patient]:
        return self.patients.find()

    def get_patient(self, patient_id: int) -> Optional[models.Patient]:
        return self.patients.get_by_id(patient_id)

    def create_patient(self, data: schemas.PatientCreate) -> models.Patient:
        patient = self.patients.insert(data.model_dump())
        logger.info(f"Created patient {patient.id}")
        return patient

    def update_patient(self, patient_id: int, data: schemas.PatientUpdate) -> Optional[models.Patient]:
        return self.patients.update(patient_id, data.to_fields())

    def delete_patient(self, patient_id: int) -> bool:
        deleted = self.patients.delete(patient_id)
        if deleted:
            logger.info(f"Deleted patient {patient_id}")
        return deleted

    def search_patients(self, query: str) -> List[models.Patient]:
        return self.patients.search(query)

    # --- Appointments ---
    def list_appointments(self) -> List[schemas.AppointmentWithPatient]:
        return self.read_models.appointments_with_patient(self.appointments.find())

    def get_appointment(self, appointment_id: int) -> Optional[schemas.AppointmentWithPatient]:
        return self.read_models.appointment_with_patient(self.appointments.get_by_id(appointment_id))

    def create_appointment(
        self, data: schemas.AppointmentCreate, caller_id: Optional[str] = None
    ) -> models.Appointment:
        appointment = self.appointments.insert(_with_doctor(data.model_dump(), caller_id))
        logger.info(f"Scheduled appointment {appointment.id} for patient {appointment.patient_id}")
        return appointment

    def update_appointment(
        self, appointment_id: int, data: schemas.AppointmentUpdate
    ) -> Optional[models.Appointment]:
        return self.appointments.update(appointment_id, data.to_fields())

    def delete_appointment(self, appointment_id: int) -> bool:
        return self.appointments.delete(appointment_id)

    def list_appointments_by_date(self, day: date) -> List[schemas.AppointmentWithPatient]:
        return self.read_models.appointments_with_patient(self.appointments.list_by_date(day))

    def list_appointments_by_doctor(self, doctor_id: str) -> List[schemas.AppointmentWithPatient]:
        return self.read_models.appointments_with_patient(self.appointments.list_by_doctor(doctor_id))

    def list_todays_appointments(self, today: Optional[date] = None) -> List[schemas.AppointmentWithPatient]:
        return self.list_appointments_by_date(today or date.today())

    # --- Clinical notes ---
    def list_clinical_notes(self) -> List[schemas.ClinicalNoteWithDetails]:
        return self.read_models.clinical_notes_with_details(self.clinical_notes.find())

    def get_clinical_note(self, note_id: int) -> Optional[schemas.ClinicalNoteWithDetails]:
        return self.read_models.clinical_note_with_details(self.clinical_notes.get_by_id(note_id))

    def create_clinical_note(
        self, data: schemas.ClinicalNoteCreate, caller_id: Optional[str] = None
    ) -> models.ClinicalNote:
        note = self.clinical_notes.insert(_with_doctor(data.model_dump(), caller_id))
        logger.info(f"Created clinical note {note.id} for patient {note.patient_id}")
        return note

    def update_clinical_note(
        self, note_id: int, data: schemas.ClinicalNoteUpdate
    ) -> Optional[models.ClinicalNote]:
        return self.clinical_notes.update(note_id, data.to_fields())

    def delete_clinical_note(self, note_id: int) -> bool:
        return self.clinical_notes.delete(note_id)

    def list_clinical_notes_by_patient(self, patient_id: int) -> List[schemas.ClinicalNoteWithDetails]:
        return self.read_models.clinical_notes_with_details(self.clinical_notes.list_by_patient(patient_id))

    # --- Prescriptions ---
    def list_prescriptions(self) -> List[schemas.PrescriptionWithDetails]:
        return self.read_models.prescriptions_with_details(self.prescriptions.find())

    def get_prescription(self, prescription_id: int) -> Optional[schemas.PrescriptionWithDetails]:
        return self.read_models.prescription_with_details(self.prescriptions.get_by_id(prescription_id))

    def create_prescription(
        self, data: schemas.PrescriptionCreate, caller_id: Optional[str] = None
    ) -> models.Prescription:
        prescription = self.prescriptions.insert(_with_doctor(data.model_dump(), caller_id))
        logger.info(f"Created prescription {prescription.id} for patient {prescription.patient_id}")
        return prescription

    def update_prescription(
        self, prescription_id: int, data: schemas.PrescriptionUpdate
    ) -> Optional[models.Prescription]:
        return self.prescriptions.update(prescription_id, data.to_fields())

    def delete_prescription(self, prescription_id: int) -> bool:
        return self.prescriptions.delete(prescription_id)

    def list_prescriptions_by_patient(self, patient_id: int) -> List[schemas.PrescriptionWithDetails]:
        return self.read_models.prescriptions_with_details(self.prescriptions.list_by_patient(patient_id))

    # --- Dashboard ---
    def get_dashboard_metrics(self, today: Optional[date] = None) -> schemas.DashboardMetrics:
        today = today or date.today()
        return schemas.DashboardMetrics(
            today_appointments=self.appointments.count(models.Appointment.date == today),
            active_patients=self.patients.count(models.Patient.status == models.PatientStatus.ACTIVE.value),
            # No creation path produces this type today, so the count stays at zero
            pending_reports=self.clinical_notes.count(
                models.ClinicalNote.type == models.NoteType.PENDING_REPORT.value
            ),
            monthly_revenue=settings.monthly_revenue,
        )


def _with_doctor(fields: dict, caller_id: Optional[str]) -> dict:
    if not fields.get("doctor_id"):
        fields["doctor_id"] = caller_id
    if not fields["doctor_id"]:
        raise ReferentialIntegrityError("A doctor is required", {"field": "doctor_id"})
    return fields
