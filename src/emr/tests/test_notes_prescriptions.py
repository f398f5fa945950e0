from datetime import date, time

import pytest

from emr import models, schemas
from emr.exceptions import DataIntegrityError, ReferentialIntegrityError


def _note(storage, patient, doctor, **overrides):
    fields = {
        "patient_id": patient.id,
        "doctor_id": doctor.id,
        "title": "Follow-up",
        "content": "Blood pressure within range.",
        "type": "progress-note",
    }
    fields.update(overrides)
    return storage.create_clinical_note(schemas.ClinicalNoteCreate(**fields))


def _prescription(storage, patient, doctor, **overrides):
    fields = {
        "patient_id": patient.id,
        "doctor_id": doctor.id,
        "medication_name": "Amoxicillin",
        "dosage": "500mg",
        "frequency": "3x daily",
        "duration": "7 days",
        "start_date": date(2024, 6, 1),
    }
    fields.update(overrides)
    return storage.create_prescription(schemas.PrescriptionCreate(**fields))


class TestClinicalNotes:
    def test_note_without_appointment_embeds_none(self, storage, patient, doctor):
        note = _note(storage, patient, doctor)

        read = storage.get_clinical_note(note.id)
        assert read.appointment is None
        assert read.patient.id == patient.id
        assert read.doctor.id == doctor.id

    def test_note_with_appointment_embeds_it(self, storage, patient, doctor, make_appointment):
        appointment = make_appointment()
        note = _note(storage, patient, doctor, appointment_id=appointment.id, type="diagnosis")

        read = storage.get_clinical_note(note.id)
        assert read.appointment is not None
        assert read.appointment.id == appointment.id
        assert read.appointment.date == date(2024, 6, 1)

    def test_list_by_patient_filters(self, storage, patient, doctor):
        other = storage.create_patient(schemas.PatientCreate(first_name="Grace", last_name="Hopper"))
        mine = _note(storage, patient, doctor)
        _note(storage, other, doctor)

        listed = storage.list_clinical_notes_by_patient(patient.id)
        assert [n.id for n in listed] == [mine.id]
        assert len(storage.list_clinical_notes()) == 2

    def test_unknown_appointment_is_rejected(self, storage, patient, doctor):
        with pytest.raises(ReferentialIntegrityError):
            _note(storage, patient, doctor, appointment_id=404)
        assert storage.list_clinical_notes() == []

    def test_update_changes_only_content(self, storage, patient, doctor):
        note = _note(storage, patient, doctor)

        updated = storage.update_clinical_note(note.id, schemas.ClinicalNoteUpdate(content="Improving."))
        assert updated.content == "Improving."
        assert updated.title == "Follow-up"
        assert updated.type == "progress-note"

    def test_delete_is_idempotent(self, storage, patient, doctor):
        note = _note(storage, patient, doctor)

        assert storage.delete_clinical_note(note.id) is True
        assert storage.delete_clinical_note(note.id) is False

    def test_unknown_note_type_is_rejected(self, patient, doctor):
        with pytest.raises(ValueError):
            schemas.ClinicalNoteCreate(
                patient_id=patient.id, doctor_id=doctor.id, title="x", content="y", type="gossip",
            )


class TestPrescriptions:
    def test_refills_default_to_zero(self, storage, patient, doctor):
        prescription = _prescription(storage, patient, doctor)

        assert prescription.refills_remaining == 0
        assert prescription.status == "active"
        assert prescription.end_date is None

    def test_null_refills_are_stored_as_zero(self, storage, patient, doctor):
        prescription = _prescription(storage, patient, doctor, refills_remaining=None)
        assert prescription.refills_remaining == 0

    def test_negative_refills_are_rejected(self, patient, doctor):
        with pytest.raises(ValueError):
            schemas.PrescriptionCreate(
                patient_id=patient.id, doctor_id=doctor.id, medication_name="Ibuprofen",
                dosage="200mg", frequency="daily", duration="5 days",
                start_date=date(2024, 6, 1), refills_remaining=-1,
            )

    def test_read_model_embeds_appointment(self, storage, patient, doctor, make_appointment):
        appointment = make_appointment()
        prescription = _prescription(storage, patient, doctor, appointment_id=appointment.id)

        read = storage.get_prescription(prescription.id)
        assert read.appointment.id == appointment.id
        assert read.patient.first_name == "Ada"

    def test_list_by_patient_newest_first(self, storage, patient, doctor):
        first = _prescription(storage, patient, doctor)
        second = _prescription(storage, patient, doctor, medication_name="Ibuprofen")

        listed = storage.list_prescriptions_by_patient(patient.id)
        assert [p.id for p in listed] == [second.id, first.id]
        assert storage.list_prescriptions_by_patient(patient.id + 1) == []

    def test_discontinue(self, storage, patient, doctor):
        prescription = _prescription(storage, patient, doctor, refills_remaining=2)

        updated = storage.update_prescription(
            prescription.id, schemas.PrescriptionUpdate(status="discontinued", end_date=date(2024, 6, 5))
        )
        assert updated.status == "discontinued"
        assert updated.end_date == date(2024, 6, 5)
        assert updated.refills_remaining == 2

    def test_missing_prescription(self, storage):
        assert storage.get_prescription(1) is None
        assert storage.update_prescription(1, schemas.PrescriptionUpdate(dosage="1mg")) is None
        assert storage.delete_prescription(1) is False


def test_read_model_with_dangling_reference_raises(storage, doctor):
    orphan = models.Appointment(
        id=99,
        patient_id=12345,
        doctor_id=doctor.id,
        date=date(2024, 6, 1),
        time=time(9, 0),
        type="checkup",
        status="scheduled",
        duration="30",
    )

    with pytest.raises(DataIntegrityError) as excinfo:
        storage.read_models.appointments_with_patient([orphan])
    assert excinfo.value.details["patient"] == 12345


def test_read_models_batch_references(storage, patient, doctor, make_appointment):
    for hour in (9, 10, 11):
        make_appointment(time=time(hour, 0))

    listed = storage.list_appointments()
    assert len(listed) == 3
    assert {a.patient.id for a in listed} == {patient.id}
    assert {a.doctor.id for a in listed} == {doctor.id}
