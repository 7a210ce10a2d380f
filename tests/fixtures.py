"""
Test fixtures for doctor matching
"""

import uuid
from datetime import date, datetime, timezone

from sociodent.models import AppointmentRequest, Doctor, WeeklySchedule

# 2024-06-17 is a Monday
MONDAY = date(2024, 6, 17)
TUESDAY = date(2024, 6, 18)
SUNDAY = date(2024, 6, 23)

FIXED_NOW = datetime(2024, 6, 10, 9, 30, tzinfo=timezone.utc)

WEEKDAYS_ONLY = {
    'monday': True,
    'tuesday': True,
    'wednesday': True,
    'thursday': True,
    'friday': True,
    'saturday': False,
    'sunday': False,
}


def fixed_clock():
    return FIXED_NOW


def create_test_schedule(**kwargs):
    """Create a weekly schedule (Mon-Fri 09:00-17:00 by default)"""
    return WeeklySchedule(
        days=kwargs.get('days', WEEKDAYS_ONLY),
        start_time=kwargs.get('start_time', '09:00'),
        end_time=kwargs.get('end_time', '17:00'),
        slot_duration=kwargs.get('slot_duration', 30),
        break_start_time=kwargs.get('break_start_time'),
        break_end_time=kwargs.get('break_end_time'),
    )


def create_test_doctor(**kwargs):
    """Create an approved doctor with a weekday schedule"""
    schedule = kwargs['schedule'] if 'schedule' in kwargs else create_test_schedule()
    return Doctor(
        id=kwargs.get('id', 'd1'),
        name=kwargs.get('name', 'Dr. Test'),
        role=kwargs.get('role', 'doctor'),
        status=kwargs.get('status', 'approved'),
        specialization=kwargs.get('specialization', 'General'),
        area=kwargs.get('area', 'Koramangala'),
        city=kwargs.get('city'),
        pincode=kwargs.get('pincode'),
        email=kwargs.get('email'),
        schedule=schedule,
    )


def create_test_appointment(**kwargs):
    """Create a pending appointment request"""
    return AppointmentRequest(
        id=kwargs.get('id', str(uuid.uuid4())),
        patient_id=kwargs.get('patient_id', 'patient-001'),
        patient_name=kwargs.get('patient_name', 'Asha Rao'),
        consultation_type=kwargs.get('consultation_type', 'home'),
        date=kwargs.get('date', MONDAY),
        time=kwargs.get('time', '10:00'),
        area=kwargs.get('area', 'Koramangala'),
        city=kwargs.get('city'),
        pincode=kwargs.get('pincode'),
        symptoms=kwargs.get('symptoms', ''),
        status=kwargs.get('status', 'pending'),
        doctor_id=kwargs.get('doctor_id'),
        doctor_name=kwargs.get('doctor_name'),
    )
