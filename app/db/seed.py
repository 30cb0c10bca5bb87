import logging
from sqlalchemy import func
from sqlmodel import Session, select

from .models.health.doctor import Doctor, encode_list

logger = logging.getLogger(__name__)

# name, specialty, years, rating, location, fee, gender, languages, clinic, days
DEMO_DOCTORS = [
    ("Dr. Ananya Rao", "General Physician", 12, 4.8, "Hyderabad", 500, "Female", ["English", "Telugu"], "Apollo Hospital", ["Monday", "Wednesday", "Friday"]),
    ("Dr. Vikram Mehta", "Internal Medicine", 20, 4.6, "Mumbai", 900, "Male", ["English", "Hindi"], "Apollo Hospital", ["Tuesday", "Thursday"]),
    ("Dr. Sana Qureshi", "General Physician", 6, 4.2, "Bangalore", 300, "Female", ["English", "Hindi"], "Other Clinics", ["Monday", "Saturday"]),
    ("Dr. Rahul Verma", "Internal Medicine", 15, 4.5, "Delhi", 1200, "Male", ["Hindi"], "Other Clinics", ["Wednesday", "Sunday"]),
    ("Dr. Kavya Reddy", "General Physician", 3, 3.9, "Hyderabad", 250, "Female", ["Telugu"], "Other Clinics", ["Friday"]),
    ("Dr. Arjun Nair", "Internal Medicine", 9, 4.1, "Bangalore", 700, "Male", ["English"], "Apollo Hospital", ["Monday", "Tuesday"]),
    ("Dr. Meera Iyer", "General Physician", 25, 4.9, "Chennai", 1000, "Female", ["English", "Tamil"], "Apollo Hospital", ["Thursday", "Saturday"]),
    ("Dr. Imran Sheikh", "General Physician", 4, 3.7, "Mumbai", None, "Male", ["Hindi", "English"], "Other Clinics", ["Sunday"]),
]


def seed_demo_doctors(session: Session) -> int:
    """Insert the demo catalogue when the doctors table is empty; returns rows added."""
    existing = session.exec(select(func.count()).select_from(Doctor)).one()
    if existing:
        logger.info(f"Skipping demo seed, {existing} doctors already present")
        return 0

    for name, specialty, years, rating, location, fee, gender, languages, clinic, days in DEMO_DOCTORS:
        session.add(Doctor(
            name=name,
            specialty=specialty,
            experience=years,
            rating=rating,
            location=location,
            availability="Available " + ", ".join(days),
            fee=fee,
            gender=gender,
            languages=encode_list(languages),
            clinic_name=clinic,
            available_days=encode_list(days),
        ))
    session.commit()
    logger.info(f"Seeded {len(DEMO_DOCTORS)} demo doctors")
    return len(DEMO_DOCTORS)
