"""Seed sample wards and emergency contacts for local development (Async version).

Usage:
    python fastapi-backend/scripts/seed_reference_data.py

Existing wards (matched by pincode) are left untouched, so the script can be
run repeatedly.
"""

import asyncio
import sys
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.append(str(ROOT / "fastapi-backend"))

from sqlmodel import select

from warddost.database import async_session_factory, init_db
from warddost.models import EmergencyContact, Ward

WARDS = [
    {
        "name": "Koramangala",
        "pincode": "560034",
        "basin": "Koramangala-Challaghatta Valley",
        "avg_rainfall_mm": 120.0,
        "drain_capacity_mm": 80.0,
        "risk_level": "high",
        "silt_management_status": "Desilting pending",
        "last_maintenance_date": date(2026, 3, 14),
        "rating": 2.5,
    },
    {
        "name": "Indiranagar",
        "pincode": "560038",
        "basin": "Koramangala-Challaghatta Valley",
        "avg_rainfall_mm": 95.0,
        "drain_capacity_mm": 110.0,
        "risk_level": "medium",
        "silt_management_status": "Desilted",
        "last_maintenance_date": date(2026, 5, 2),
        "rating": 3.5,
    },
    {
        "name": "Malleshwaram",
        "pincode": "560003",
        "basin": "Vrishabhavathi Valley",
        "avg_rainfall_mm": 50.0,
        "drain_capacity_mm": 80.0,
        "risk_level": "low",
        "silt_management_status": "Desilted",
        "last_maintenance_date": date(2026, 4, 20),
        "rating": 4.0,
    },
    {
        "name": "Bellandur",
        "pincode": "560103",
        "basin": "Koramangala-Challaghatta Valley",
        "risk_level": "high",
    },
]

CONTACTS = {
    "560034": [
        {"contact_type": "hospital", "name": "St. John's Medical College Hospital", "phone": "080-22065000"},
        {"contact_type": "pwd_engineer", "name": "PWD Office Koramangala", "phone": "080-25530101"},
    ],
    "560038": [
        {"contact_type": "hospital", "name": "Chinmaya Mission Hospital", "phone": "080-25280461"},
        {"contact_type": "pwd_engineer", "name": "PWD Office Indiranagar", "phone": "080-25210202"},
    ],
    "560003": [
        {"contact_type": "hospital", "name": "KC General Hospital", "phone": "080-23341000"},
    ],
}


async def main():
    print("Initializing DB...")
    await init_db()

    async with async_session_factory() as session:
        result = await session.exec(select(Ward))
        existing = {ward.pincode: ward for ward in result.all()}

        added = 0
        for fields in WARDS:
            if fields["pincode"] in existing:
                continue
            ward = Ward(**fields)
            session.add(ward)
            existing[ward.pincode] = ward
            for contact in CONTACTS.get(ward.pincode, []):
                session.add(EmergencyContact(ward_id=ward.id, **contact))
            added += 1

        await session.commit()
        print(f"Seeded {added} wards ({len(existing)} total)")


if __name__ == "__main__":
    asyncio.run(main())
