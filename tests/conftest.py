"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))

from fixtures.generate_events import generate_month_payload  # noqa: E402


@pytest.fixture
def blood_drive_record():
    """Raw blood drive record as sent by the backend."""
    return {
        "Event_ID": "E1",
        "Event_Title": "Barangay Blood Drive",
        "Start_Date": "2025-03-15T09:00:00",
        "End_Date": "2025-03-15T15:00:00",
        "Category": "BloodDrive",
        "categoryData": {"Target_Donation": 120},
        "Location": "Naga City Hall",
        "coordinatorName": "Maria Santos",
        "requesterName": "Juan Dela Cruz",
    }


@pytest.fixture
def training_record():
    """Raw training record carrying an unrelated numeric target field."""
    return {
        "Event_ID": "T1",
        "Event_Title": "Phlebotomy Training",
        "Start_Date": "2025-03-13",
        "Category": "Training",
        "Target_Donation": 500,
        "Location": "BTSC Conference Room",
        "coordinatorName": "Ana Reyes",
    }


@pytest.fixture
def month_payload():
    """Seeded Faker payload for March 2025 in the {success, data} envelope."""
    return generate_month_payload(2025, 2, count=25, seed=1234)


@pytest.fixture
def local_timezone(monkeypatch):
    """Set the calendar zone used for local dates."""

    def _set(zone: str):
        monkeypatch.setattr("core.dates.CALENDAR_TIMEZONE", zone)

    return _set
