"""
Tests for schedule import and roster / chat-log export
"""

import io
from datetime import date

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from volunteer_portal.core.db import Base
from volunteer_portal.models import Event, Profile
from volunteer_portal.schemas.signup import SignupCreate
from volunteer_portal.services.errors import NotFoundError
from volunteer_portal.services.excel_service import ExcelService
from volunteer_portal.services.repositories import ChatLogRepo
from volunteer_portal.services.signup_service import SignupService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_excel.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

def workbook(df):
    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, engine='openpyxl')
    return buffer.getvalue()

def test_template_parses_back():
    success, errors, rows = ExcelService.parse_schedule_upload(ExcelService.create_schedule_template())

    assert success is True
    assert errors == []
    assert len(rows) == 3
    assert rows[0].day == "Friday"
    assert rows[0].activity == "Registration desk"
    assert rows[0].notes == "Bring a laptop"
    assert rows[1].notes is None

def test_missing_columns():
    df = pd.DataFrame({'Day': ['Friday'], 'Room': ['Lobby']})

    success, errors, rows = ExcelService.parse_schedule_upload(workbook(df))

    assert success is False
    assert "Missing required columns: time, event" in errors[0]
    assert rows == []

def test_column_names_are_case_insensitive_and_blank_rows_skipped():
    df = pd.DataFrame({
        ' DAY ': ['Saturday', None],
        'time': ['09:00', None],
        'Event': ['Ramp tours', None],
    })

    success, _, rows = ExcelService.parse_schedule_upload(workbook(df))

    assert success is True
    assert len(rows) == 1
    assert rows[0].time == "09:00"
    assert rows[0].room is None

def test_empty_schedule_is_rejected():
    df = pd.DataFrame(columns=['Day', 'Time', 'Event'])

    success, errors, _ = ExcelService.parse_schedule_upload(workbook(df))

    assert success is False
    assert errors == ["The schedule has no rows."]

def test_unreadable_file():
    success, errors, _ = ExcelService.parse_schedule_upload(b"not a workbook")

    assert success is False
    assert errors[0].startswith("Error reading Excel file")

def test_export_roster(db_session):
    event = Event(title="Gala", start_date=date(2026, 9, 5), end_date=date(2026, 9, 5),
                  timezone="America/Los_Angeles", capacity=1)
    alice = Profile(display_name="Alice", api_token="a")
    bob = Profile(discord_username="bob#1", api_token="b")
    db_session.add_all([event, alice, bob])
    db_session.commit()
    SignupService.sign_up(db_session, alice, SignupCreate(event_id=event.id, is_local=True))
    SignupService.sign_up(db_session, bob, SignupCreate(event_id=event.id))

    df = pd.read_excel(io.BytesIO(ExcelService.export_roster(event.id, db_session)))

    assert list(df['Name']) == ["Alice", "bob#1"]
    assert list(df['Status']) == ["Confirmed", "Waitlist"]
    assert df['Waitlist Position'].iloc[1] == 1
    assert df['Local'].iloc[0] == "Yes"

def test_export_roster_unknown_event(db_session):
    with pytest.raises(NotFoundError):
        ExcelService.export_roster(404, db_session)

def test_chat_log_csv_newest_first(db_session):
    ChatLogRepo.add_exchange(db_session, None, "Where do I park?", "Lot B, \"behind\" the hangar.", "s-1")

    csv_text = ExcelService.export_chat_log_csv(db_session)
    df = pd.read_csv(io.StringIO(csv_text), dtype=str, keep_default_na=False)

    assert csv_text.splitlines()[0] == "created_at,user_id,session_id,role,content"
    assert list(df['role']) == ["assistant", "user"]
    assert df['content'].iloc[0] == 'Lot B, "behind" the hangar.'
    assert df['user_id'].iloc[0] == ""
    assert df['session_id'].iloc[0] == "s-1"

def test_chat_log_csv_empty(db_session):
    assert ExcelService.export_chat_log_csv(db_session) == "created_at,user_id,session_id,role,content\n"
