"""
Spreadsheet import/export: volunteer schedules, signup rosters and the chat log
"""

import io
from typing import List, Tuple

import pandas as pd
from sqlalchemy.orm import Session

from volunteer_portal.schemas.event import ScheduleRowIn
from volunteer_portal.services.repositories import ChatLogRepo
from volunteer_portal.services.signup_service import SignupService

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

class ExcelService:
    """Service for handling spreadsheet operations"""

    REQUIRED_SCHEDULE_COLUMNS = ['day', 'time', 'event']
    OPTIONAL_SCHEDULE_COLUMNS = ['room', 'notes']
    CHAT_LOG_COLUMNS = ['created_at', 'user_id', 'session_id', 'role', 'content']

    @staticmethod
    def create_schedule_template() -> bytes:
        """Create the schedule upload template with sample rows"""
        df = pd.DataFrame(
            [
                ['Friday', '08:00 - 12:00', 'Registration desk', 'Lobby', 'Bring a laptop'],
                ['Friday', '13:00 - 17:00', 'Career fair booth', 'Hall B', ''],
                ['Saturday', '09:00 - 11:00', 'Panel setup', 'Ballroom A', ''],
            ],
            columns=['Day', 'Time', 'Event', 'Room', 'Notes'],
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Schedule')

        return buffer.getvalue()

    @staticmethod
    def validate_schedule_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Check the required schedule columns are present (case-insensitive)"""
        errors = []

        normalized_columns = [str(col).lower().strip() for col in df.columns]
        missing_columns = [
            col for col in ExcelService.REQUIRED_SCHEDULE_COLUMNS
            if col not in normalized_columns
        ]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def parse_schedule_upload(file_content: bytes) -> Tuple[bool, List[str], List[ScheduleRowIn]]:
        """Read an uploaded schedule workbook into schedule rows"""
        try:
            df = pd.read_excel(io.BytesIO(file_content), dtype=str)
        except Exception as e:
            return False, [f"Error reading Excel file: {e}"], []

        valid, errors = ExcelService.validate_schedule_structure(df)
        if not valid:
            return False, errors, []

        column_mapping = {}
        for col in df.columns:
            col_lower = str(col).lower().strip()
            if col_lower in ExcelService.REQUIRED_SCHEDULE_COLUMNS + ExcelService.OPTIONAL_SCHEDULE_COLUMNS:
                column_mapping[col_lower] = col

        rows = []
        for _, row in df.iterrows():
            values = {}
            for key, col in column_mapping.items():
                cell = row[col]
                values[key] = None if pd.isna(cell) or str(cell).strip() == '' else str(cell).strip()
            # Skip empty rows
            if not any(values.values()):
                continue
            rows.append(ScheduleRowIn(
                day=values.get('day'),
                time=values.get('time'),
                activity=values.get('event'),
                room=values.get('room'),
                notes=values.get('notes'),
            ))

        if not rows:
            return False, ["The schedule has no rows."], []

        return True, [], rows

    @staticmethod
    def export_roster(event_id: int, db: Session) -> bytes:
        """Export an event's confirmed and waitlisted volunteers to Excel"""
        roster = SignupService.roster(db, event_id)

        data = []
        for signup in roster["confirmed"] + roster["waitlisted"]:
            data.append({
                'Name': signup.user.display_name or signup.user.discord_username or f"User {signup.user_id}",
                'Status': 'Waitlist' if signup.is_waitlisted else 'Confirmed',
                'Waitlist Position': signup.waitlist_position,
                'Role': signup.role,
                'Volunteer Status': signup.volunteer_status,
                'Phone': signup.phone,
                'Local': {True: 'Yes', False: 'No'}.get(signup.is_local, ''),
                'Flight Voucher': {True: 'Yes', False: 'No'}.get(signup.flight_voucher_requested, ''),
                'Availability': signup.availability_notes,
                'Travel Notes': signup.travel_notes,
                'Signed Up': signup.created_at.isoformat() if signup.created_at else '',
            })

        df = pd.DataFrame(data, columns=[
            'Name', 'Status', 'Waitlist Position', 'Role', 'Volunteer Status', 'Phone',
            'Local', 'Flight Voucher', 'Availability', 'Travel Notes', 'Signed Up',
        ])

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Volunteers')

        return buffer.getvalue()

    @staticmethod
    def export_chat_log_csv(db: Session, limit: int = 10000) -> str:
        """Chat log as CSV, newest first"""
        rows = [
            {
                'created_at': entry.created_at.isoformat() if entry.created_at else '',
                'user_id': '' if entry.user_id is None else str(entry.user_id),
                'session_id': entry.session_id or '',
                'role': entry.role,
                'content': entry.content,
            }
            for entry in ChatLogRepo.newest_first(db, limit=limit)
        ]
        df = pd.DataFrame(rows, columns=ExcelService.CHAT_LOG_COLUMNS, dtype=str)
        return df.to_csv(index=False, lineterminator='\n')
