# vidvault/exporter.py

import io
import logging

import pandas as pd

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    ('Name', 'fullName'),
    ('Email', 'email'),
    ('Phone', 'phone'),
    ('Organization', 'organization'),
    ('Event Type', 'eventType'),
    ('Attendees', 'attendees'),
    ('Ticket Type', 'ticketType'),
    ('Status', 'status'),
    ('Registered At', 'createdAt'),
]

XLSX_CONTENT_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'


def registrations_dataframe(registrations):
    rows = []
    for registration in registrations:
        row = {}
        for column, field in EXPORT_COLUMNS:
            value = registration.get(field, '')
            if field == 'fullName' and not value:
                value = registration.get('name', '')
            if field == 'status' and not value:
                value = 'pending'
            row[column] = value
        rows.append(row)
    return pd.DataFrame(rows, columns=[column for column, _ in EXPORT_COLUMNS])


def registrations_to_excel(registrations):
    """Registrations as xlsx bytes (one sheet, one row per registration)"""
    df = registrations_dataframe(registrations)

    out_buffer = io.BytesIO()
    with pd.ExcelWriter(out_buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False, sheet_name="Registrations")
    out_buffer.seek(0)

    logger.info(f"Registrations exported: {len(df)} rows")
    return out_buffer.getvalue()
