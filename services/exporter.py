import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pandas as pd
from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt

EXPORT_COLUMNS = [
    "ID",
    "Full Name",
    "Email",
    "Phone",
    "College",
    "Branch",
    "Semester",
    "Batch Type",
    "Registration Type",
    "Project Title",
    "Group Members Count",
    "Group Members",
    "Status",
    "Payment Screenshot",
    "Registration Date (IST)",
    "Last Updated (IST)",
]


def to_local(dt, tz_name="Asia/Kolkata"):
    """Stored timestamps are naive UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ZoneInfo(tz_name))


def format_local(dt, tz_name="Asia/Kolkata"):
    local = to_local(dt, tz_name)
    return local.strftime("%d/%m/%Y, %I:%M:%S %p").lower() if local else ""


def format_members(members):
    return "; ".join(f"{m.get('name', '')} ({m.get('phoneNumber', '')})" for m in members or [])


def registrations_frame(registrations, tz_name="Asia/Kolkata"):
    rows = [{
        "ID": r.id,
        "Full Name": r.full_name,
        "Email": r.email,
        "Phone": r.phone_number,
        "College": r.college_name,
        "Branch": r.branch,
        "Semester": r.semester,
        "Batch Type": r.batch_type,
        "Registration Type": r.registration_type,
        "Project Title": r.project_title,
        "Group Members Count": len(r.group_members or []),
        "Group Members": format_members(r.group_members),
        "Status": r.status,
        "Payment Screenshot": "Yes" if r.payment_screenshot_path else "No",
        "Registration Date (IST)": format_local(r.created_at, tz_name),
        "Last Updated (IST)": format_local(r.updated_at, tz_name),
    } for r in registrations]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def export_csv(registrations, tz_name="Asia/Kolkata"):
    output = io.BytesIO()
    # BOM so Excel opens non-ASCII names correctly
    output.write(registrations_frame(registrations, tz_name).to_csv(index=False).encode("utf-8-sig"))
    output.seek(0)
    return output


def export_excel(registrations, stats, tz_name="Asia/Kolkata"):
    df_registrations = registrations_frame(registrations, tz_name)
    df_summary = pd.DataFrame([
        {"Metric": "Total registrations", "Count": stats["total"]},
        {"Metric": "Pending", "Count": stats["pending"]},
        {"Metric": "Approved", "Count": stats["approved"]},
        {"Metric": "Rejected", "Count": stats["rejected"]},
    ])

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df_summary.to_excel(writer, index=False, sheet_name="Summary")
        df_registrations.to_excel(writer, index=False, sheet_name="Registrations")

        workbook = writer.book
        header_format = workbook.add_format({"bold": True, "bg_color": "#CCE5FF", "border": 1})
        for sheet_name, frame in (("Summary", df_summary), ("Registrations", df_registrations)):
            worksheet = writer.sheets[sheet_name]
            for col_num, value in enumerate(frame.columns.values):
                worksheet.write(0, col_num, value, header_format)
                worksheet.set_column(col_num, col_num, max(12, len(str(value)) + 2))

    output.seek(0)
    return output


def export_filename(extension, now=None):
    now = now or datetime.now()
    return f"registrations_{now.strftime('%Y-%m-%d')}.{extension}"


def registration_slip(registration, registration_number, tz_name="Asia/Kolkata"):
    """One-page DOCX summary of a registration for the admin's records."""
    doc = Document()
    doc.add_heading("PROJECT REGISTRATION SLIP", level=0).alignment = WD_ALIGN_PARAGRAPH.CENTER
    doc.add_paragraph(f"Registration No.: {registration_number}")
    doc.add_paragraph(f"Project ID: {registration.project_id or ''}")
    doc.add_paragraph(f"Registered on: {format_local(registration.created_at, tz_name)}")

    doc.add_heading("1. Applicant", level=1)
    info = [
        ("Full name", registration.full_name),
        ("Email", registration.email),
        ("Phone", registration.phone_number),
        ("College", registration.college_name),
        ("Branch", registration.branch),
        ("Semester", registration.semester),
        ("Batch", registration.batch_type),
    ]
    for label, value in info:
        doc.add_paragraph(f"{label}: {value or ''}")

    doc.add_heading("2. Project", level=1)
    doc.add_paragraph(f"Registration type: {registration.registration_type}")
    doc.add_paragraph(f"Title: {registration.project_title}")

    members = registration.group_members or []
    if members:
        doc.add_heading("3. Group members", level=1)
        table = doc.add_table(rows=1, cols=3)
        table.style = "Table Grid"
        header = table.rows[0].cells
        header[0].text, header[1].text, header[2].text = "#", "Name", "Phone"
        for index, member in enumerate(members, start=1):
            cells = table.add_row().cells
            cells[0].text = str(index)
            cells[1].text = member.get("name", "")
            cells[2].text = member.get("phoneNumber", "")

    doc.add_heading("Status", level=1)
    status = doc.add_paragraph().add_run(registration.status.upper())
    status.bold = True
    status.font.size = Pt(14)
    doc.add_paragraph(
        f"Payment screenshot: {registration.payment_screenshot_path}"
        if registration.payment_screenshot_path else "Payment screenshot: not provided"
    )

    buffer = io.BytesIO()
    doc.save(buffer)
    buffer.seek(0)
    return buffer
