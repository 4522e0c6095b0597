"""
HTML email templates for appointment notifications.

Every value interpolated from patient input is escaped.
"""

from datetime import datetime
from html import escape
from typing import Optional

THEME = {
    "primary": "#0069ff",
    "success": "#28a745",
    "success_bg": "#e8f5e9",
    "success_dark": "#2e7d32",
    "warning_bg": "#fff3cd",
    "danger": "#d32f2f",
    "text": "#333",
    "border": "#ddd",
}

SIGNATURE = "<p>Best regards,<br><strong>Medical Consultation Team</strong></p>"


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "To be confirmed"
    return value.strftime("%A, %d %B %Y at %H:%M %Z").strip()


def _button(url: str, label: str) -> str:
    return f"""
    <div style="margin: 30px 0; text-align: center;">
      <a href="{escape(url)}"
         style="display: inline-block; padding: 14px 28px; background-color: {THEME['primary']}; color: white; text-decoration: none; border-radius: 5px; font-weight: bold;">
        {escape(label)}
      </a>
    </div>
    """


def get_base_template(title: str, body: str, title_color: str = THEME["success"]) -> str:
    """Wrap section markup in the common layout"""
    return f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.6; color: {THEME['text']};">
        <div style="max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid {THEME['border']}; border-radius: 8px;">
          <h2 style="color: {title_color}; border-bottom: 2px solid {title_color}; padding-bottom: 10px;">{escape(title)}</h2>
          {body}
          {SIGNATURE}
        </div>
      </body>
    </html>
    """


def booking_received_template(
    patient_name: str, priority: str, preferred_time: Optional[datetime], scheduling_url: Optional[str]
) -> str:
    body = f"""
    <p>Dear <strong>{escape(patient_name)}</strong>,</p>
    <p>We have received your consultation request.</p>
    <ul>
      <li><strong>Requested time:</strong> {escape(format_time(preferred_time))}</li>
      <li><strong>Triage priority:</strong> {escape(priority)}</li>
    </ul>
    """
    if scheduling_url:
        body += "<p>Please pick a time slot to complete your booking:</p>"
        body += _button(scheduling_url, "Choose a time slot")
    return get_base_template("Consultation Request Received", body)


def new_booking_doctor_template(
    patient_name: str, patient_email: str, issues: str, priority: str,
    preferred_time: Optional[datetime], dashboard_url: str
) -> str:
    body = f"""
    <div style="background-color: {THEME['success_bg']}; padding: 15px; border-radius: 5px; margin: 20px 0;">
      <ul style="list-style: none; padding: 0;">
        <li><strong>Name:</strong> {escape(patient_name)}</li>
        <li><strong>Email:</strong> {escape(patient_email)}</li>
        <li><strong>Priority:</strong> {escape(priority)}</li>
        <li><strong>Requested time:</strong> {escape(format_time(preferred_time))}</li>
        <li><strong>Issues:</strong> {escape(issues)}</li>
      </ul>
    </div>
    """
    body += _button(dashboard_url, "View Dashboard")
    return get_base_template("New Consultation Request", body)


def appointment_scheduled_patient_template(
    patient_name: str, confirmed_time: Optional[datetime], meeting_link: Optional[str]
) -> str:
    body = f"""
    <p>Dear <strong>{escape(patient_name)}</strong>,</p>
    <p>Your medical consultation has been successfully scheduled!</p>
    <div style="background-color: {THEME['success_bg']}; padding: 15px; border-radius: 5px; margin: 20px 0;">
      <ul style="list-style: none; padding: 0;">
        <li><strong>Date &amp; Time:</strong> {escape(format_time(confirmed_time))}</li>
        <li><strong>Duration:</strong> 15 minutes</li>
      </ul>
    </div>
    """
    if meeting_link:
        body += _button(meeting_link, "Join Video Consultation")
    body += f"""
    <div style="background-color: {THEME['warning_bg']}; padding: 15px; border-radius: 5px; margin: 20px 0;">
      <p style="margin: 0;"><strong>Important Reminders:</strong></p>
      <ul style="margin: 10px 0 0 0; padding-left: 20px;">
        <li>Join the meeting 5 minutes early</li>
        <li>Ensure stable internet connection</li>
        <li>Keep your medical history ready</li>
      </ul>
    </div>
    """
    return get_base_template("Appointment Confirmed", body)


def appointment_scheduled_doctor_template(
    patient_name: str, patient_email: str, confirmed_time: Optional[datetime],
    meeting_link: Optional[str], dashboard_url: str
) -> str:
    meeting = ""
    if meeting_link:
        meeting = f'<li><strong>Meeting:</strong> <a href="{escape(meeting_link)}">Join Meeting</a></li>'
    body = f"""
    <div style="background-color: {THEME['success_bg']}; padding: 15px; border-radius: 5px; margin: 20px 0;">
      <ul style="list-style: none; padding: 0;">
        <li><strong>Name:</strong> {escape(patient_name)}</li>
        <li><strong>Email:</strong> {escape(patient_email)}</li>
        <li><strong>Scheduled Time:</strong> {escape(format_time(confirmed_time))}</li>
        {meeting}
      </ul>
    </div>
    """
    body += _button(dashboard_url, "View Dashboard")
    return get_base_template("Patient Booked Appointment", body)


def appointment_approved_template(
    patient_name: str, appointment_time: Optional[datetime], meeting_link: str
) -> str:
    body = f"""
    <p>Dear {escape(patient_name)},</p>
    <p>Your appointment has been approved by the doctor.</p>
    <ul>
      <li><strong>Time:</strong> {escape(format_time(appointment_time))}</li>
      <li><strong>Meeting Link:</strong> <a href="{escape(meeting_link)}">{escape(meeting_link)}</a></li>
    </ul>
    <p>You will receive a reminder 10 minutes before your consultation.</p>
    """
    return get_base_template("Appointment Confirmed!", body)


def appointment_rejected_template(patient_name: str, reschedule_url: str) -> str:
    body = f"""
    <p>Dear {escape(patient_name)},</p>
    <p>Unfortunately, the doctor is not available at your requested time.</p>
    """
    body += _button(reschedule_url, "Reschedule Now")
    body += "<p>We apologize for the inconvenience.</p>"
    return get_base_template("Appointment Update", body, title_color=THEME["danger"])


def appointment_cancelled_patient_template(patient_name: str) -> str:
    body = f"""
    <p>Dear <strong>{escape(patient_name)}</strong>,</p>
    <p>Your medical consultation has been cancelled as requested.</p>
    <p>If you'd like to reschedule, please visit our booking page.</p>
    """
    return get_base_template("Appointment Cancelled", body, title_color=THEME["danger"])


def appointment_cancelled_doctor_template(
    patient_name: str, patient_email: str, reason: Optional[str]
) -> str:
    body = f"<p>Patient {escape(patient_name)} ({escape(patient_email)}) has cancelled their appointment.</p>"
    if reason:
        body += f"<p><strong>Reason:</strong> {escape(reason)}</p>"
    return get_base_template("Appointment Cancelled", body, title_color=THEME["danger"])
