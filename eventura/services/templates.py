"""HTML bodies for outbound emails.

Every interpolated value that comes from a user or an admin form is escaped;
the surrounding markup is static.
"""

from __future__ import annotations

from html import escape

_FOOTER = """
      <div style="padding: 24px 32px; background: #141414; border-top: 1px solid #2a2a2a; text-align: center;">
        <p style="color: #666666; font-size: 12px; margin: 0 0 8px;">Eventura - Campus Event Management</p>
        <p style="color: #555555; font-size: 11px; margin: 0;">{note}</p>
      </div>"""

_ROW = (
    '<tr><td style="padding: 6px 0; color: #b0b0b0; font-size: 14px;">'
    '<strong style="color: #e0e0e0;">{label}:</strong> {value}</td></tr>'
)
_HIGHLIGHT_ROW = (
    '<tr><td style="padding: 6px 0; color: #ec4899; font-weight: 600;">'
    "{label}: {value}</td></tr>"
)
_PARAGRAPH = '<p style="color: #b0b0b0; font-size: 14px; margin: 0 0 20px;">{text}</p>'
_DEADLINE_LINE = (
    '<p style="color: #ec4899; font-weight: 600; margin: 0 0 28px;">'
    "Application Deadline: {value}</p>"
)


def _row(label: str, value: str | None) -> str:
    if not value:
        return ""
    return _ROW.format(label=label, value=escape(value))


def _cta(label: str, site_url: str) -> str:
    return f"""
        <div style="text-align: center; margin: 0 0 28px;">
          <a href="{escape(site_url)}" style="display: inline-block; padding: 14px 36px; background: #6366f1; color: #ffffff; text-decoration: none; border-radius: 8px; font-weight: 600;">{label}</a>
        </div>"""


def _details_table(rows: list[str], accent: str = "#6366f1") -> str:
    rows_html = "".join(rows)
    return f"""
        <div style="background: #222222; border-radius: 8px; padding: 20px; margin: 0 0 24px; border-left: 3px solid {accent};">
          <table style="border-collapse: collapse; width: 100%;">
            {rows_html}
          </table>
        </div>"""


def _wrap(subtitle: str, body: str, footer_note: str) -> str:
    header = ""
    if subtitle:
        header = f'<p style="margin: 10px 0 0; color: #e0e0ff; font-size: 14px;">{subtitle}</p>'
    footer = _FOOTER.format(note=footer_note)
    return f"""
    <div style="font-family: 'Segoe UI', Tahoma, sans-serif; max-width: 560px; margin: 0 auto; background: #1a1a1a; border-radius: 12px; overflow: hidden;">
      <div style="background: #6366f1; padding: 36px 32px; text-align: center;">
        <h1 style="margin: 0; font-size: 26px; color: #ffffff;">EVENTURA</h1>
        {header}
      </div>
      <div style="padding: 36px 32px;">
        {body}
      </div>
      {footer}
    </div>"""


def _event_extras(description: str | None, application_deadline: str | None) -> str:
    parts = []
    if description:
        parts.append(_PARAGRAPH.format(text=escape(description)))
    if application_deadline:
        parts.append(_DEADLINE_LINE.format(value=escape(application_deadline)))
    return "\n".join(parts)


def format_long_date(value) -> str:
    """``Monday, March 10, 2025`` style, or ``TBA`` when unknown."""
    if value is None:
        return "TBA"
    return f"{value:%A, %B} {value.day}, {value.year}"


def welcome_email_html(user_name: str, site_url: str) -> str:
    body = f"""
        <p style="color: #ffffff; font-size: 18px; margin: 0 0 20px;">Hi {escape(user_name)},</p>
        <p style="color: #b0b0b0; font-size: 15px; line-height: 1.7; margin: 0 0 24px;">
          Welcome to Eventura, your platform for discovering and taking part in campus events.
          Browse hackathons, workshops and seminars, and set reminders so you never miss a deadline.
        </p>
        {_cta("Explore Events", site_url)}"""
    return _wrap("", body, "You received this email because you signed up on Eventura.")


def deadline_reminder_email_html(
    user_name: str,
    event_title: str,
    date_label: str,
    formatted_date: str,
    site_url: str,
    event_time: str | None = None,
    event_location: str | None = None,
) -> str:
    details = _details_table(
        [
            _HIGHLIGHT_ROW.format(label=date_label, value=formatted_date),
            _row("Time", event_time),
            _row("Location", event_location),
        ],
        accent="#ec4899",
    )
    body = f"""
        <p style="color: #b0b0b0; font-size: 15px; margin: 0 0 8px;">Hi {escape(user_name)},</p>
        <p style="color: #ffffff; font-size: 17px; line-height: 1.6; margin: 0 0 24px;">
          The <strong>{date_label.lower()}</strong> for <strong>{escape(event_title)}</strong> is tomorrow.
        </p>
        {details}
        <p style="color: #b0b0b0; font-size: 14px; margin: 0 0 28px;">
          Make sure to complete your registration before the deadline passes.
        </p>
        {_cta("View Event", site_url)}"""
    return _wrap("Deadline Reminder", body, "You received this email because you set a reminder on Eventura.")


def event_reminder_email_html(
    user_name: str,
    event_title: str,
    event_date: str,
    site_url: str,
    event_time: str | None = None,
    event_location: str | None = None,
    event_category: str | None = None,
    event_description: str | None = None,
    application_deadline: str | None = None,
) -> str:
    details = _details_table(
        [
            _row("Date", event_date),
            _row("Time", event_time),
            _row("Location", event_location),
            _row("Category", event_category),
        ]
    )
    body = f"""
        <p style="color: #b0b0b0; font-size: 15px; margin: 0 0 8px;">Hi {escape(user_name)},</p>
        <h2 style="color: #ffffff; font-size: 20px; margin: 0 0 20px;">{escape(event_title)}</h2>
        {details}
        {_event_extras(event_description, application_deadline)}
        {_cta("View Details", site_url)}"""
    return _wrap("Event Reminder", body, "You received this email because you set a reminder on Eventura.")


def new_event_email_html(
    user_name: str,
    event_title: str,
    event_date: str,
    site_url: str,
    event_time: str | None = None,
    event_location: str | None = None,
    event_category: str | None = None,
    event_description: str | None = None,
    application_deadline: str | None = None,
) -> str:
    details = _details_table(
        [
            _row("Date", event_date),
            _row("Time", event_time),
            _row("Location", event_location),
            _row("Category", event_category),
        ]
    )
    body = f"""
        <p style="color: #b0b0b0; font-size: 15px; margin: 0 0 8px;">Hi {escape(user_name)},</p>
        <p style="color: #ffffff; font-size: 17px; margin: 0 0 16px;">A new event has been added. Take a look.</p>
        <h2 style="color: #6366f1; font-size: 20px; margin: 0 0 20px;">{escape(event_title)}</h2>
        {details}
        {_event_extras(event_description, application_deadline)}
        {_cta("View Event", site_url)}"""
    return _wrap("New Event", body, "You received this email because you're a registered user on Eventura.")
