"""
Notification Templates

HTML email bodies per (kind, audience). Every user-supplied value is escaped
before it is interpolated.

render() returns None when a kind has no message for an audience, e.g.
the user-created notice goes to staff only. Staff hear about every
application status change.
"""

from collections.abc import Callable
from dataclasses import dataclass
from html import escape

from .events import ApplicationSnapshot, Audience, NotificationEvent, NotificationKind, UserSnapshot

BRAND = "NextWave Admissions"

STATUS_LABELS = {
    "draft": "Draft",
    "submitted": "Submitted",
    "under-review": "Under Review",
    "approved": "Approved",
    "rejected": "Rejected",
    "incomplete": "Incomplete",
}

STATUS_COLORS = {
    "submitted": "#059669",
    "under-review": "#d97706",
    "approved": "#059669",
    "rejected": "#dc2626",
    "incomplete": "#d97706",
    "draft": "#6b7280",
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str


def _page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1a365d; margin-bottom: 24px; }}
            .info-box {{ background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }}
            .notes-box {{ background-color: #eff6ff; padding: 16px; border-radius: 8px; margin: 16px 0; }}
            .terms-box {{ background-color: #fef3c7; padding: 16px; border-radius: 8px; margin: 16px 0; }}
            .reason-box {{ background-color: #fef2f2; padding: 16px; border-radius: 8px; margin: 16px 0; }}
            .button {{ display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>{BRAND} - Study in the UAE</p>
            </div>
        </div>
    </body>
    </html>
    """


def _status_label(status: str | None) -> str:
    return STATUS_LABELS.get(status or "", status or "-")


def _details(app: ApplicationSnapshot, *, include_student: bool) -> str:
    color = STATUS_COLORS.get(app.status, "#1f2937")
    student_row = (
        f"<p><strong>Student:</strong> {escape(app.student_name)} ({escape(app.student_email)})</p>"
        if include_student
        else ""
    )
    return f"""
            <div class="info-box">
                <p><strong>Application ID:</strong> #{app.id}</p>
                {student_row}
                <p><strong>Program:</strong> {escape(app.program_name)}</p>
                <p><strong>University:</strong> {escape(app.university_name)}</p>
                <p><strong>Status:</strong> <span style="color: {color}; font-weight: bold;">{_status_label(app.status)}</span></p>
            </div>
    """


def _extras(app: ApplicationSnapshot) -> str:
    parts = []
    if app.conditional_offer_terms:
        parts.append(
            f'<div class="terms-box"><p><strong>Conditional Offer Terms</strong></p>'
            f"<p>{escape(app.conditional_offer_terms)}</p></div>"
        )
    if app.rejection_reason:
        parts.append(
            f'<div class="reason-box"><p><strong>Reason</strong></p>'
            f"<p>{escape(app.rejection_reason)}</p></div>"
        )
    if app.notes:
        parts.append(
            f'<div class="notes-box"><p><strong>Additional Notes</strong></p>'
            f"<p>{escape(app.notes)}</p></div>"
        )
    return "\n".join(parts)


def _where(app: ApplicationSnapshot) -> str:
    return f"{app.program_name} at {app.university_name}"


# ============================================
# Application lifecycle
# ============================================


def _submitted_student(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.student_name)},</p>
            <p>Your application for <strong>{escape(app.program_name)}</strong> at <strong>{escape(app.university_name)}</strong> has been successfully submitted.</p>
            {_details(app, include_student=False)}
            <p>Your application will now be reviewed. We will keep you updated on any progress.</p>
            <p>If you have any questions, please contact your education consultant: {escape(app.owner_name)}</p>
    """
    return RenderedEmail(
        subject=f"Application Submitted - {_where(app)}",
        html=_page("Application Successfully Submitted", body),
    )


def _submitted_agent(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.owner_name)},</p>
            <p>The application for {escape(app.student_name)} has been submitted.</p>
            {_details(app, include_student=True)}
            <p>You will be notified as the review progresses.</p>
    """
    return RenderedEmail(
        subject=f"Application Submitted - {_where(app)}",
        html=_page("Application Submitted", body),
    )


def _submitted_admin(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>A new application is waiting for review.</p>
            {_details(app, include_student=True)}
            <p><strong>Submitted by:</strong> {escape(app.owner_name)}</p>
            <p>Please review the application in the admin dashboard.</p>
    """
    return RenderedEmail(
        subject=f"New Application Received - {app.program_name}",
        html=_page("New Application Received", body),
    )


def _under_review_student(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.student_name)},</p>
            <p>Your application for <strong>{escape(app.program_name)}</strong> at <strong>{escape(app.university_name)}</strong> is now under review.</p>
            {_details(app, include_student=False)}
            {_extras(app)}
            <p>We will notify you once the review process is complete.</p>
    """
    return RenderedEmail(
        subject=f"Application Under Review - {_where(app)}",
        html=_page("Application Under Review", body),
    )


def _under_review_agent(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.owner_name)},</p>
            <p>Application #{app.id} for {escape(app.student_name)} has been moved to "Under Review".</p>
            {_details(app, include_student=True)}
    """
    return RenderedEmail(
        subject=f"Application Under Review - {_where(app)}",
        html=_page("Application Status Updated", body),
    )


def _approved_student(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.student_name)},</p>
            <p>We are delighted to inform you that your application for <strong>{escape(app.program_name)}</strong> at <strong>{escape(app.university_name)}</strong> has been <strong>approved</strong>!</p>
            {_details(app, include_student=False)}
            {_extras(app)}
            <p>Please contact your education consultant {escape(app.owner_name)} for next steps regarding enrollment and visa procedures.</p>
    """
    return RenderedEmail(
        subject=f"Application Approved - {_where(app)}",
        html=_page("Congratulations! Your Application Has Been Approved", body),
    )


def _approved_agent(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.owner_name)},</p>
            <p>Great news! Application #{app.id} for {escape(app.student_name)} has been approved.</p>
            {_details(app, include_student=True)}
            {_extras(app)}
            <p>Please guide the student through the enrollment process.</p>
    """
    return RenderedEmail(
        subject=f"Application Approved - {_where(app)}",
        html=_page("Application Approved", body),
    )


def _rejected_student(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.student_name)},</p>
            <p>Thank you for your interest in <strong>{escape(app.program_name)}</strong> at <strong>{escape(app.university_name)}</strong>. After careful review, we regret to inform you that your application was not successful.</p>
            {_details(app, include_student=False)}
            {_extras(app)}
            <p>Your education consultant {escape(app.owner_name)} can help you explore other programs.</p>
    """
    return RenderedEmail(
        subject=f"Application Update - {_where(app)}",
        html=_page("Application Decision", body),
    )


def _rejected_agent(app: ApplicationSnapshot) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(app.owner_name)},</p>
            <p>Application #{app.id} for {escape(app.student_name)} has been rejected.</p>
            {_details(app, include_student=True)}
            {_extras(app)}
    """
    return RenderedEmail(
        subject=f"Application Rejected - {_where(app)}",
        html=_page("Application Rejected", body),
    )


def _status_admin(app: ApplicationSnapshot) -> RenderedEmail:
    label = _status_label(app.status)
    body = f"""
            <p>Application #{app.id} moved from {_status_label(app.previous_status)} to <strong>{label}</strong>.</p>
            {_details(app, include_student=True)}
            {_extras(app)}
            <p><strong>Owner:</strong> {escape(app.owner_name)}</p>
    """
    return RenderedEmail(
        subject=f"Application {label} - #{app.id} {app.student_name}",
        html=_page(f"Application {label}", body),
    )


def _status_changed(app: ApplicationSnapshot, name: str) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(name)},</p>
            <p>The status of application #{app.id} has changed from {_status_label(app.previous_status)} to <strong>{_status_label(app.status)}</strong>.</p>
            {_details(app, include_student=True)}
            {_extras(app)}
    """
    return RenderedEmail(
        subject=f"Application Status Updated - {app.program_name}",
        html=_page("Application Status Updated", body),
    )


def _status_changed_student(app: ApplicationSnapshot) -> RenderedEmail:
    return _status_changed(app, app.student_name)


def _status_changed_agent(app: ApplicationSnapshot) -> RenderedEmail:
    return _status_changed(app, app.owner_name)


# ============================================
# Accounts
# ============================================


def _user_created_admin(user: UserSnapshot, frontend_url: str) -> RenderedEmail:
    agency = f"<p><strong>Agency:</strong> {escape(user.agency_name)}</p>" if user.agency_name else ""
    body = f"""
            <p>A new account has been created.</p>
            <div class="info-box">
                <p><strong>Name:</strong> {escape(user.name)}</p>
                <p><strong>Email:</strong> {escape(user.email)}</p>
                <p><strong>Role:</strong> {escape(user.role)}</p>
                {agency}
            </div>
            <a href="{frontend_url}/admin/users" class="button">View Users</a>
    """
    return RenderedEmail(
        subject=f"New User Account Created - {user.name}",
        html=_page("New User Account Created", body),
    )


def _sub_admin_welcome(user: UserSnapshot, frontend_url: str) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(user.name)},</p>
            <p>An administrator account has been created for you on the {BRAND} admin panel.</p>
            <div class="info-box">
                <p><strong>Email:</strong> {escape(user.email)}</p>
                <p><strong>Temporary password:</strong> {escape(user.temporary_password or '')}</p>
            </div>
            <p><strong>Please change your password after your first login.</strong></p>
            <a href="{frontend_url}/auth" class="button">Sign In</a>
    """
    return RenderedEmail(
        subject=f"Welcome to the {BRAND} Admin Panel - Your Account Details",
        html=_page("Welcome to the Admin Panel", body),
    )


def _welcome(user: UserSnapshot, frontend_url: str) -> RenderedEmail:
    body = f"""
            <p>Dear {escape(user.name)},</p>
            <p>Thank you for registering with {BRAND}. Your account is ready.</p>
            <p>You can now browse universities and programs across the UAE and start your applications.</p>
            <a href="{frontend_url}/auth" class="button">Sign In</a>
    """
    return RenderedEmail(
        subject=f"Welcome to {BRAND}",
        html=_page(f"Welcome to {BRAND}", body),
    )


ApplicationTemplate = Callable[[ApplicationSnapshot], RenderedEmail]
UserTemplate = Callable[[UserSnapshot, str], RenderedEmail]

APPLICATION_TEMPLATES: dict[tuple[NotificationKind, Audience], ApplicationTemplate] = {
    (NotificationKind.SUBMITTED, Audience.STUDENT): _submitted_student,
    (NotificationKind.SUBMITTED, Audience.AGENT): _submitted_agent,
    (NotificationKind.SUBMITTED, Audience.ADMIN): _submitted_admin,
    (NotificationKind.UNDER_REVIEW, Audience.STUDENT): _under_review_student,
    (NotificationKind.UNDER_REVIEW, Audience.AGENT): _under_review_agent,
    (NotificationKind.UNDER_REVIEW, Audience.ADMIN): _status_admin,
    (NotificationKind.APPROVED, Audience.STUDENT): _approved_student,
    (NotificationKind.APPROVED, Audience.AGENT): _approved_agent,
    (NotificationKind.APPROVED, Audience.ADMIN): _status_admin,
    (NotificationKind.REJECTED, Audience.STUDENT): _rejected_student,
    (NotificationKind.REJECTED, Audience.AGENT): _rejected_agent,
    (NotificationKind.REJECTED, Audience.ADMIN): _status_admin,
    (NotificationKind.STATUS_CHANGED, Audience.STUDENT): _status_changed_student,
    (NotificationKind.STATUS_CHANGED, Audience.AGENT): _status_changed_agent,
    (NotificationKind.STATUS_CHANGED, Audience.ADMIN): _status_admin,
}

USER_TEMPLATES: dict[tuple[NotificationKind, Audience], UserTemplate] = {
    (NotificationKind.USER_CREATED, Audience.ADMIN): _user_created_admin,
    (NotificationKind.SUB_ADMIN_WELCOME, Audience.USER): _sub_admin_welcome,
    (NotificationKind.WELCOME, Audience.USER): _welcome,
}


def render(event: NotificationEvent, audience: Audience, frontend_url: str) -> RenderedEmail | None:
    """Render the message for one audience, or None if that audience gets nothing."""
    key = (event.kind, audience)

    if event.application is not None and key in APPLICATION_TEMPLATES:
        return APPLICATION_TEMPLATES[key](event.application)

    if event.user is not None and key in USER_TEMPLATES:
        return USER_TEMPLATES[key](event.user, frontend_url.rstrip("/"))

    return None
