from __future__ import annotations

from html import escape

from eventease.mail.base import OutgoingEmail
from eventease.models import Event, User


def _details(event: Event) -> str:
    return (
        "<p><strong>Event Details:</strong></p>"
        "<ul>"
        f"<li>Date: {escape(event.date)}</li>"
        f"<li>Time: {escape(event.start_time)} - {escape(event.end_time)} (UTC)</li>"
        "</ul>"
    )


def _link(event: Event) -> str:
    link = escape(event.meeting_link, quote=True)
    return f'<p>Join using the meeting link: <a href="{link}">{link}</a></p>'


def _greeting(user: User) -> str:
    return f"<p>Dear {escape(user.first_name)},</p>"


def reminder(user: User, event: Event) -> OutgoingEmail:
    title = escape(event.title)
    return OutgoingEmail(
        to=user.email,
        subject=f'Reminder: Upcoming Event "{event.title}"',
        html_body=(
            _greeting(user)
            + f"<p>This is a reminder for the upcoming event <strong>{title}</strong>.</p>"
            + _details(event)
            + _link(event)
            + "<p>We look forward to seeing you there!</p>"
        ),
    )


def participant_live(user: User, event: Event) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"Event Now Live: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>The event <strong>{escape(event.title)}</strong> is now live!</p>"
            + _link(event)
            + "<p>We hope you enjoy the event!</p>"
        ),
    )


def organizer_live(user: User, event: Event) -> OutgoingEmail:
    link = escape(event.meeting_link, quote=True)
    return OutgoingEmail(
        to=user.email,
        subject=f"Your Event is Now Live: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>Your event <strong>{escape(event.title)}</strong> is now live!</p>"
            + f'<p>Meeting Link: <a href="{link}">{link}</a></p>'
            + "<p>Best of luck with your event!</p>"
        ),
    )


def rsvp_confirmed(user: User, event: Event) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"RSVP Confirmation: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>You have successfully registered for the event <strong>{escape(event.title)}</strong>.</p>"
            + _details(event)
            + _link(event)
            + "<p>Thank you for registering! We look forward to seeing you at the event.</p>"
        ),
    )


def rsvp_canceled(user: User, event: Event) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"RSVP Canceled: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>You have successfully canceled your RSVP for the event <strong>{escape(event.title)}</strong>.</p>"
            + _details(event)
            + "<p>We hope to see you at our future events.</p>"
        ),
    )


def event_rescheduled(user: User, event: Event) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"Event Updated: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>The event <strong>{escape(event.title)}</strong> you registered for has been updated.</p>"
            + "<p><strong>New Schedule:</strong><br>"
            + f"Date: {escape(event.date)}<br>"
            + f"Time: {escape(event.start_time)} - {escape(event.end_time)} (UTC)</p>"
            + "<p>Please check the event details for more information.</p>"
        ),
    )


def event_canceled(user: User, event: Event) -> OutgoingEmail:
    return OutgoingEmail(
        to=user.email,
        subject=f"Event Canceled: {event.title}",
        html_body=(
            _greeting(user)
            + f"<p>The event <strong>{escape(event.title)}</strong> scheduled for "
            + f"<strong>{escape(event.date)}</strong> from <strong>{escape(event.start_time)}</strong> "
            + f"to <strong>{escape(event.end_time)}</strong> (UTC) has been canceled by the organizer.</p>"
            + "<p>We apologize for the inconvenience.</p>"
        ),
    )


def event_deleted(user: User, event: Event) -> OutgoingEmail:
    email = event_canceled(user, event)
    return OutgoingEmail(to=email.to, subject=f"Event Cancellation: {event.title}", html_body=email.html_body)


def password_reset(user: User, reset_url: str, ttl_minutes: int) -> OutgoingEmail:
    url = escape(reset_url, quote=True)
    return OutgoingEmail(
        to=user.email,
        subject="Password Reset Request - EventEase",
        html_body=(
            _greeting(user)
            + "<p>We received a request to reset the password for your EventEase account.</p>"
            + f'<p><a href="{url}">Reset Password</a></p>'
            + f"<p>This link will expire in {ttl_minutes} minutes and can only be used once. "
            + "If you didn't request this password reset, please ignore this email.</p>"
            + f"<p>If the link above doesn't work, copy and paste this URL into your browser:<br>{url}</p>"
        ),
    )
