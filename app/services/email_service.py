"""
Email Service
Sends ticket status updates and appointment confirmations. Built once at
application startup and injected where needed; every public method is
best-effort and never raises into the caller.
"""
import logging
import smtplib
import socket
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.mime.image import MIMEImage
from typing import Optional
import io
import qrcode
from app.core.config import settings
from app.core.exceptions import NotifierError

logger = logging.getLogger(__name__)

_STATUS_HEADLINES = {
    "Pending": "We have received your appointment request",
    "Approved": "Your appointment has been approved",
    "Rejected": "Your appointment request could not be accepted",
    "Cancelled": "Your appointment has been cancelled",
}


class EmailService:
    def __init__(self):
        self.enabled = settings.email_enabled
        self.smtp_host = settings.smtp_server
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_username
        self.smtp_password = settings.smtp_password
        self.from_email = settings.email_from
        self.timeout = settings.smtp_timeout_seconds
        self.organization = settings.organization_name
        self.closed = False

    def close(self) -> None:
        """Called at application shutdown; later sends are skipped."""
        self.closed = True
        logger.info("[Email] Email service stopped")

    @staticmethod
    def ticket_reference(ticket_id: int) -> str:
        return f"TKT-{ticket_id:06d}"

    def generate_qr_code_image(self, reference: str) -> bytes:
        """Generate QR code image as bytes"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(reference)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        img_bytes = io.BytesIO()
        img.save(img_bytes, format='PNG')
        img_bytes.seek(0)
        return img_bytes.getvalue()

    # ------------------------------------------------------------------
    # Lifecycle hook
    # ------------------------------------------------------------------
    def ticket_status_changed(self, ticket, department, customer) -> bool:
        """
        Notify a customer that their ticket changed status.

        Sends the status update and, for approved tickets in departments that
        ask for it, a separate confirmation carrying the appointment QR code.
        Failures are logged and reported as False.
        """
        try:
            status = ticket.status.value if hasattr(ticket.status, "value") else str(ticket.status)
            sent = self.send_status_update(
                to_email=customer.email,
                customer_name=customer.name,
                ticket_id=ticket.id,
                department_name=department.name,
                status=status,
                appointment_date=ticket.appointment_date.isoformat(),
                appointment_time=ticket.appointment_time.strftime("%H:%M"),
                rejection_reason=ticket.rejection_reason,
                feedback=ticket.feedback,
            )
            if status == "Approved" and department.send_confirmation_email:
                sent = self.send_appointment_confirmation(
                    to_email=customer.email,
                    customer_name=customer.name,
                    ticket_id=ticket.id,
                    department_name=department.name,
                    appointment_date=ticket.appointment_date.isoformat(),
                    appointment_time=ticket.appointment_time.strftime("%H:%M"),
                ) and sent
            return sent
        except Exception as e:
            logger.error(f"[Email] Failed to notify status change for ticket {getattr(ticket, 'id', None)}: {e}", exc_info=True)
            return False

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------
    def send_status_update(
        self,
        to_email: str,
        customer_name: str,
        ticket_id: int,
        department_name: str,
        status: str,
        appointment_date: Optional[str] = None,
        appointment_time: Optional[str] = None,
        rejection_reason: Optional[str] = None,
        feedback: Optional[str] = None
    ) -> bool:
        """
        Send a ticket status update.

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self._ready():
            return False

        reference = self.ticket_reference(ticket_id)
        headline = _STATUS_HEADLINES.get(status, f"Your ticket is now {status}")

        msg = MIMEMultipart('alternative')
        msg['From'] = f"{self.organization} <{self._from_address()}>"
        msg['To'] = to_email
        msg['Subject'] = f"{headline} ({reference}) - {self.organization}"

        html_body = f"""
            <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #2563eb;">{headline}</h2>
                    <p>Dear {customer_name},</p>
                    <p>Your ticket <strong>{reference}</strong> with the <strong>{department_name}</strong> department is now <strong>{status}</strong>.</p>
                    {"<p><strong>Date:</strong> " + appointment_date + "</p>" if appointment_date else ""}
                    {"<p><strong>Time:</strong> " + appointment_time + "</p>" if appointment_time else ""}
                    {f"<p><strong>Reason:</strong> {rejection_reason}</p>" if rejection_reason else ""}
                    {f"<p><strong>Notes from staff:</strong> {feedback}</p>" if feedback else ""}
                    <p style="margin-top: 30px;">Best regards,<br>The {self.organization} Team</p>
                    <p style="margin-top: 30px; color: #666; font-size: 12px;">
                        This is an automated message. Please do not reply to this email.
                    </p>
                </div>
            </body>
            </html>
            """
        msg.attach(MIMEText(html_body, 'html'))

        return self._send_logged(msg, to_email, f"status update for {reference}")

    def send_appointment_confirmation(
        self,
        to_email: str,
        customer_name: str,
        ticket_id: int,
        department_name: str,
        appointment_date: str,
        appointment_time: str
    ) -> bool:
        """
        Send the appointment confirmation with the ticket reference as a QR code,
        to be shown at the department counter.
        """
        if not self._ready():
            return False

        reference = self.ticket_reference(ticket_id)
        qr_image = self.generate_qr_code_image(reference)

        msg = MIMEMultipart('related')
        msg['From'] = f"{self.organization} <{self._from_address()}>"
        msg['To'] = to_email
        msg['Subject'] = f"Appointment Confirmation ({reference}) - {self.organization}"

        html_body = f"""
            <html>
            <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
                <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                    <h2 style="color: #16a34a;">Appointment Confirmed</h2>
                    <p>Dear {customer_name},</p>
                    <p>Your appointment with the <strong>{department_name}</strong> department is confirmed.</p>
                    <p><strong>Date:</strong> {appointment_date}<br><strong>Time:</strong> {appointment_time}<br><strong>Reference:</strong> {reference}</p>
                    <p>Please bring this QR code with you:</p>
                    <div style="text-align: center; margin: 20px 0;">
                        <img src="cid:appointment_qr" alt="Appointment QR code" style="width: 200px; height: 200px;">
                    </div>
                    <p style="margin-top: 30px;">Best regards,<br>The {self.organization} Team</p>
                </div>
            </body>
            </html>
            """
        msg.attach(MIMEText(html_body, 'html'))

        image = MIMEImage(qr_image, name=f"{reference}.png")
        image.add_header('Content-ID', '<appointment_qr>')
        image.add_header('Content-Disposition', 'inline', filename=f"{reference}.png")
        msg.attach(image)

        return self._send_logged(msg, to_email, f"confirmation for {reference}")

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _ready(self) -> bool:
        if self.closed:
            logger.warning("[Email] Email service already stopped. Email not sent.")
            return False
        if not self.enabled:
            logger.warning("Email service is disabled. Set EMAIL_ENABLED=true to enable.")
            return False
        if not self.smtp_user or not self.smtp_password:
            logger.warning("SMTP credentials not configured. Email not sent.")
            return False
        return True

    def _from_address(self) -> str:
        # From address must match the SMTP login for most providers
        return self.smtp_user or self.from_email

    def _send_logged(self, msg: MIMEMultipart, to_email: str, label: str) -> bool:
        try:
            self._deliver(msg)
        except NotifierError as e:
            logger.error(f"[Email] Failed to send {label} to {to_email}: {e}")
            return False
        logger.info(f"[Email] Sent {label} to {to_email}")
        return True

    def _deliver(self, msg: MIMEMultipart) -> None:
        """
        Hand a message to the SMTP server.

        Raises:
            NotifierError: on connection, authentication, timeout or send failure
        """
        try:
            logger.info(f"[Email] Connecting to SMTP server: {self.smtp_host}:{self.smtp_port}")
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            raise NotifierError(f"SMTP authentication failed for {self.smtp_user}: {e}") from e
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            raise NotifierError(f"SMTP error: {e}") from e
