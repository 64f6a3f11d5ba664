"""
AWS SES email service for team invitations
"""

import html
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from config import Config
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class EmailService:
    """Send emails via AWS SES"""

    def __init__(self, config: Optional[Config] = None, ses_client=None):
        """
        Initialize email service

        Args:
            config: Configuration instance
            ses_client: Pre-built SES client (tests)
        """
        self.config = config or Config()
        self.ses_client = ses_client or boto3.client(
            'ses',
            region_name=self.ses_region
        )

    @property
    def ses_region(self) -> str:
        """Get SES region"""
        return self.config.ses_region

    @property
    def invite_link(self) -> str:
        return f"{self.config.app_url.rstrip('/')}/login"

    def send_invite_email(self, email: str, name: str, role: str, invited_by: str) -> Dict[str, Any]:
        """
        Send an invitation to a new team member

        Args:
            email: Recipient email address
            name: Recipient name
            role: Role being assigned (Admin, Recruiter, Viewer)
            invited_by: Email of the person sending the invite

        Returns:
            {"success": True, "message_id": ...} or {"success": False, "error": ...}
        """
        if not self.config.ses_from_email:
            logger.warning("⚠️ SES_FROM_EMAIL not configured. Invitation email will not be sent.")
            return {
                "success": False,
                "error": "Email service not configured. Please set SES_FROM_EMAIL.",
            }

        agency = self.config.agency_name
        link = self.invite_link
        subject = f"You've been invited to join {agency} as a {role}"

        body_text = f"""
Hi {name},

{invited_by} has invited you to join {agency} as a {role}.

Accept your invitation by visiting: {link}

If you didn't expect this invitation, you can safely ignore this email.
"""

        safe = {key: html.escape(value or "") for key, value in
                {"name": name, "invited_by": invited_by, "role": role, "agency": agency, "link": link}.items()}
        body_html = f"""
<html>
<head><meta charset="utf-8"></head>
<body style="font-family: Arial, sans-serif; color: #333; max-width: 600px; margin: 0 auto;">
  <h2>You've been invited!</h2>
  <p>Hi {safe['name']},</p>
  <p>{safe['invited_by']} has invited you to join <strong>{safe['agency']}</strong> as a <strong>{safe['role']}</strong>.</p>
  <p style="text-align: center; margin: 30px 0;">
    <a href="{safe['link']}" style="background: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">Accept Invitation</a>
  </p>
  <p style="color: #6b7280; font-size: 14px;">Or copy this link into your browser:<br>{safe['link']}</p>
  <p style="color: #6b7280; font-size: 12px;">If you didn't expect this invitation, you can safely ignore this email.</p>
</body>
</html>
"""

        return self._send_email(
            to_email=email,
            subject=subject,
            body_text=body_text,
            body_html=body_html
        )

    def _send_email(self, to_email: str, subject: str, body_text: str, body_html: str) -> Dict[str, Any]:
        """
        Send email via SES

        Args:
            to_email: Recipient email address
            subject: Email subject
            body_text: Plain text body
            body_html: HTML body

        Returns:
            Result dict with success and message_id or error
        """
        try:
            response = self.ses_client.send_email(
                Source=self.config.ses_from_email,
                Destination={
                    'ToAddresses': [to_email]
                },
                Message={
                    'Subject': {
                        'Data': subject,
                        'Charset': 'UTF-8'
                    },
                    'Body': {
                        'Text': {
                            'Data': body_text,
                            'Charset': 'UTF-8'
                        },
                        'Html': {
                            'Data': body_html,
                            'Charset': 'UTF-8'
                        }
                    }
                }
            )
            logger.info(f"✅ Email sent successfully to {to_email}. MessageId: {response['MessageId']}")
            return {"success": True, "message_id": response["MessageId"]}
        except ClientError as e:
            error_code = e.response['Error']['Code']
            error_message = e.response['Error']['Message']
            logger.error(f"❌ Failed to send email to {to_email}: {error_code} - {error_message}")
            return {"success": False, "error": f"{error_code}: {error_message}"}
        except BotoCoreError as e:
            logger.error(f"❌ Failed to send email to {to_email}: {e}")
            return {"success": False, "error": str(e)}
