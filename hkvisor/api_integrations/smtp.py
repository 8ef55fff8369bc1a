"""
SMTP integration for hkvisor.

This module sends the event notification emails, with the camera snapshot
embedded inline in the HTML body.
"""
import os
import logging
import mimetypes
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

import aiofiles
import aiosmtplib

from hkvisor.utils.config import SmtpReceiverConfig

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30
IMPLICIT_TLS_PORT = 465
CID_DOMAIN = "hkvisor"


class SmtpNotifier:
    """
    Sends event notifications by email.
    """

    def __init__(self, config: SmtpReceiverConfig, timeout: float = SMTP_TIMEOUT_SECONDS):
        """
        Initialize the notifier.

        Args:
            config: SMTP receiver configuration
            timeout: Seconds allowed for the whole SMTP exchange
        """
        self.config = config
        self.timeout = timeout

    def build_message(
        self,
        camera_name: str,
        event_type: str,
        filename: Optional[str] = None,
        image_data: Optional[bytes] = None,
    ) -> EmailMessage:
        """
        Compose the notification email, embedding image_data inline when given.

        The snapshot's Content-ID is derived from its filename so that every
        camera's email references its own image.
        """
        msg = EmailMessage()
        msg["From"] = self.config.from_address
        msg["To"] = self.config.to
        msg["Subject"] = f"{camera_name} {event_type} Event"

        text = f"{camera_name} reported a {event_type} event."
        if not image_data:
            msg.set_content(f"{text}\nNo snapshot could be captured.")
            msg.add_alternative(f"<p>{text}</p><p>No snapshot could be captured.</p>", subtype="html")
            return msg

        filename = filename or "snapshot.jpg"
        cid = make_msgid(idstring=os.path.splitext(filename)[0], domain=CID_DOMAIN)
        msg.set_content(f"{text}\nSnapshot: {filename}")
        msg.add_alternative(
            f'<p>{text}</p><img src="cid:{cid[1:-1]}" alt="{camera_name} snapshot" />',
            subtype="html",
        )

        mime_type, _ = mimetypes.guess_type(filename)
        maintype, subtype = (mime_type or "image/jpeg").split("/", 1)
        msg.get_payload()[1].add_related(
            image_data,
            maintype=maintype,
            subtype=subtype,
            cid=cid,
            filename=filename,
            disposition="inline",
        )
        return msg

    async def send(self, camera_name: str, event_type: str, image_path: Optional[str]) -> bool:
        """
        Send one notification.

        Returns:
            True if the server accepted the message, False otherwise
        """
        image_data = None
        if image_path:
            try:
                async with aiofiles.open(image_path, "rb") as f:
                    image_data = await f.read()
            except OSError as e:
                logger.warning(f"Unable to attach snapshot {image_path}: {e}")

        filename = os.path.basename(image_path) if image_path else None
        msg = self.build_message(camera_name, event_type, filename, image_data)

        use_tls = self.config.port == IMPLICIT_TLS_PORT
        try:
            await aiosmtplib.send(
                msg,
                hostname=self.config.server,
                port=self.config.port,
                username=self.config.username or None,
                password=self.config.password or None,
                use_tls=use_tls,
                start_tls=False if use_tls else None,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.warning(f"Failed to send {camera_name} {event_type} notification to {self.config.to}: {e}")
            return False

        logger.info(f"Sent {camera_name} {event_type} notification to {self.config.to}")
        return True
