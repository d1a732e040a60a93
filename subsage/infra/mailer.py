"""
Client SMTP pour les emails sortants (notifications d'expiration, reset mot de passe).
Construit une seule fois au démarrage; send() lève en cas d'échec, c'est à l'appelant
de décider si l'échec est bloquant.
"""
import logging
import smtplib
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)


class MailerNotConfigured(RuntimeError):
    pass


class SmtpMailer:
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        default_sender: str = "",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_sender = default_sender or username or ""
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host)

    def send(self, to: str, subject: str, body: str, sender: Optional[str] = None) -> None:
        if not self.configured:
            raise MailerNotConfigured("MAIL_SERVER non configuré")

        message = MIMEText(body, "plain", "utf-8")
        message["From"] = sender or self.default_sender
        message["To"] = to
        message["Subject"] = subject

        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(message)
        logger.info("Email envoyé à %s (%s)", to, subject)
