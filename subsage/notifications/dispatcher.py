"""
Envoi des emails d'expiration d'abonnement (best-effort).
Un échec (utilisateur inconnu, SMTP indisponible, écriture du journal) est journalisé,
jamais propagé: une notification manquée ne doit pas faire échouer la requête appelante.
"""
import logging
from typing import Any, Dict

from subsage.utils.dates import utcnow

logger = logging.getLogger(__name__)

SUBJECT_TEMPLATE = "Subscription Expiring Soon: {name}"
BODY_TEMPLATE = (
    "Hello,\n\n"
    "Your subscription to {name} is expiring soon on {expiry}.\n"
    "Please renew it to continue enjoying the benefits.\n\n"
    "Best regards,\nSubSage"
)


# module subsage.notifications.dispatcher
class NotificationDispatcher:
    def __init__(self, db, mailer, sender: str = ""):
        self.db = db
        self.mailer = mailer
        self.sender = sender or getattr(mailer, "default_sender", "") or ""

    def send(self, user_id: int, summary: Dict[str, Any]) -> None:
        """
        Envoie l'email d'expiration pour un abonnement puis trace l'envoi (sent_emails).
        summary: {"subscription_name": ..., "expiry": ...}
        """
        try:
            user = self.db.fetch_one("SELECT email FROM users WHERE id = :id", {"id": user_id})
            if not user:
                logger.warning("notifications.dispatch utilisateur %s introuvable", user_id)
                return

            name = summary.get("subscription_name") or ""
            subject = SUBJECT_TEMPLATE.format(name=name)
            body = BODY_TEMPLATE.format(name=name, expiry=summary.get("expiry") or "")

            self.mailer.send(user["email"], subject, body, sender=self.sender or None)
            self.db.execute(
                "INSERT INTO sent_emails (sender_email, receiver_email, subject, message, sent_at) "
                "VALUES (:sender, :receiver, :subject, :message, :sent_at)",
                {
                    "sender": self.sender,
                    "receiver": user["email"],
                    "subject": subject,
                    "message": body,
                    "sent_at": utcnow().isoformat(),
                },
            )
        except Exception:
            logger.exception("notifications.dispatch échec user_id=%s", user_id)
