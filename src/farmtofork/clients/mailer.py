"""
Transactional email through the Resend REST API.

Every user-supplied value is HTML-escaped before it is placed in a body.
Without RESEND_API_KEY the mailer is disabled: send() logs and returns
False so local development and tests never hit the network.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import requests

from farmtofork.core.config import config
from farmtofork.core.exceptions import ExternalServiceError, ValidationError
from farmtofork.utils.date_utils import DateUtils
from farmtofork.utils.formatting_utils import FormattingUtils as fmt

logger = logging.getLogger(__name__)

SUBJECT_NEW_FARMER_REQUEST = "Nouvelle demande d'accès producteur"
SUBJECT_REQUEST_APPROVED = "Votre demande producteur a été approuvée"
SUBJECT_REQUEST_REJECTED = "Votre demande producteur n'a pas été approuvée"

_BRAND_COLOR = "#16a34a"


def _container(inner: str) -> str:
    return (
        '<div style="font-family:Arial,sans-serif; max-width:600px; margin:0 auto; '
        'padding:20px; color:#111827;">'
        f"{inner}"
        '<p style="margin-top:30px; font-size:12px; color:#6b7280;">Farm To Fork</p>'
        "</div>"
    )


def _header(title: str, subtitle: Optional[str] = None) -> str:
    html = f'<h1 style="color:{_BRAND_COLOR}; font-size:22px;">{title}</h1>'
    if subtitle:
        html += f'<p style="color:#6b7280; margin-top:0;">{subtitle}</p>'
    return html


def _info_table(rows: List[Dict[str, str]]) -> str:
    body = "".join(
        "<tr>"
        f'<td style="padding:6px 10px; font-weight:bold; vertical-align:top;">{row["label"]}</td>'
        f'<td style="padding:6px 10px;">{row["value"]}</td>'
        "</tr>"
        for row in rows
    )
    return f'<table style="border-collapse:collapse; width:100%;">{body}</table>'


def _button(text: str, href: str) -> str:
    return (
        f'<p style="text-align:center; margin:30px 0;"><a href="{href}" '
        f'style="background-color:{_BRAND_COLOR}; color:#ffffff; padding:12px 24px; '
        f'border-radius:6px; text-decoration:none;">{text}</a></p>'
    )


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def build_admin_notification(request: Mapping[str, Any], received_at=None) -> Dict[str, str]:
    """Subject and HTML body announcing a new farmer request to admins."""
    if not _text(request.get("farm_name")) or not _text(request.get("email")) or not _text(request.get("location")):
        raise ValidationError("Incomplete farmer request (farm_name, email, location required)")

    received_at = received_at or DateUtils.now_utc()
    formatted_date = DateUtils.format_for_display(received_at, config.app.display_timezone)

    full_name = fmt.full_name(request.get("first_name"), request.get("last_name"))
    farm_name = fmt.escape_html(_text(request.get("farm_name")))

    rows = [
        {"label": "Nom complet", "value": full_name},
        {"label": "Email", "value": fmt.display_value(request.get("email"))},
        {"label": "Téléphone", "value": fmt.display_value(request.get("phone"))},
        {"label": "Nom de la ferme", "value": fmt.display_value(request.get("farm_name"))},
        {"label": "Localisation", "value": fmt.display_value(request.get("location"))},
    ]

    website = fmt.safe_url(request.get("website"))
    if website:
        escaped = fmt.escape_html(website)
        rows.append({
            "label": "Site web",
            "value": f'<a href="{escaped}" style="color:#2563eb;">{escaped}</a>',
        })

    description = _text(request.get("description"))
    products = _text(request.get("products"))

    html = _header(SUBJECT_NEW_FARMER_REQUEST, f"Reçue le {fmt.escape_html(formatted_date)}")
    html += (
        '<p style="font-size:16px;">Une nouvelle demande d\'accès producteur vient d\'être soumise par '
        f"<strong>{full_name}</strong> pour la ferme <strong>{farm_name}</strong> "
        "et nécessite votre validation.</p>"
    )
    html += f'<h2 style="color:{_BRAND_COLOR}; font-size:18px;">Détails de la demande</h2>'
    html += _info_table(rows)
    html += f'<h3 style="color:{_BRAND_COLOR}; font-size:16px;">Description</h3>'
    html += f"<p>{fmt.escape_html(description) if description else fmt.MISSING_VALUE}</p>"
    if products:
        html += f'<h3 style="color:{_BRAND_COLOR}; font-size:16px;">Produits proposés</h3>'
        html += f"<p>{fmt.escape_html(products)}</p>"
    html += _button("Voir et traiter la demande", f"{config.app.app_url}/admin/notifications")

    return {
        "subject": f"{SUBJECT_NEW_FARMER_REQUEST}: {farm_name}",
        "html": _container(html),
    }


def build_status_email(
    request: Mapping[str, Any],
    status: str,
    reason: Optional[str] = None,
) -> Dict[str, str]:
    """Subject and HTML body telling the applicant how their request ended."""
    if not _text(request.get("email")) or not _text(request.get("farm_name")):
        raise ValidationError("Incomplete farmer request (email, farm_name required)")
    if status not in ("approved", "rejected"):
        raise ValidationError(f"Unsupported farmer request status: {status}")

    first_name = _text(request.get("first_name"))
    greeting = fmt.escape_html(first_name) if first_name else "Producteur"
    farm_name = fmt.escape_html(_text(request.get("farm_name")))

    if status == "approved":
        subject = SUBJECT_REQUEST_APPROVED
        html = _header("Demande approuvée !")
        html += (
            f"<p>Bonjour <strong>{greeting}</strong>,</p>"
            "<p>Nous sommes ravis de vous informer que votre demande d'accès producteur pour "
            f"<strong>{farm_name}</strong> a été approuvée !</p>"
            "<p><strong>Prochaines étapes :</strong></p>"
            "<ol><li>Complétez votre fiche ferme (description, produits, etc.)</li>"
            "<li>Publiez votre fiche ferme</li>"
            "<li>Ajoutez vos produits sur Farm To Fork</li></ol>"
        )
        html += _button("Compléter ma fiche", f"{config.app.app_url}/onboarding/step-2")
    else:
        subject = SUBJECT_REQUEST_REJECTED
        html = _header("Demande non approuvée")
        html += (
            f"<p>Bonjour <strong>{greeting}</strong>,</p>"
            "<p>Nous avons examiné votre demande d'accès producteur pour "
            f"<strong>{farm_name}</strong> et regrettons de ne pas pouvoir l'approuver pour le moment.</p>"
        )
        if _text(reason):
            html += f"<p><strong>Motif :</strong> {fmt.escape_html(_text(reason))}</p>"
        html += (
            "<p>Si vous pensez qu'il s'agit d'une erreur, vous pouvez nous contacter "
            "ou soumettre une nouvelle demande.</p>"
        )
        html += _button("Nous contacter", f"{config.app.app_url}/contact")

    return {"subject": subject, "html": _container(html)}


class Mailer:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        sender: Optional[str] = None,
        admin_emails: Optional[List[str]] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else config.email.api_key
        self.api_url = (api_url or config.email.api_url).rstrip("/")
        self.sender = sender or config.email.sender
        self.admin_emails = admin_emails if admin_emails is not None else list(config.email.admin_emails)
        self.timeout = timeout or config.app.http_timeout_seconds

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: List[str], subject: str, html: str) -> bool:
        if not self.enabled:
            logger.warning(f"Email disabled (no RESEND_API_KEY); not sending '{subject}'")
            return False
        if not to:
            logger.warning(f"No recipients for '{subject}'; skipping")
            return False

        try:
            response = requests.post(
                f"{self.api_url}/emails",
                json={"from": self.sender, "to": to, "subject": subject, "html": html},
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Resend delivery failed for '{subject}': {e}")
            raise ExternalServiceError("resend", internal_message=str(e)) from e

        logger.info(f"Email '{subject}' sent to {len(to)} recipient(s)")
        return True

    def send_admin_notification(self, farmer_request: Mapping[str, Any]) -> bool:
        message = build_admin_notification(farmer_request)
        return self.send(self.admin_emails, message["subject"], message["html"])

    def send_farmer_request_status(
        self,
        farmer_request: Mapping[str, Any],
        status: str,
        reason: Optional[str] = None,
    ) -> bool:
        message = build_status_email(farmer_request, status, reason)
        return self.send([farmer_request["email"]], message["subject"], message["html"])
