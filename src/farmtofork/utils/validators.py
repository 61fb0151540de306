import re
from typing import Optional
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email


class ValidationUtils:
    """
    Validation helpers for user-supplied contact data.

    Features:
    - Email validation and normalisation (email-validator, no DNS lookups)
    - French phone numbers normalised to E.164
    - Website and image URL checks
    - Input sanitization
    """

    PATTERNS = {
        'phone_fr_e164': re.compile(r'^\+33\d{9}$'),
        'url': re.compile(r'^https?://[^\s<>"{}|\\^`[\]]+$'),
        'image_path': re.compile(r'\.(jpe?g|png|gif|webp|avif)$', re.IGNORECASE),
    }

    MAX_TEXT_LENGTH = 2000

    @classmethod
    def validate_email(cls, email: str) -> bool:
        try:
            validate_email(email, check_deliverability=False)
            return True
        except EmailNotValidError:
            return False

    @classmethod
    def normalize_email(cls, email: str) -> str:
        """Normalize email address for consistent storage"""
        try:
            validated = validate_email(email.strip(), check_deliverability=False)
            return validated.normalized.lower()
        except EmailNotValidError:
            raise ValueError(f"Invalid email address: {email}")

    @classmethod
    def to_e164_fr(cls, phone: Optional[str]) -> Optional[str]:
        """
        Normalise a French phone number to E.164.

        '06 12 34 56 78' -> '+33612345678', '0033 6...' -> '+336...'.
        Empty input is returned unchanged; anything that does not end up as
        +33 followed by nine digits returns None.
        """
        if phone is None or not phone.strip():
            return phone

        number = re.sub(r'[^\d+]', '', phone)
        if number.startswith('00'):
            number = '+' + number[2:]
        if number.startswith('0'):
            number = '+33' + number[1:]

        return number if cls.PATTERNS['phone_fr_e164'].match(number) else None

    @classmethod
    def normalize_url(cls, url: Optional[str]) -> Optional[str]:
        """Prefix https:// when no scheme is given; None when not a usable URL."""
        if url is None or not url.strip():
            return None

        candidate = url.strip()
        if not candidate.startswith('http'):
            candidate = f'https://{candidate}'

        parsed = urlparse(candidate)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc or '.' not in parsed.netloc:
            return None
        if not cls.PATTERNS['url'].match(candidate):
            return None
        return candidate

    @classmethod
    def validate_url(cls, url: str) -> bool:
        return isinstance(url, str) and cls.PATTERNS['url'].match(url) is not None

    @classmethod
    def is_image_url(cls, url: str) -> bool:
        """http(s) URL whose path ends with a supported image extension."""
        if not cls.validate_url(url):
            return False
        return bool(cls.PATTERNS['image_path'].search(urlparse(url).path))

    @classmethod
    def sanitize_text(cls, text: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
        """
        Sanitize text input for safe storage and display

        - Strips whitespace
        - Removes control characters (newlines and tabs are kept)
        - Enforces length limits
        """
        if text is None:
            return None
        if not isinstance(text, str):
            text = str(text)

        sanitized = text.strip()
        sanitized = re.sub(r'[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]', '', sanitized)

        if max_length:
            sanitized = sanitized[:max_length]

        return sanitized
