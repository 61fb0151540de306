from decimal import Decimal
from typing import Any, Optional
from urllib.parse import urlparse


class FormattingUtils:
    """
    Formatting helpers for API payloads and HTML email bodies.

    Features:
    - Money formatting (prices are stored in cents)
    - HTML escaping for user-supplied values
    - Placeholder display for missing values
    """

    CURRENCY_FORMATS = {
        'EUR': {'symbol': '€', 'decimal_places': 2, 'symbol_position': 'after'},
        'USD': {'symbol': '$', 'decimal_places': 2, 'symbol_position': 'before'},
    }

    MISSING_VALUE = "Non renseigné"

    @classmethod
    def format_money(cls, amount_cents: int, currency: str = 'EUR', include_symbol: bool = True) -> str:
        """
        Format money amount for display

        Examples:
            format_money(1299) -> "12.99€"
            format_money(1299, 'USD') -> "$12.99"
        """
        currency_config = cls.CURRENCY_FORMATS.get(currency, cls.CURRENCY_FORMATS['EUR'])
        decimal_places = currency_config['decimal_places']
        amount = Decimal(amount_cents) / (10 ** decimal_places)
        formatted_amount = f"{amount:,.{decimal_places}f}"

        if not include_symbol:
            return formatted_amount

        symbol = currency_config['symbol']
        if currency_config['symbol_position'] == 'before':
            return f"{symbol}{formatted_amount}"
        return f"{formatted_amount}{symbol}"

    @classmethod
    def escape_html(cls, text: str) -> str:
        return (
            text.replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&#039;")
        )

    @classmethod
    def safe_url(cls, url: Optional[str]) -> Optional[str]:
        """Return the URL when it is an absolute http(s) URL, else None."""
        if not isinstance(url, str) or not url.strip():
            return None
        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return None
        return parsed.geturl()

    @classmethod
    def display_value(cls, value: Any) -> str:
        """Escaped, trimmed text or the missing-value placeholder."""
        if isinstance(value, str) and value.strip():
            return cls.escape_html(value.strip())
        return cls.MISSING_VALUE

    @classmethod
    def full_name(cls, first_name: Optional[str], last_name: Optional[str]) -> str:
        first = first_name.strip() if isinstance(first_name, str) else ""
        last = last_name.strip() if isinstance(last_name, str) else ""
        full = f"{first} {last}".strip()
        return cls.escape_html(full) if full else cls.MISSING_VALUE
