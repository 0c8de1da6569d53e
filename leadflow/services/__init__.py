# leadflow/services/__init__.py
"""
Business logic services organized by domain functionality.

Services take an AsyncSession as their first argument. Repository-level
helpers only flush; the public operations wrap their work in ``atomic``.
"""

from leadflow.services.commission import DEFAULT_COMMISSION_RATE, calculate_commission
from leadflow.services.normalization import extract_client_ip, normalize_phone

__all__ = [
    "DEFAULT_COMMISSION_RATE",
    "calculate_commission",
    "extract_client_ip",
    "normalize_phone",
]
