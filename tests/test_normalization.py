import pytest
from pydantic import ValidationError

from leadflow.schemas.ingest import PublicLeadIn
from leadflow.schemas.lead import LeadCreate, LeadUpdate
from leadflow.services.normalization import (
    blank_to_none,
    extract_client_ip,
    normalize_email,
    normalize_phone,
)


def test_normalize_phone_drops_whitespace():
    assert normalize_phone("600 123 456") == "600123456"
    assert normalize_phone(" +34 600\t123 456 ") == "+34600123456"
    assert normalize_phone("600123456") == "600123456"
    assert normalize_phone(None) is None


def test_normalize_email_blank_is_absent():
    assert normalize_email("  ana@example.com ") == "ana@example.com"
    assert normalize_email("") is None
    assert normalize_email("   ") is None
    assert normalize_email(None) is None


def test_blank_to_none():
    assert blank_to_none("  ") is None
    assert blank_to_none("x") == "x"
    assert blank_to_none(0) == 0


def test_client_ip_prefers_first_forwarded_entry():
    headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1", "X-Real-IP": "10.0.0.2"}
    assert extract_client_ip(headers) == "203.0.113.7"


def test_client_ip_falls_back_to_real_ip():
    assert extract_client_ip({"x-real-ip": " 198.51.100.4 "}) == "198.51.100.4"
    assert extract_client_ip({"X-Forwarded-For": " ", "X-Real-IP": "198.51.100.4"}) == "198.51.100.4"


def test_client_ip_absent():
    assert extract_client_ip({}) is None


def test_public_lead_spanish_keys_and_cleanup():
    lead = PublicLeadIn.model_validate(
        {
            "nombre": "  Ana Garcia ",
            "telefono": "600 123 456",
            "email": "",
            "localidad": "Madrid",
            "servicios": None,
            "utm_source": "google",
            "campo_desconocido": "ignored",
        }
    )
    assert lead.name == "Ana Garcia"
    assert lead.phone == "600123456"
    assert lead.email is None
    assert lead.locality == "Madrid"
    assert lead.services == []
    assert lead.utm()["source"] == "google"


def test_public_lead_short_phone_after_stripping():
    with pytest.raises(ValidationError):
        PublicLeadIn.model_validate({"nombre": "Ana", "telefono": "600 12"})


def test_lead_schemas_treat_blank_email_as_absent():
    assert LeadCreate(name="Ana Garcia", phone="600123456", email="   ").email is None
    assert LeadUpdate(email="").email is None
    assert LeadUpdate(email=" ana@example.com ").email == "ana@example.com"
