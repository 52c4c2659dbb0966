"""
Country reference data for duty calculation
"""
from typing import Dict, Optional

# EU customs union members (ISO 3166-1 alpha-2)
EU_CUSTOMS_UNION = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})

# Minimal address data per country required by the landed cost party workflow
COUNTRY_ADDRESSES: Dict[str, Dict[str, str]] = {
    "FR": {"admin_code": "IDF", "line1": "1 Rue de Rivoli", "postal_code": "75001", "locality": "Paris"},
    "US": {"admin_code": "UT", "line1": "345 N 2450 E", "postal_code": "84790", "locality": "St George"},
    "CN": {"admin_code": "GD", "line1": "1 Zhongshan Road", "postal_code": "510000", "locality": "Guangzhou"},
    "DE": {"admin_code": "BE", "line1": "1 Unter den Linden", "postal_code": "10117", "locality": "Berlin"},
    "IT": {"admin_code": "RM", "line1": "1 Via del Corso", "postal_code": "00186", "locality": "Roma"},
    "GB": {"admin_code": "ENG", "line1": "1 Oxford Street", "postal_code": "W1D 1AN", "locality": "London"},
    "JP": {"admin_code": "13", "line1": "1 Chome Marunouchi", "postal_code": "100-0005", "locality": "Tokyo"},
    "CA": {"admin_code": "ON", "line1": "1 Yonge Street", "postal_code": "M5E 1E5", "locality": "Toronto"},
    "AU": {"admin_code": "NSW", "line1": "1 George Street", "postal_code": "2000", "locality": "Sydney"},
    "KR": {"admin_code": "11", "line1": "1 Sejong-daero", "postal_code": "04524", "locality": "Seoul"},
    "MX": {"admin_code": "CMX", "line1": "1 Paseo de la Reforma", "postal_code": "06600", "locality": "Mexico City"},
    "BR": {"admin_code": "SP", "line1": "1 Avenida Paulista", "postal_code": "01310-100", "locality": "Sao Paulo"},
    "IN": {"admin_code": "MH", "line1": "1 MG Road", "postal_code": "400001", "locality": "Mumbai"},
    "ES": {"admin_code": "MD", "line1": "1 Gran Via", "postal_code": "28013", "locality": "Madrid"},
    "NL": {"admin_code": "NH", "line1": "1 Dam", "postal_code": "1012 JS", "locality": "Amsterdam"},
    "SE": {"admin_code": "AB", "line1": "1 Drottninggatan", "postal_code": "111 51", "locality": "Stockholm"},
    "CH": {"admin_code": "ZH", "line1": "1 Bahnhofstrasse", "postal_code": "8001", "locality": "Zurich"},
    "AE": {"admin_code": "DU", "line1": "1 Sheikh Zayed Road", "postal_code": "00000", "locality": "Dubai"},
    "SG": {"admin_code": "01", "line1": "1 Raffles Place", "postal_code": "048616", "locality": "Singapore"},
}

DEFAULT_ADDRESS = {"admin_code": "", "line1": "1 Main Street", "postal_code": "00000", "locality": "City"}


def get_country_address(country_code: str) -> Dict[str, str]:
    return COUNTRY_ADDRESSES.get(country_code.upper(), DEFAULT_ADDRESS)


def customs_union_of(country_code: Optional[str]) -> Optional[str]:
    """Name of the customs union a country belongs to, if any"""
    if country_code and country_code.upper() in EU_CUSTOMS_UNION:
        return "EU"
    return None


def is_domestic_shipment(origin_country: Optional[str], ship_to_country: Optional[str]) -> bool:
    """Origin and destination are the same country or in the same customs union"""
    if not origin_country or not ship_to_country:
        return False
    origin = origin_country.upper()
    destination = ship_to_country.upper()
    if origin == destination:
        return True
    union = customs_union_of(origin)
    return union is not None and union == customs_union_of(destination)
