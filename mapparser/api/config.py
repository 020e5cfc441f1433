# api/config.py
"""Configuration management for the MapParser API."""
import os
from dotenv import load_dotenv

load_dotenv()


def get_google_maps_config():
    """Get Google Maps configuration."""
    return {
        "api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
        "language": os.getenv("GOOGLE_MAPS_LANGUAGE", "en"),
    }


def get_nominatim_config():
    """Get OpenStreetMap Nominatim configuration."""
    return {
        "base_url": os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org").rstrip("/"),
        "user_agent": os.getenv("NOMINATIM_USER_AGENT", "MapParser/1.0"),
        "timeout": float(os.getenv("NOMINATIM_TIMEOUT", "10")),
    }


def get_resolver_config():
    """Get short-link resolution configuration."""
    return {
        "timeout": float(os.getenv("RESOLVE_TIMEOUT", "10")),
        "short_link_host": os.getenv("SHORT_LINK_HOST", "maps.app.goo.gl"),
        "user_agent": os.getenv(
            "RESOLVE_USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
        ),
    }


def get_routing_config():
    """Get OSRM routing configuration."""
    return {
        "base_url": os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org").rstrip("/"),
        "timeout": float(os.getenv("OSRM_TIMEOUT", "15")),
    }


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 5000))


def get_cors_origins():
    """Get allowed CORS origins."""
    return os.getenv("CORS_ORIGINS", "*").split(",")
