"""Configuration module for the calendar PoC services."""
from .settings import CalendarServiceConfig, FrontendConfig, load_calendar_settings, load_frontend_settings

__all__ = ["CalendarServiceConfig", "FrontendConfig", "load_calendar_settings", "load_frontend_settings"]
