"""Services for external integrations."""

from showerlog.services.ai_service import AIService, AIServiceError, get_ai_service
from showerlog.services.email_service import EmailDeliveryError, EmailService, get_email_service

__all__ = [
    "AIService",
    "AIServiceError",
    "get_ai_service",
    "EmailDeliveryError",
    "EmailService",
    "get_email_service",
]
