"""Structured logging helpers (PII-safe)."""

import logging
from typing import Any
from uuid import UUID

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


def build_log_context(
    *,
    tenant_id: UUID | str | None = None,
    service_id: UUID | str | None = None,
    appointment_id: UUID | str | None = None,
    contact_id: UUID | str | None = None,
    event: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (identifiers only, never names/emails)."""
    context: dict[str, Any] = {}
    if tenant_id:
        context["tenant_id"] = str(tenant_id)
    if service_id:
        context["service_id"] = str(service_id)
    if appointment_id:
        context["appointment_id"] = str(appointment_id)
    if contact_id:
        context["contact_id"] = str(contact_id)
    if event:
        context["event"] = event
    return context
