"""Database models."""

from persona_engine.models.assignment import Assignment
from persona_engine.models.audit import AuditLogEntry
from persona_engine.models.client import ApiClient
from persona_engine.models.configuration import ConfigList, ConfigMap, Parameter, PersonaRule
from persona_engine.models.customer import Customer

__all__ = [
    "ApiClient",
    "Assignment",
    "AuditLogEntry",
    "ConfigList",
    "ConfigMap",
    "Customer",
    "Parameter",
    "PersonaRule",
]
