"""
Alert Docgen - Datadog alert documentation generator

Receives Datadog webhooks, queues the alerts for template selection and
renders them into incident documents kept in flat-file storage.
"""

__version__ = "0.1.0"
__author__ = "Alert Docgen Team"
__description__ = "Webhook-driven incident documentation from Datadog alerts"
