"""Shared models, utilities and adapters used across MindCheck services."""
