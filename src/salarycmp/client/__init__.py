"""Participant-side components."""
from salarycmp.client.session import SalaryClient

__all__ = ["SalaryClient"]
