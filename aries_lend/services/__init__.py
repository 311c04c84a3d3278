"""Service modules"""
from .report import ReportService

__all__ = ["ReportService"]
