"""Spreadsheet of actor records -> encrypted QR artifacts, downstream API and audit log."""

__version__ = "0.1.0"
