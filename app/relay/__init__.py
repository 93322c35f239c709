"""
IMEI Relay Backend Application.

A FastAPI service that reads device assignments (name, IMEI) out of PDFs
with a generative model and records them in spreadsheets through an
Apps Script webhook.
"""

__version__ = "1.0.0"
