"""
HealthSpeak API - Prescription Explanation Service

Helps patients understand prescriptions: extracts text from uploaded
documents, translates medical shorthand into plain language and keeps
a history of translations.

IMPORTANT: Explanations are informational. Patients should follow
their doctor's and pharmacist's instructions.
"""

__version__ = "1.0.0"
__author__ = "HealthSpeak Team"
