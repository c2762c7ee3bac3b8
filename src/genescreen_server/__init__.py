"""genescreen_server — FastAPI REST API for the screening SDK.

Exposes record listing, submission, one-time decryption, risk analysis and
FHE runtime status over HTTP.
"""
