"""
Constants configuration

Gateway API metadata and the fixed pieces of the UWS job protocol.
"""

# API settings
API_TITLE = "TAP Query Gateway"
API_DESCRIPTION = "Submit, monitor and collect asynchronous TAP queries"
API_VERSION = "1.0.0"

# UWS job resource layout, relative to a job URL
PHASE_PATH = "phase"
RESULT_PATH = "results/result"
RUN_PHASE_BODY = "PHASE=RUN"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# Markers used by services that answer job creation with an XML document
# instead of a 303 redirect
JOB_ID_OPEN_TAG = "<jobId>"
JOB_ID_CLOSE_TAG = "</jobId>"

__all__ = [
    "API_TITLE",
    "API_DESCRIPTION",
    "API_VERSION",
    "PHASE_PATH",
    "RESULT_PATH",
    "RUN_PHASE_BODY",
    "FORM_CONTENT_TYPE",
    "JOB_ID_OPEN_TAG",
    "JOB_ID_CLOSE_TAG",
]
