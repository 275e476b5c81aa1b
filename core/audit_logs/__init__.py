"""
Audit Log Package - Academy Backend

Records who changed what in the back office (class created, field updated,
student registered, payment received, Webflow synced).

Writing a log entry is best effort: ``services.insert_log`` never raises, so
a failing audit write never fails the action it documents.

Author: DSP Development Team
Date: 2025-09-03
"""
