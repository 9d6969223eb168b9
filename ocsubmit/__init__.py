"""
ocsubmit package

Contains the OC submission system:
- Extract a character name from submission messages (text or embed title)
- Deduplicate against the published roster sheet
- Provision a per-character role + private channel idempotently
- Post a welcome, mirror the submission embed, and log to the audit channel
"""
