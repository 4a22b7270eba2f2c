"""Telephony session tracking.

The registry keeps an in-memory view of the live call sessions of one extension
(or a whole account) in sync with the platform:
platform REST + /telephony/sessions notifications -> SessionRegistry -> Session -> Party.
"""
