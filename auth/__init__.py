"""auth/ -- Authentication and session lifecycle package for Accountdesk.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/, web/, or contact/.
api/ and web/ import from auth/, not the other way around.
"""
