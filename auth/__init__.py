"""auth/ -- Credential verification, token lifecycle and session transport for SessionGate.

Layer rule: auth/ imports only stdlib + third-party libraries + other auth/
modules. It does NOT import from api/ or core/. api/ imports from auth/, not
the other way around; configuration reaches auth/ as constructor arguments.
"""
