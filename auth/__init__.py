"""auth/ -- Accounts, credentials, session tokens and game tokens.

Layer rule: auth/ imports from core/ and third-party libraries only.
It does NOT import from api/ or launcher/. api/ and launcher/ import from
auth/, not the other way around.
"""
