"""launcher/ -- Launcher build gating and game file integrity.

Layer rule: launcher/ may import from core/ and auth/ (for session tokens),
never from api/.
"""
