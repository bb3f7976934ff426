"""
Birthday portal service.

FastAPI application serving the password gate for per-recipient birthday
experiences and the admin surface that edits them.
"""
