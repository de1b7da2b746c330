"""
REST API for the gradebook engine (FastAPI).
"""
