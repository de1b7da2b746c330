"""
Pydantic schemas for API requests and responses (camelCase on the wire).
"""
