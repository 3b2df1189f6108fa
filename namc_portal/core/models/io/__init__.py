"""
API I/O models.

Pydantic schemas defining the request/response contract of the HTTP API,
kept separate from the database entities.
"""
