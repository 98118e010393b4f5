"""Shared table metadata."""

from sqlalchemy import MetaData

# Single metadata so foreign keys between scheduling tables resolve
metadata = MetaData()
