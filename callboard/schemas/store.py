from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel


class Collection(StrEnum):
    calls = "calls"
    contacts = "contacts"
    appointments = "appointments"
    customers = "customers"


class RangeFilter(BaseModel):
    """Inclusive range on a timestamp field: field >= start and field <= end."""

    field: str
    start: datetime
    end: datetime


class EqFilter(BaseModel):
    field: str
    value: str


class SearchFilter(BaseModel):
    """Case-insensitive substring match."""

    field: str
    term: str


Filter = RangeFilter | EqFilter | SearchFilter


class Order(BaseModel):
    field: str
    ascending: bool = True
