# app/schemas.py
"""
Request bodies for the JSON API.

These only describe the shape of the payload. Every field is optional so
that a missing value reaches the service layer, which answers with the
same human-readable message the UI already knows how to show.
"""

from typing import Optional, Union

from pydantic import BaseModel, StrictFloat, StrictInt


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None


class ResetPasswordRequest(BaseModel):
    password: Optional[str] = None


class TransactionCreate(BaseModel):
    # numbers or numeric strings; parsed by the service. Strict types keep
    # JSON booleans from being coerced to 1.0 / 0.0
    amount: Optional[Union[StrictFloat, StrictInt, str]] = None
    category: Optional[str] = None
    type: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
