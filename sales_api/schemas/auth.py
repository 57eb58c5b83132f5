"""Pydantic schemas for the login endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login body. Malformed bodies are rejected as invalid credentials by the route."""

    username: str = Field(..., description="Your username.", examples=["admin"])
    password: str = Field(..., description="Your password.", examples=["password123"])


class LoginResponse(BaseModel):
    """Issued session token."""

    token: str = Field(
        ...,
        description="Session token; send it as 'Authorization: Bearer <token>'. Valid for one hour.",
    )
