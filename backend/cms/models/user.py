"""
User request models
"""
from pydantic import BaseModel, EmailStr, Field

class VerificationRequest(BaseModel):
    """Ask for a login code"""
    email: EmailStr

class SessionCreate(BaseModel):
    """Exchange a login code for a session"""
    email: EmailStr
    verification: str = Field(..., min_length=1)

class UserCreate(BaseModel):
    """User creation model"""
    email: EmailStr
