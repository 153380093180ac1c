"""
Backend package for OTP codes over HTTP, using Flask.
Thin stateless wrapper around otpauth.otp_core.
"""

from .app import app

__all__ = ['app']
