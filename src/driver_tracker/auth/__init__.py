"""Operator authentication: credentials, sessions and login rate limiting."""
