"""CLI package for the community session client

Terminal front end over the session layer: login, signup, Google sign-in,
status and logout.
"""

from cli.main import main

__all__ = [
    "main",
]
