"""Registration, login sessions and access guards."""
