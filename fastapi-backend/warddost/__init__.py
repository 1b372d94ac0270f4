"""Ward Dost: ward flood-risk lookup and civic complaint tracking."""

__version__ = "0.1.0"
