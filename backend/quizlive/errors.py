class ValidationError(ValueError):
    """Rejected input; nothing has been written."""
