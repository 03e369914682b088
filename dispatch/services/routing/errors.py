class NotFoundError(LookupError):
    """Raised when a zone, batch, driver, route or order does not exist for the tenant"""
    pass


class InvalidTransitionError(ValueError):
    """Raised when a batch or route is asked to move to a status it cannot reach"""
    pass
