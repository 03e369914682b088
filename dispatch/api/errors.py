from contextlib import contextmanager
from fastapi import HTTPException

from dispatch.services.routing.errors import InvalidTransitionError, NotFoundError


@contextmanager
def service_errors():
    """Translate dispatch service exceptions into HTTP responses"""
    try:
        yield
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
