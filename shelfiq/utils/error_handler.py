from functools import wraps
from typing import Callable, Any

class ShelfIQError(Exception):
    """Base exception for the analytics system"""
    pass

class DataLoadError(ShelfIQError):
    """Error loading baseline data"""
    pass

class ValidationError(ShelfIQError):
    """Imported data failed validation"""
    pass

class ExportError(ShelfIQError):
    """Export could not be produced"""
    pass

class ConfigurationError(ShelfIQError):
    """Configuration error"""
    pass

def handle_errors(default_return=None, raise_on_error=True):
    """Decorator for error handling"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except ShelfIQError:
                if raise_on_error:
                    raise
                return default_return
            except Exception as e:
                if raise_on_error:
                    raise ShelfIQError(f"Unexpected error in {func.__name__}: {str(e)}") from e
                return default_return
        return wrapper
    return decorator
