"""
Gloo Domain Errors
Domain exceptions raised by services and mapped to HTTP responses by the application
"""


class ServiceError(Exception):
    """Base class for domain errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    pass


class RecipeNotFoundError(NotFoundError):
    def __init__(self, recipe_id: int, message: str = "Recipe not found"):
        super().__init__(message)
        self.recipe_id = recipe_id


class ConflictError(ServiceError):
    pass


class ValidationFailedError(ServiceError):
    pass


class PermissionDeniedError(ServiceError):
    pass


class InvalidTransitionError(ServiceError):
    def __init__(self, status: str, event: str):
        super().__init__(f"Cannot apply '{event}' to a recipe in status '{status}'")
        self.status = status
        self.event = event


class IdentityLookupError(ServiceError):
    """Raised when the identity provider cannot resolve a user or organization"""


class InvalidTokenError(ServiceError):
    """Raised when a bearer token cannot be verified"""
