class AppException(Exception):
    def __init__(self, detail: str, status_code: int = 400, headers: dict[str, str] | None = None):
        self.detail = detail
        self.status_code = status_code
        self.headers = headers

class UnauthorizedException(AppException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(detail=detail, status_code=401, headers={"WWW-Authenticate": "Bearer"})

class ForbiddenException(AppException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(detail=detail, status_code=403)

class NotFoundException(AppException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(detail=detail, status_code=404)

class ConflictException(AppException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(detail=detail, status_code=409)

# Raised in place of driver errors so storage details never reach the client
class StorageException(AppException):
    def __init__(self, detail: str = "Internal server error"):
        super().__init__(detail=detail, status_code=500)
