from typing import Optional


class DocCollabError(Exception):
    """Базовая ошибка сервиса документов"""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(DocCollabError):
    """Документ, версия или пользователь не найдены"""

    kind = "not_found"
    status_code = 404


class ForbiddenError(DocCollabError):
    """У пользователя нет прав на операцию"""

    kind = "forbidden"
    status_code = 403


class InvalidArgumentError(DocCollabError):
    """Некорректные входные данные"""

    kind = "invalid_argument"
    status_code = 400


class ConflictError(DocCollabError):
    """Документ был изменен параллельно"""

    kind = "conflict"
    status_code = 409


class UnauthenticatedError(DocCollabError):
    """Вызывающий не аутентифицирован"""

    kind = "unauthenticated"
    status_code = 401
