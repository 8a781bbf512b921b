class DashboardError(Exception):
    """Base exception for every rejected dashboard action or lookup."""

    def __init__(self, message=None, details=None, error_code=None):
        self.message = message or 'Dashboard action failed'
        self.details = details or {}
        self.error_code = error_code
        super().__init__(self.message)


class EntityNotFound(DashboardError):
    """A referenced kindergarten, branch, group, teacher, student, user or application does not exist."""

    def __init__(self, entity, entity_id, message=None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message or f'{entity.capitalize()} "{entity_id}" does not exist.',
            {'entity': entity, 'id': entity_id},
            'NOT_FOUND',
        )


class ReferenceMismatch(DashboardError):
    """Two references in one payload point into different parts of the tree."""

    def __init__(self, message=None, details=None):
        super().__init__(message or 'References do not belong together.', details, 'REFERENCE_MISMATCH')


class InvalidAction(DashboardError):
    def __init__(self, message=None, details=None):
        super().__init__(message or 'Invalid action payload.', details, 'INVALID_ACTION')


class LoginCodeUnavailable(DashboardError):
    def __init__(self, prefix, attempts):
        super().__init__(
            f'No free Telegram code for prefix "{prefix}" after {attempts} attempts.',
            {'prefix': prefix, 'attempts': attempts},
            'LOGIN_CODE_UNAVAILABLE',
        )
