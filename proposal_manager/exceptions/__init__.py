"""Custom exceptions for the proposal manager application."""

class ProposalAppError(Exception):
    """Base exception for all application errors."""
    def __init__(self, message="Ocorreu um erro interno", status_code=500, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def to_dict(self):
        rv = dict(self.payload or ())
        rv['message'] = self.message
        rv['status'] = 'error'
        return rv

class ValidationError(ProposalAppError):
    """Raised when user input or a precondition is invalid. No store mutation happened."""
    def __init__(self, message, status_code=400, payload=None):
        super().__init__(message, status_code, payload)

class NotFoundError(ProposalAppError):
    """Exception raised when a resource is not found."""
    def __init__(self, message="Registro não encontrado", payload=None):
        super().__init__(message, 404, payload)

class UnauthorizedError(ProposalAppError):
    """Raised when a user lacks permission for an action."""
    def __init__(self, message="Acesso não autorizado", status_code=403):
        super().__init__(message, status_code)

class ConflictError(ProposalAppError):
    """Raised when an update carries a stale version (optimistic concurrency)."""
    def __init__(self, message, payload=None):
        super().__init__(message, 409, payload)

class StoreError(ProposalAppError):
    """Raised when the record store rejects a select/insert/update/delete."""
    def __init__(self, message, table=None):
        payload = {'table': table} if table else None
        super().__init__(message, 502, payload)
        self.table = table

class RenderError(ProposalAppError):
    """Raised when the proposal document cannot be generated."""
    def __init__(self, message="Erro ao gerar PDF."):
        super().__init__(message, 500)
