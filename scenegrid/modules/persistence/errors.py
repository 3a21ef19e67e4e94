class PersistenceUnavailable(RuntimeError):
    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"scene store unavailable during {operation}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
