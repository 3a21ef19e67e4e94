class SessionNotFound(LookupError):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"session {session_id} not found")
