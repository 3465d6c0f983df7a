class TrackerError(Exception):
    code = "error"

    def __init__(self, message, code: str | None = None):
        super().__init__(str(message))
        self.message = str(message)
        if code:
            self.code = code


class TagValidationError(TrackerError):
    code = "tag_not_found"


class TransitionError(TrackerError):
    code = "inconsistent_status"

    def __init__(self, message, code: str | None = None, current_status: str | None = None):
        super().__init__(message, code=code)
        self.current_status = current_status


class ConcurrentTransitionError(TransitionError):
    code = "concurrent_update"


class StoreError(TrackerError):
    code = "save_failed"
