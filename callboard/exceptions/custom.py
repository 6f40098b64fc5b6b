class StoreError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class NotFoundError(Exception):
    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        self.message = f"{collection} record {record_id} not found"
        super().__init__(self.message)


class InvalidRangeError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidTransitionError(Exception):
    def __init__(self, message: str, current: str | None = None, target: str | None = None):
        self.message = message
        self.current = current
        self.target = target
        super().__init__(message)


class ViewNotFoundError(Exception):
    def __init__(self, view_id: str):
        self.view_id = view_id
        self.message = f"View {view_id} not found"
        super().__init__(self.message)


class RateLimitError(Exception):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Rate limit exceeded for {service}")
