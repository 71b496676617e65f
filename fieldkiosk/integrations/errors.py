class IntegrationError(Exception):
    """Base error for outbound integrations"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class IntegrationNotConfiguredError(IntegrationError):
    def __init__(self, message: str):
        super().__init__(message, status_code=503)


class SalesforceError(IntegrationError):
    pass


class ZapierError(IntegrationError):
    pass


class ADPError(IntegrationError):
    pass
