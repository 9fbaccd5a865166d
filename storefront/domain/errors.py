# storefront/domain/errors.py


class CheckoutError(Exception):
    """Base for every way an order submission can fail."""

    retryable = False
    user_message = "Failed to place order. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class ValidationError(CheckoutError):
    """Input rejected before anything was sent to the remote store."""

    retryable = True

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field
        self.user_message = message


class HeaderCreationError(CheckoutError):
    """The order header was not created; nothing exists remotely.

    With `retryable=False` the outcome is unknown: the insert may have landed
    without the client learning its id, so resubmitting could duplicate it.
    """

    retryable = True
    user_message = "Your order was not placed. Nothing was charged, please try again."

    def __init__(self, message: str | None = None, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
        if not retryable:
            self.user_message = (
                "We could not confirm your order. Please check your orders or contact support before trying again."
            )


class ItemsCreationError(CheckoutError):
    """The header exists remotely but its line items could not be written.

    Resubmitting would create a second header, so this is not retryable from
    the checkout screen; `header_id` is the reference support needs.
    """

    retryable = False

    def __init__(self, header_id: str, message: str | None = None):
        super().__init__(message or f"Order {header_id} was created without items")
        self.header_id = header_id
        self.user_message = (
            "Your order was received but could not be completed. "
            f"Please contact support with reference {header_id}."
        )


class StorageError(Exception):
    pass


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class RemoteStoreError(Exception):
    def __init__(self, table: str, status_code: int | None = None, detail: str = ""):
        self.table = table
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Remote store error on '{table}' (status={status_code}): {detail}")
