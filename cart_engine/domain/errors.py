# cart_engine/domain/errors.py


class CartEngineError(Exception):
    """Base for every rejection the cart engine reports to its caller."""


class InvalidArgumentError(CartEngineError, ValueError):
    pass


class NotFoundError(CartEngineError, LookupError):
    pass


class InvalidStateError(CartEngineError):
    pass


class AuthenticationRequiredError(InvalidStateError):
    pass


class ConcurrentModificationError(CartEngineError):
    pass


class InsufficientStockError(CartEngineError):
    def __init__(self, product_id: int, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Available: {available}, requested: {requested}"
        )
