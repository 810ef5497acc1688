# storefront/domain/errors.py

class StoreError(Exception):
    """Base class for every error the core raises on purpose."""


class NotFoundError(StoreError):
    pass


class ConflictError(StoreError):
    pass


class BusinessRuleError(StoreError):
    pass


class AccessDeniedError(StoreError):
    pass


# --- catalog / stock ---------------------------------------------------------


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"product {product_id} not found")
        self.product_id = product_id


class ProductSkuExists(ConflictError):
    def __init__(self, sku: str):
        super().__init__(f"product with sku '{sku}' already exists")
        self.sku = sku


class OutOfStock(BusinessRuleError):
    def __init__(self, product_name: str, available: int, requested: int | None = None):
        super().__init__(f"{product_name} has only {available} in stock")
        self.product_name = product_name
        self.available = available
        self.requested = requested


# --- cart --------------------------------------------------------------------


class CartIsEmpty(BusinessRuleError):
    def __init__(self):
        super().__init__("cannot create order from an empty cart")


class CartItemNotFound(NotFoundError):
    def __init__(self, item_id: int):
        super().__init__(f"item {item_id} is not in the cart")
        self.item_id = item_id


class InvalidQuantity(BusinessRuleError):
    def __init__(self, quantity: int):
        super().__init__(f"quantity must be positive, got {quantity}")
        self.quantity = quantity


# --- coupons -----------------------------------------------------------------


class CouponNotFound(NotFoundError):
    def __init__(self, code: str):
        super().__init__(f"coupon '{code}' not found")
        self.code = code


class CouponExpired(BusinessRuleError):
    def __init__(self, code: str):
        super().__init__(f"coupon '{code}' has expired")
        self.code = code


class CouponUsageLimitReached(BusinessRuleError):
    def __init__(self, code: str):
        super().__init__(f"coupon '{code}' has reached its usage limit")
        self.code = code


class CouponUsageAboveLimit(BusinessRuleError):
    def __init__(self, code: str, usage_count: int, usage_limit: int):
        super().__init__(f"coupon '{code}' usage count {usage_count} exceeds its limit {usage_limit}")
        self.code = code
        self.usage_count = usage_count
        self.usage_limit = usage_limit


class CouponCodeExists(ConflictError):
    def __init__(self, code: str):
        super().__init__(f"coupon code '{code}' already exists")
        self.code = code


# --- orders ------------------------------------------------------------------


class OrderNotFound(NotFoundError):
    def __init__(self, order_id: int):
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class OrderAccessDenied(AccessDeniedError):
    def __init__(self, order_id: int | None = None, reason: str = "you do not have permission to access this order"):
        super().__init__(reason)
        self.order_id = order_id


class InvalidOrderStatusTransition(BusinessRuleError):
    def __init__(self, order_id: int, current: str, target: str):
        super().__init__(f"order {order_id} cannot move from '{current}' to '{target}'")
        self.order_id = order_id
        self.current = current
        self.target = target


# --- infrastructure ----------------------------------------------------------


class NestedUnitOfWork(StoreError):
    def __init__(self):
        super().__init__("a unit of work is already active in this thread")


class PersistenceFailure(StoreError):
    def __init__(self, message: str = "storage operation failed"):
        super().__init__(message)

