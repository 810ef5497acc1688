# storefront/repos/mappers.py
from storefront.data.models import (
    CartItemModel,
    CartModel,
    CouponModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
)
from storefront.domain.models import (
    Cart,
    CartItem,
    Coupon,
    DiscountType,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    as_utc,
    to_money,
)


def to_product(m: ProductModel) -> Product:
    return Product(
        id=m.id,
        name=m.name,
        sku=m.sku,
        price=to_money(m.price),
        quantity=m.quantity,
        description=m.description or "",
        deleted_at=as_utc(m.deleted_at),
    )


def to_coupon(m: CouponModel) -> Coupon:
    return Coupon(
        id=m.id,
        code=m.code,
        discount_type=DiscountType(m.discount_type),
        discount_value=to_money(m.discount_value),
        expiry_date=as_utc(m.expiry_date),
        usage_limit=m.usage_limit,
        usage_count=m.usage_count,
        is_active=m.is_active,
        deleted_at=as_utc(m.deleted_at),
    )


def to_cart_item(m: CartItemModel, with_product: bool = True) -> CartItem:
    return CartItem(
        id=m.id,
        cart_id=m.cart_id,
        product_id=m.product_id,
        quantity=m.quantity,
        product=to_product(m.product) if with_product and m.product is not None else None,
    )


def to_cart(m: CartModel) -> Cart:
    return Cart(
        id=m.id,
        user_id=m.user_id,
        items=tuple(to_cart_item(i) for i in m.items),
        coupon_id=m.coupon_id,
        coupon=to_coupon(m.coupon) if m.coupon is not None else None,
    )


def to_order_item(m: OrderItemModel) -> OrderItem:
    return OrderItem(
        id=m.id,
        order_id=m.order_id,
        product_id=m.product_id,
        quantity=m.quantity,
        price=to_money(m.price),
        product_name=m.product_name or "",
        sku=m.sku or "",
    )


def to_order(m: OrderModel) -> Order:
    return Order(
        id=m.id,
        user_id=m.user_id,
        items=tuple(to_order_item(i) for i in m.items),
        subtotal=to_money(m.subtotal),
        discount=to_money(m.discount),
        total_price=to_money(m.total_price),
        shipping_address_id=m.shipping_address_id,
        status=OrderStatus(m.status),
        applied_coupon_code=m.applied_coupon_code,
        tracking_number=m.tracking_number,
        payment_method=m.payment_method,
        created_at=as_utc(m.created_at),
        updated_at=as_utc(m.updated_at),
    )
