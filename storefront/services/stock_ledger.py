# storefront/services/stock_ledger.py
from storefront.domain.errors import InvalidQuantity, OutOfStock, ProductNotFound
from storefront.domain.models import Product
from storefront.domain.patches import ProductPatch
from storefront.repos.base import ProductRepository
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class StockLedger:
    """
    Authoritative sellable quantity per product.

    Bind it to the product repository of an active unit of work: every
    read-then-write below runs on a row loaded with `get_for_update`, so two
    scopes reserving the same product are serialized by the store, never by
    this class.
    """

    def __init__(self, products: ProductRepository):
        self.products = products

    def available(self, product_id: int) -> int:
        product = self.products.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product.quantity

    def reserve(self, product_id: int, requested_qty: int) -> Product:
        """
        Takes `requested_qty` units off the shelf; returns the product as it
        is after the decrement (its price is the one to capture).
        """
        if requested_qty <= 0:
            raise InvalidQuantity(requested_qty)

        product = self.products.get_for_update(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        if requested_qty > product.quantity:
            logger.warning(
                f"Cannot reserve {requested_qty} x product {product_id}: only {product.quantity} left"
            )
            raise OutOfStock(product.name, product.quantity, requested_qty)

        updated = self.products.update(product_id, ProductPatch(quantity=product.quantity - requested_qty))
        logger.debug(f"Reserved {requested_qty} x product {product_id}, {updated.quantity} left")
        return updated

    def release(self, product_id: int, qty: int) -> Product | None:
        """
        Puts units back, e.g. when an order is cancelled. A product deleted
        from the catalog since checkout has nothing to restock.
        """
        if qty <= 0:
            raise InvalidQuantity(qty)

        product = self.products.get_for_update(product_id)
        if product is None:
            logger.warning(f"Product {product_id} no longer in catalog, {qty} units not restocked")
            return None

        updated = self.products.update(product_id, ProductPatch(quantity=product.quantity + qty))
        logger.debug(f"Released {qty} x product {product_id}, {updated.quantity} left")
        return updated
