# storefront/services/product_service.py
from storefront.domain.errors import ProductNotFound
from storefront.domain.models import Product
from storefront.domain.patches import ProductPatch
from storefront.domain.schemas import ProductCreate, ProductOut, ProductPage
from storefront.repos.base import ProductFilter
from storefront.repos.unit_of_work import UnitOfWork
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductService:
    """Catalog administration and browsing."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def create_product(self, payload: ProductCreate) -> Product:
        product = Product(
            id=None,
            name=payload.name,
            sku=payload.sku,
            price=payload.price,
            quantity=payload.quantity,
            description=payload.description,
        )
        created = self.uow.execute(lambda repos: repos.products.create(product))
        logger.info(f"Product {created.id} ({created.sku}) created")
        return created

    def get_product(self, product_id: int) -> Product:
        with self.uow.reader() as repos:
            product = repos.products.get(product_id)
        if product is None:
            raise ProductNotFound(product_id)
        return product

    def list_products(self, filters: ProductFilter) -> ProductPage:
        with self.uow.reader() as repos:
            items = repos.products.find(filters)
            total = repos.products.count(filters)
        return ProductPage(
            items=[ProductOut.model_validate(p) for p in items],
            total=total,
            offset=filters.offset,
            limit=filters.limit,
        )

    def update_product(self, product_id: int, patch: ProductPatch) -> Product:
        if patch.is_empty():
            return self.get_product(product_id)
        updated = self.uow.execute(lambda repos: repos.products.update(product_id, patch))
        logger.info(f"Product {product_id} updated: {sorted(patch.changes())}")
        return updated

    def delete_product(self, product_id: int) -> None:
        self.uow.execute(lambda repos: repos.products.soft_delete(product_id))
        logger.info(f"Product {product_id} deleted")
