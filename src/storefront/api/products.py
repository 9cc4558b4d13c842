"""Public catalog endpoints."""

from fastapi import APIRouter
from protean.utils.globals import current_domain

from storefront.api.presenters import product_detail, product_summary, variant_response
from storefront.api.schemas import ProductDetailResponse, ProductSummaryResponse, VariantResponse
from storefront.errors import NotFound
from storefront.product.product import Product

product_router = APIRouter(prefix="/products", tags=["products"])


def _active_product(product_id: str) -> Product:
    product = current_domain.repository_for(Product).get(product_id)
    if not product.is_active:
        raise NotFound(f"Product {product_id} not found", field="product_id")
    return product


@product_router.get("", response_model=list[ProductSummaryResponse])
async def list_products(category: str | None = None) -> list[ProductSummaryResponse]:
    """List products visible on the storefront."""
    products = current_domain.repository_for(Product).list_active(category=category)
    return [product_summary(p) for p in products]


@product_router.get("/{product_id}", response_model=ProductDetailResponse)
async def get_product(product_id: str) -> ProductDetailResponse:
    """A product with its variants, default variant first."""
    return product_detail(_active_product(product_id))


@product_router.get("/{product_id}/variants/{variant_id}", response_model=VariantResponse)
async def get_variant(product_id: str, variant_id: str) -> VariantResponse:
    """One variant of an active product. A variant of any other product is not found here."""
    product = _active_product(product_id)
    return variant_response(product, product.find_variant(variant_id))
