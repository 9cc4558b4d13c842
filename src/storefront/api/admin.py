"""Back-office endpoints. Every route requires the admin role."""

import json

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.deps import actor_for, require_admin
from storefront.api.presenters import order_fields, product_detail
from storefront.api.schemas import (
    AddVariantRequest,
    AdminOrderPageResponse,
    AdminOrderResponse,
    CreateProductRequest,
    EmailListResponse,
    ProductDetailResponse,
    ProductIdResponse,
    RefundDecisionRequest,
    RefundResponse,
    StatusResponse,
    UpdateNotesRequest,
    UpdateProductRequest,
    UpdateShippingRequest,
    UpdateVariantRequest,
    VariantIdResponse,
)
from storefront.order.notes import UpdateOrderNotes
from storefront.order.order import Order
from storefront.order.refund import DecideRefund
from storefront.order.shipping import SetShippingStatus
from storefront.product.management import CreateProduct, DeactivateProduct, UpdateProduct
from storefront.product.product import Product
from storefront.product.variants import AddVariant, RemoveVariant, SetDefaultVariant, UpdateVariant
from storefront.user.user import User

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


def _images_json(images):
    if images is None:
        return None
    return json.dumps([img.model_dump() for img in images])


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
def _admin_order(order, users, products) -> AdminOrderResponse:
    user = users.get(str(order.user_id))
    product = products.get(str(order.product_id))
    variant = None
    if product is not None and order.variant_id:
        variant = next((v for v in product.variants if str(v.id) == str(order.variant_id)), None)

    return AdminOrderResponse(
        **order_fields(order),
        user_id=str(order.user_id),
        user_email=user.email if user else None,
        user_name=user.name if user else None,
        product_name=product.name if product else None,
        variant_name=variant.name if variant else None,
    )


def _by_id(records) -> dict:
    return {str(r.id): r for r in records}


@admin_router.get("/orders", response_model=AdminOrderPageResponse)
async def list_orders(
    email: str | None = None,
    order_id: str | None = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> AdminOrderPageResponse:
    """All orders, newest first, filterable by buyer email or order id."""
    result = current_domain.repository_for(Order).search(
        email=email,
        order_id=order_id,
        page=page,
        page_size=page_size,
    )
    users = _by_id(current_domain.repository_for(User).with_ids({o.user_id for o in result.items}))
    products = _by_id(current_domain.repository_for(Product).with_ids({o.product_id for o in result.items}))

    return AdminOrderPageResponse(
        items=[_admin_order(o, users, products) for o in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@admin_router.put("/orders/{order_id}/notes", response_model=StatusResponse)
async def update_notes(
    order_id: str,
    body: UpdateNotesRequest,
    admin: User = Depends(require_admin),
) -> StatusResponse:
    actor = actor_for(admin)
    command = UpdateOrderNotes(
        order_id=order_id,
        notes=body.notes,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/orders/{order_id}/shipping", response_model=StatusResponse)
async def update_shipping(
    order_id: str,
    body: UpdateShippingRequest,
    admin: User = Depends(require_admin),
) -> StatusResponse:
    """Mark a paid order shipped (optionally with carrier info) or back to not shipped."""
    actor = actor_for(admin)
    command = SetShippingStatus(
        order_id=order_id,
        shipping_status=body.shipping_status,
        shipping_info=body.shipping_info,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/orders/{order_id}/refund", response_model=RefundResponse)
async def decide_refund(
    order_id: str,
    body: RefundDecisionRequest,
    admin: User = Depends(require_admin),
) -> RefundResponse:
    actor = actor_for(admin)
    command = DecideRefund(
        order_id=order_id,
        decision=body.decision,
        actor_id=actor.user_id,
        actor_role=actor.role.value,
    )
    refund_status = current_domain.process(command, asynchronous=False)
    return RefundResponse(refund_status=refund_status)


# ---------------------------------------------------------------------------
# Products and variants
# ---------------------------------------------------------------------------
@admin_router.get("/products", response_model=list[ProductDetailResponse])
async def list_all_products() -> list[ProductDetailResponse]:
    """Every product, including deactivated ones."""
    return [product_detail(p) for p in current_domain.repository_for(Product).list_all()]


@admin_router.post("/products", status_code=201, response_model=ProductIdResponse)
async def create_product(body: CreateProductRequest) -> ProductIdResponse:
    command = CreateProduct(
        name=body.name,
        description=body.description,
        category=body.category,
        price=body.price,
        currency=body.currency.upper(),
        image_data=body.image.data if body.image else None,
        image_mime_type=body.image.mime_type if body.image else None,
        variant_name=body.variant_name,
        variant_price=body.variant_price,
    )
    product_id = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=product_id)


@admin_router.put("/products/{product_id}", response_model=StatusResponse)
async def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    command = UpdateProduct(
        product_id=product_id,
        name=body.name,
        description=body.description,
        category=body.category,
        price=body.price,
        image_data=body.image.data if body.image else None,
        image_mime_type=body.image.mime_type if body.image else None,
        is_active=body.is_active,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.delete("/products/{product_id}", response_model=StatusResponse)
async def deactivate_product(product_id: str) -> StatusResponse:
    """Soft delete: the product disappears from the storefront, orders keep referencing it."""
    current_domain.process(DeactivateProduct(product_id=product_id), asynchronous=False)
    return StatusResponse(status="deactivated")


@admin_router.post("/products/{product_id}/variants", status_code=201, response_model=VariantIdResponse)
async def add_variant(product_id: str, body: AddVariantRequest) -> VariantIdResponse:
    command = AddVariant(
        product_id=product_id,
        name=body.name,
        price=body.price,
        image_data=body.image.data if body.image else None,
        image_mime_type=body.image.mime_type if body.image else None,
        is_default=body.is_default,
        detail_images=_images_json(body.detail_images),
    )
    variant_id = current_domain.process(command, asynchronous=False)
    return VariantIdResponse(variant_id=variant_id)


@admin_router.put("/products/{product_id}/variants/{variant_id}", response_model=StatusResponse)
async def update_variant(product_id: str, variant_id: str, body: UpdateVariantRequest) -> StatusResponse:
    command = UpdateVariant(
        product_id=product_id,
        variant_id=variant_id,
        name=body.name,
        price=body.price,
        image_data=body.image.data if body.image else None,
        image_mime_type=body.image.mime_type if body.image else None,
        detail_images=_images_json(body.detail_images),
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@admin_router.put("/products/{product_id}/variants/{variant_id}/default", response_model=StatusResponse)
async def set_default_variant(product_id: str, variant_id: str) -> StatusResponse:
    current_domain.process(SetDefaultVariant(product_id=product_id, variant_id=variant_id), asynchronous=False)
    return StatusResponse()


@admin_router.delete("/products/{product_id}/variants/{variant_id}", response_model=StatusResponse)
async def remove_variant(product_id: str, variant_id: str) -> StatusResponse:
    """Remove a variant. The last variant cannot be removed."""
    current_domain.process(RemoveVariant(product_id=product_id, variant_id=variant_id), asynchronous=False)
    return StatusResponse(status="deleted")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@admin_router.get("/users/emails", response_model=EmailListResponse)
async def customer_emails() -> EmailListResponse:
    """Known customer email addresses, for contacting buyers."""
    return EmailListResponse(emails=current_domain.repository_for(User).customer_emails())
