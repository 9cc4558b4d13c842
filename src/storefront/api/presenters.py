"""Aggregate-to-schema conversions shared by the routers."""

from storefront.api.schemas import (
    ImageSchema,
    OrderResponse,
    ProductDetailResponse,
    ProductSummaryResponse,
    VariantResponse,
)


def image_schema(payload) -> ImageSchema | None:
    if payload is None or not payload.data:
        return None
    return ImageSchema(data=payload.data, mime_type=payload.mime_type)


def order_fields(order) -> dict:
    return {
        "order_id": str(order.id),
        "product_id": str(order.product_id),
        "variant_id": str(order.variant_id) if order.variant_id else None,
        "status": order.status,
        "shipping_status": order.shipping_status,
        "shipping_info": order.shipping_info,
        "refund_status": order.refund_status,
        "refund_request_info": order.refund_request_info,
        "amount": order.amount,
        "currency": order.currency,
        "external_payment_order_id": order.external_payment_order_id,
        "notes": order.notes,
        "created_at": order.created_at,
    }


def order_response(order) -> OrderResponse:
    return OrderResponse(**order_fields(order))


def product_summary(product) -> ProductSummaryResponse:
    default = product.default_variant
    return ProductSummaryResponse(
        product_id=str(product.id),
        name=product.name,
        description=product.description,
        category=product.category,
        price=product.price,
        currency=product.currency,
        image=image_schema(product.image),
        is_active=product.is_active,
        default_variant_id=str(default.id) if default else None,
    )


def variant_response(product, variant) -> VariantResponse:
    return VariantResponse(
        variant_id=str(variant.id),
        name=variant.name,
        price=variant.price,
        is_default=variant.is_default,
        image=image_schema(variant.image),
        detail_images=[image_schema(d.image) for d in product.detail_images_for(variant.id)],
    )


def product_detail(product) -> ProductDetailResponse:
    variants = [variant_response(product, variant) for variant in product.sorted_variants()]
    return ProductDetailResponse(**product_summary(product).model_dump(), variants=variants)
