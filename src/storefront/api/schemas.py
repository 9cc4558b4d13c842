"""Pydantic request/response schemas for the storefront API."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# --- Shared ---


class ImageSchema(BaseModel):
    """An inline image. ``data`` is base64, ``mime_type`` must be an ``image/*`` type."""

    data: str = Field(..., min_length=1)
    mime_type: str = Field(..., pattern=r"^image/[A-Za-z0-9.+-]+$")

    @field_validator("data")
    @classmethod
    def data_must_be_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("Image data must be base64 encoded") from None
        return value


class StatusResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    error: str
    messages: dict[str, list[str]]


# --- Catalog ---


class VariantResponse(BaseModel):
    variant_id: str
    name: str
    price: float
    is_default: bool
    image: ImageSchema | None = None
    detail_images: list[ImageSchema] = []


class ProductSummaryResponse(BaseModel):
    product_id: str
    name: str
    description: str | None = None
    category: str | None = None
    price: float
    currency: str
    image: ImageSchema | None = None
    is_active: bool
    default_variant_id: str | None = None


class ProductDetailResponse(ProductSummaryResponse):
    variants: list[VariantResponse]


class CreateProductRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "Canvas Tote",
                    "description": "Heavy cotton tote bag",
                    "category": "bags",
                    "price": 24.99,
                    "currency": "USD",
                    "variant_name": "Natural",
                }
            ]
        }
    }

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    price: float = Field(..., gt=0)
    currency: str = Field("USD", min_length=3, max_length=3)
    image: ImageSchema | None = None
    variant_name: str | None = Field(None, max_length=200)
    variant_price: float | None = Field(None, gt=0)


class UpdateProductRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    price: float | None = Field(None, gt=0)
    image: ImageSchema | None = None
    is_active: bool | None = None


class ProductIdResponse(BaseModel):
    product_id: str


class AddVariantRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"examples": [{"name": "Black", "price": 26.5, "is_default": False}]}
    }

    name: str = Field(..., min_length=1, max_length=200)
    price: float = Field(..., gt=0)
    image: ImageSchema | None = None
    is_default: bool = False
    detail_images: list[ImageSchema] | None = None


class UpdateVariantRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=200)
    price: float | None = Field(None, gt=0)
    image: ImageSchema | None = None
    detail_images: list[ImageSchema] | None = None


class VariantIdResponse(BaseModel):
    variant_id: str


# --- Orders ---


class PlaceOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {"examples": [{"product_id": "prod-001", "variant_id": "var-001"}]}
    }

    product_id: str
    variant_id: str | None = None


class PlaceOrderResponse(BaseModel):
    order_id: str
    amount: float
    currency: str
    status: str


class OrderResponse(BaseModel):
    order_id: str
    product_id: str
    variant_id: str | None = None
    status: str
    shipping_status: str
    shipping_info: str | None = None
    refund_status: str
    refund_request_info: str | None = None
    amount: float
    currency: str
    external_payment_order_id: str | None = None
    notes: str | None = None
    created_at: datetime | None = None


class CancelOrderResponse(BaseModel):
    ok: bool = True
    status: str


class RefundRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [{"action": "apply", "refund_request_info": "Item arrived damaged, contact: a@b.com"}]
        }
    }

    action: Literal["apply", "cancel"]
    refund_request_info: str | None = None


class RefundResponse(BaseModel):
    ok: bool = True
    refund_status: str


# --- Users ---


class UserResponse(BaseModel):
    user_id: str
    external_id: str
    name: str | None = None
    email: str | None = None
    role: str


class EmailListResponse(BaseModel):
    emails: list[str]


# --- Payments ---


class CreatePaymentOrderRequest(BaseModel):
    order_id: str


class CreatePaymentOrderResponse(BaseModel):
    remote_order_id: str
    approval_url: str | None = None


class CapturePaymentRequest(BaseModel):
    remote_order_id: str


class CapturePaymentResponse(BaseModel):
    order_id: str
    order_status: str
    capture_status: str
    capture_id: str | None = None
    already_captured: bool = False


class RemoteOrderResponse(BaseModel):
    remote_order_id: str
    status: str | None = None
    details: dict


class WebhookResponse(BaseModel):
    status: str = "ok"
    event_type: str | None = None
    action: str
    order_id: str | None = None


# --- Admin ---


class AdminOrderResponse(OrderResponse):
    user_id: str
    user_email: str | None = None
    user_name: str | None = None
    product_name: str | None = None
    variant_name: str | None = None


class AdminOrderPageResponse(BaseModel):
    items: list[AdminOrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class UpdateNotesRequest(BaseModel):
    notes: str | None = Field(None, max_length=2000)


class UpdateShippingRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [{"shipping_status": "shipped", "shipping_info": "UPS 1Z999AA10123456784"}]
        }
    }

    shipping_status: str
    shipping_info: str | None = None


class RefundDecisionRequest(BaseModel):
    decision: str
