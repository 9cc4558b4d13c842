"""Product aggregate root with ProductVariant and DetailImage entities."""

import base64
import binascii
from datetime import datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from storefront.domain import storefront
from storefront.errors import NotFound

# Sentinel for distinguishing "not provided" from None in partial updates
_UNSET = object()

DEFAULT_VARIANT_NAME = "Default"


@storefront.value_object(part_of="Product")
class ImagePayload:
    """An inline image: base64-encoded bytes and their MIME type.

    Validated once, when constructed, so every reader can trust the shape.
    """

    data: Text(required=True)
    mime_type: String(required=True, max_length=100)

    @invariant.post
    def mime_type_must_be_an_image(self):
        if self.mime_type and not self.mime_type.startswith("image/"):
            raise ValidationError({"mime_type": [f"Not an image type: {self.mime_type}"]})

    @invariant.post
    def data_must_be_base64(self):
        if not self.data:
            return
        try:
            base64.b64decode(self.data, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError({"data": ["Image data must be base64 encoded"]}) from None


@storefront.entity(part_of="Product")
class ProductVariant:
    """A purchasable configuration of a product, with its own price."""

    name: String(required=True, max_length=200)
    price: Float(required=True)
    image: ValueObject(ImagePayload)
    is_default: Boolean(default=False)
    position: Integer(default=0)


@storefront.entity(part_of="Product")
class DetailImage:
    """One image in a variant's ordered gallery."""

    variant_id: Identifier(required=True)
    position: Integer(default=0)
    image: ValueObject(ImagePayload, required=True)


@storefront.aggregate
class Product:
    """A catalog item. Always has at least one variant, exactly one of which is the default."""

    name: String(required=True, max_length=200)
    description: Text()
    category: String(max_length=100)
    price: Float(required=True, min_value=0.01)
    currency: String(max_length=3, default="USD")
    image: ValueObject(ImagePayload)
    is_active: Boolean(default=True)
    variants: HasMany(ProductVariant)
    detail_images: HasMany(DetailImage)
    created_at: DateTime(default=datetime.now)
    updated_at: DateTime(default=datetime.now)

    @invariant.post
    def exactly_one_default_variant_when_variants_exist(self):
        if not self.variants:
            return
        defaults = [v for v in self.variants if v.is_default]
        if len(defaults) != 1:
            raise ValidationError({"variants": ["Exactly one variant must be marked as default"]})

    @invariant.post
    def variant_prices_must_be_positive(self):
        for variant in self.variants:
            if variant.price is None or variant.price <= 0:
                raise ValidationError({"price": [f"Variant price must be greater than 0, got {variant.price}"]})

    @classmethod
    def create(
        cls,
        name,
        price,
        description=None,
        category=None,
        currency="USD",
        image=None,
        variant_name=None,
        variant_price=None,
        variant_image=None,
    ):
        from storefront.product.events import ProductCreated

        now = datetime.now()
        variant = ProductVariant(
            name=variant_name or DEFAULT_VARIANT_NAME,
            price=variant_price if variant_price is not None else price,
            image=variant_image,
            is_default=True,
            position=0,
        )
        product = cls(
            name=name,
            description=description,
            category=category,
            price=price,
            currency=currency,
            image=image,
            variants=[variant],
            created_at=now,
            updated_at=now,
        )
        product.raise_(
            ProductCreated(
                product_id=product.id,
                name=name,
                category=category,
                price=price,
                currency=currency,
                default_variant_id=variant.id,
                created_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def find_variant(self, variant_id):
        variant = next((v for v in self.variants if str(v.id) == str(variant_id)), None)
        if variant is None:
            raise NotFound(f"Variant {variant_id} not found", field="variants")
        return variant

    @property
    def default_variant(self):
        return next((v for v in self.variants if v.is_default), None)

    def sorted_variants(self):
        """Default variant first, the rest in the order they were added."""
        return sorted(self.variants, key=lambda v: (not v.is_default, v.position or 0))

    def detail_images_for(self, variant_id):
        images = [d for d in self.detail_images if str(d.variant_id) == str(variant_id)]
        return sorted(images, key=lambda d: d.position or 0)

    # -------------------------------------------------------------------
    # Product details
    # -------------------------------------------------------------------
    def update_details(
        self,
        name=_UNSET,
        description=_UNSET,
        category=_UNSET,
        price=_UNSET,
        image=_UNSET,
        is_active=_UNSET,
    ):
        from storefront.product.events import ProductDetailsUpdated

        changes = {
            field: value
            for field, value in (
                ("name", name),
                ("description", description),
                ("category", category),
                ("price", price),
                ("image", image),
                ("is_active", is_active),
            )
            if value is not _UNSET
        }
        if not changes:
            return

        with atomic_change(self):
            for field, value in changes.items():
                setattr(self, field, value)
            self.updated_at = datetime.now()

        self.raise_(
            ProductDetailsUpdated(
                product_id=self.id,
                **{k: v for k, v in changes.items() if k != "image"},
            )
        )

    def deactivate(self):
        from storefront.product.events import ProductDeactivated

        if not self.is_active:
            return

        now = datetime.now()
        self.is_active = False
        self.updated_at = now
        self.raise_(ProductDeactivated(product_id=self.id, deactivated_at=now))

    # -------------------------------------------------------------------
    # Variants
    # -------------------------------------------------------------------
    def _next_position(self):
        return max((v.position or 0 for v in self.variants), default=-1) + 1

    def _replace_detail_images(self, variant_id, images):
        for existing in self.detail_images_for(variant_id):
            self.remove_detail_images(existing)
        for position, payload in enumerate(images or []):
            self.add_detail_images(DetailImage(variant_id=variant_id, position=position, image=payload))

    def add_variant(self, name, price, image=None, is_default=False, detail_images=None):
        from storefront.product.events import VariantAdded

        # First variant is always default
        if not self.variants:
            is_default = True

        with atomic_change(self):
            if is_default:
                for existing in self.variants:
                    if existing.is_default:
                        existing.is_default = False

            variant = ProductVariant(
                name=name,
                price=price,
                image=image,
                is_default=is_default,
                position=self._next_position(),
            )
            self.add_variants(variant)
            self._replace_detail_images(variant.id, detail_images)
            self.updated_at = datetime.now()

        self.raise_(
            VariantAdded(
                product_id=self.id,
                variant_id=variant.id,
                name=name,
                price=price,
                is_default=is_default,
            )
        )
        return variant

    def update_variant(self, variant_id, name=_UNSET, price=_UNSET, image=_UNSET, detail_images=_UNSET):
        from storefront.product.events import VariantUpdated

        variant = self.find_variant(variant_id)

        with atomic_change(self):
            if name is not _UNSET:
                variant.name = name
            if price is not _UNSET:
                variant.price = price
            if image is not _UNSET:
                variant.image = image
            if detail_images is not _UNSET:
                self._replace_detail_images(variant.id, detail_images)
            self.updated_at = datetime.now()

        self.raise_(
            VariantUpdated(
                product_id=self.id,
                variant_id=variant.id,
                name=variant.name,
                price=variant.price,
            )
        )

    def set_default_variant(self, variant_id):
        from storefront.product.events import DefaultVariantChanged

        variant = self.find_variant(variant_id)
        previous = self.default_variant
        if previous is not None and previous.id == variant.id:
            return

        with atomic_change(self):
            for existing in self.variants:
                if existing.is_default:
                    existing.is_default = False
            variant.is_default = True
            self.updated_at = datetime.now()

        self.raise_(
            DefaultVariantChanged(
                product_id=self.id,
                variant_id=variant.id,
                previous_default_variant_id=previous.id if previous else None,
            )
        )

    def remove_variant(self, variant_id):
        from storefront.product.events import VariantRemoved

        variant = self.find_variant(variant_id)

        if len(self.variants) <= 1:
            raise ValidationError({"variants": ["Cannot delete the last variant"]})

        was_default = variant.is_default
        new_default = None

        with atomic_change(self):
            self._replace_detail_images(variant.id, [])
            self.remove_variants(variant)

            # If the removed variant was the default, promote the first remaining one
            if was_default:
                new_default = self.sorted_variants()[0]
                new_default.is_default = True
            self.updated_at = datetime.now()

        self.raise_(
            VariantRemoved(
                product_id=self.id,
                variant_id=variant_id,
                new_default_variant_id=new_default.id if new_default else None,
            )
        )
