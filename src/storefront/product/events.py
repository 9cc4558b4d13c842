"""Domain events for the Product aggregate."""

from protean.fields import Boolean, DateTime, Float, Identifier, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Product")
class ProductCreated:
    """A product was added to the catalog together with its default variant."""

    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True)
    category: String()
    price: Float(required=True)
    currency: String(required=True)
    default_variant_id: Identifier(required=True)
    created_at: DateTime(required=True)


@storefront.event(part_of="Product")
class ProductDetailsUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    name: String()
    description: Text()
    category: String()
    price: Float()
    is_active: Boolean()


@storefront.event(part_of="Product")
class ProductDeactivated:
    """The product is hidden from the storefront. Existing orders keep referencing it."""

    __version__ = 1

    product_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)


@storefront.event(part_of="Product")
class VariantAdded:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    name: String(required=True)
    price: Float(required=True)
    is_default: Boolean(required=True)


@storefront.event(part_of="Product")
class VariantUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    name: String()
    price: Float()


@storefront.event(part_of="Product")
class DefaultVariantChanged:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    previous_default_variant_id: Identifier()


@storefront.event(part_of="Product")
class VariantRemoved:
    __version__ = 1

    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    new_default_variant_id: Identifier()
