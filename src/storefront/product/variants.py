"""Variant management: commands and handler."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.images import image_from_command, images_from_json
from storefront.product.product import Product


@storefront.command(part_of="Product")
class AddVariant:
    product_id: Identifier(required=True)
    name: String(required=True, max_length=200)
    price: Float(required=True)
    image_data: Text()
    image_mime_type: String(max_length=100)
    is_default: Boolean(default=False)
    detail_images: Text()  # JSON list of {"data", "mime_type"}


@storefront.command(part_of="Product")
class UpdateVariant:
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)
    name: String(max_length=200)
    price: Float()
    image_data: Text()
    image_mime_type: String(max_length=100)
    detail_images: Text()  # JSON list; replaces the gallery when given


@storefront.command(part_of="Product")
class SetDefaultVariant:
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)


@storefront.command(part_of="Product")
class RemoveVariant:
    product_id: Identifier(required=True)
    variant_id: Identifier(required=True)


@storefront.command_handler(part_of=Product)
class VariantHandler:
    @handle(AddVariant)
    def add_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        variant = product.add_variant(
            name=command.name,
            price=command.price,
            image=image_from_command(command.image_data, command.image_mime_type),
            is_default=bool(command.is_default),
            detail_images=images_from_json(command.detail_images),
        )
        repo.add(product)
        return str(variant.id)

    @handle(UpdateVariant)
    def update_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        updates = {}
        if command.name is not None:
            updates["name"] = command.name
        if command.price is not None:
            updates["price"] = command.price
        if command.image_data:
            updates["image"] = image_from_command(command.image_data, command.image_mime_type)
        if command.detail_images is not None:
            updates["detail_images"] = images_from_json(command.detail_images)

        product.update_variant(command.variant_id, **updates)
        repo.add(product)

    @handle(SetDefaultVariant)
    def set_default_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.set_default_variant(command.variant_id)
        repo.add(product)

    @handle(RemoveVariant)
    def remove_variant(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.remove_variant(command.variant_id)
        repo.add(product)
