"""Product catalog management: commands and handler."""

from protean import handle
from protean.fields import Boolean, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.product.images import image_from_command
from storefront.product.product import Product


@storefront.command(part_of="Product")
class CreateProduct:
    """Add a product to the catalog together with its initial default variant."""

    name: String(required=True, max_length=200)
    description: Text()
    category: String(max_length=100)
    price: Float(required=True, min_value=0.01)
    currency: String(max_length=3, default="USD")
    image_data: Text()
    image_mime_type: String(max_length=100)
    variant_name: String(max_length=200)
    variant_price: Float()


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    name: String(max_length=200)
    description: Text()
    category: String(max_length=100)
    price: Float(min_value=0.01)
    image_data: Text()
    image_mime_type: String(max_length=100)
    is_active: Boolean()


@storefront.command(part_of="Product")
class DeactivateProduct:
    product_id: Identifier(required=True)


@storefront.command_handler(part_of=Product)
class ProductManagementHandler:
    @handle(CreateProduct)
    def create_product(self, command):
        product = Product.create(
            name=command.name,
            description=command.description,
            category=command.category,
            price=command.price,
            currency=command.currency or "USD",
            image=image_from_command(command.image_data, command.image_mime_type),
            variant_name=command.variant_name,
            variant_price=command.variant_price,
        )
        current_domain.repository_for(Product).add(product)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        # Only forward fields that were actually supplied
        updates = {
            field: getattr(command, field)
            for field in ("name", "description", "category", "price", "is_active")
            if getattr(command, field) is not None
        }
        if command.image_data:
            updates["image"] = image_from_command(command.image_data, command.image_mime_type)

        product.update_details(**updates)
        repo.add(product)

    @handle(DeactivateProduct)
    def deactivate_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        product.deactivate()
        repo.add(product)
