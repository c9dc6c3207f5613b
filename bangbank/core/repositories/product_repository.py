"""
Product Repository
Handles database operations for products table
"""

from typing import Optional, List, Dict, Any
from decimal import Decimal

from core.repositories.base_repository import BaseRepository
from core.models.entities import Product, ProductType

class ProductRepository(BaseRepository):
    """Repository for products table operations"""

    def __init__(self, db=None):
        super().__init__('products', 'product_id', db=db)

    def create_product(self, data: Dict[str, Any]) -> int:
        return self.create(data)

    def update_product(self, product_id: int, data: Dict[str, Any]) -> bool:
        # Fields that don't apply to the product type are written as NULL
        return self.update(product_id, data, allow_null=True)

    def find_product_by_id(self, product_id: int) -> Optional[Product]:
        product_data = self.find_by_id(product_id)
        return self._dict_to_product(product_data) if product_data else None

    def get_all(self) -> List[Product]:
        return [self._dict_to_product(p) for p in self.find_all(order_by='product_type, product_name')]

    def _dict_to_product(self, data: dict) -> Product:
        """Convert dictionary to Product object"""
        return Product(
            product_id=data['product_id'],
            product_name=data['product_name'],
            product_type=ProductType(data['product_type']),
            description=data.get('description') or '',
            interest_rate=Decimal(str(data.get('interest_rate') or '0')),
            annual_fee=_optional_decimal(data.get('annual_fee')),
            min_balance=_optional_decimal(data.get('min_balance')),
            tenure_months=data.get('tenure_months'),
            created_at=data.get('created_at')
        )


def _optional_decimal(value) -> Optional[Decimal]:
    return None if value is None else Decimal(str(value))
