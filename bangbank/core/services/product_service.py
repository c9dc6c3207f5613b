"""
Product Service
Admin maintenance of the product catalog
"""

from typing import Dict, Any, List

from core.repositories.product_repository import ProductRepository
from core.services.audit_service import AuditService
from core.models.entities import Product, UserRole
from core.models.permissions import Capability, require_capability
from utils.exceptions import ProductNotFoundException
from utils.validators import BusinessRuleValidator

class ProductService:
    """Service class for product catalog operations"""

    def __init__(self, product_repo: ProductRepository = None, audit: AuditService = None):
        self.product_repo = product_repo or ProductRepository()
        self._audit = audit

    @property
    def audit(self) -> AuditService:
        if self._audit is None:
            self._audit = AuditService()
        return self._audit

    def list_products(self) -> List[Product]:
        return self.product_repo.get_all()

    def get_product(self, product_id: int) -> Product:
        product = self.product_repo.find_product_by_id(product_id)
        if not product:
            raise ProductNotFoundException("Product not found")
        return product

    def create_product(self, actor_id: int, actor_role: UserRole, data: Dict[str, Any]) -> int:
        require_capability(actor_role, Capability.MANAGE_PRODUCTS)
        normalized = BusinessRuleValidator.normalize_product(data)
        product_id = self.product_repo.create_product(normalized)
        self.audit.log(actor_id, actor_role, 'PRODUCT_CREATED',
                       {'product_id': product_id, 'name': normalized['product_name']})
        return product_id

    def update_product(self, actor_id: int, actor_role: UserRole, product_id: int,
                       data: Dict[str, Any]) -> bool:
        require_capability(actor_role, Capability.MANAGE_PRODUCTS)
        self.get_product(product_id)
        normalized = BusinessRuleValidator.normalize_product(data)
        self.product_repo.update_product(product_id, normalized)
        self.audit.log(actor_id, actor_role, 'PRODUCT_UPDATED', {'product_id': product_id})
        return True

    def delete_product(self, actor_id: int, actor_role: UserRole, product_id: int) -> bool:
        require_capability(actor_role, Capability.MANAGE_PRODUCTS)
        self.get_product(product_id)
        self.product_repo.delete(product_id)
        self.audit.log(actor_id, actor_role, 'PRODUCT_DELETED', {'product_id': product_id})
        return True
