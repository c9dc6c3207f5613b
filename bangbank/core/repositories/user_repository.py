"""
User Repository
Handles database operations for users table
"""

import json
from typing import Optional, List, Dict, Any

from core.repositories.base_repository import BaseRepository
from core.models.entities import User, UserRole
from utils.exceptions import AuthenticationException, ValidationException
from utils.helpers import SecurityUtils

PROFILE_FIELDS = (
    'username', 'email', 'first_name', 'last_name', 'alias', 'date_of_birth',
    'phone', 'country', 'address_line_1', 'address_line_2', 'postcode', 'image',
)

class UserRepository(BaseRepository):
    """Repository for users table operations"""

    def __init__(self, db=None):
        super().__init__('users', 'user_id', db=db)

    def create_user(self, user: User) -> int:
        """Insert a user; password_hash must already be a bcrypt hash"""
        if not user.username or not user.password_hash:
            raise ValidationException("Username and password are required")

        if not user.password_hash.startswith('$2'):
            raise ValidationException("Password must be hashed before storage")

        user_data = {field: getattr(user, field) for field in PROFILE_FIELDS}
        user_data['password_hash'] = user.password_hash
        user_data['role'] = user.role.value if isinstance(user.role, UserRole) else user.role

        return self.create(user_data)

    def find_user_by_id(self, user_id: int) -> Optional[User]:
        user_data = self.find_by_id(user_id)
        return self._dict_to_user(user_data) if user_data else None

    def find_by_email(self, email: str) -> Optional[User]:
        """Find user by email"""
        if not email:
            return None

        users = self.find_by_field('email', email)
        return self._dict_to_user(users[0]) if users else None

    def find_by_username_or_email(self, username: str, email: str,
                                  exclude_user_id: int = None) -> Optional[User]:
        """Find a user clashing on username or email, optionally ignoring one user"""
        query = f"SELECT * FROM {self.table_name} WHERE (username = %s OR email = %s)"
        params = [username, email]
        if exclude_user_id is not None:
            query += " AND user_id != %s"
            params.append(exclude_user_id)
        result = self._query_one(query + " LIMIT 1", tuple(params))
        return self._dict_to_user(result) if result else None

    def authenticate(self, email: str, password: str) -> User:
        """Authenticate user with email and password"""
        user = self.find_by_email(email)
        if not user or not SecurityUtils.verify_password(password, user.password_hash):
            raise AuthenticationException("Invalid email or password")
        return user

    def update_profile(self, user_id: int, fields: Dict[str, Any]) -> bool:
        """Update profile columns (address_line_2 and alias may be cleared)"""
        data = {k: v for k, v in fields.items() if k in PROFILE_FIELDS or k == 'role'}
        if isinstance(data.get('role'), UserRole):
            data['role'] = data['role'].value
        return self.update(user_id, data, allow_null=True)

    def change_password_hash(self, user_id: int, password_hash: str) -> bool:
        return self.update(user_id, {'password_hash': password_hash})

    def save_google_tokens(self, user_id: int, tokens: Dict[str, Any]) -> bool:
        return self.update(user_id, {'google_tokens': json.dumps(tokens)})

    def get_all(self) -> List[User]:
        """Get all users (for admin user management)"""
        return [self._dict_to_user(u) for u in self.find_all(order_by='user_id')]

    def _dict_to_user(self, user_data: dict) -> User:
        """Convert dictionary to User object"""
        tokens = user_data.get('google_tokens')
        if isinstance(tokens, (str, bytes)):
            tokens = json.loads(tokens)
        return User(
            user_id=user_data['user_id'],
            username=user_data['username'],
            email=user_data['email'],
            password_hash=user_data['password_hash'],
            role=UserRole(user_data['role']),
            first_name=user_data.get('first_name', ''),
            last_name=user_data.get('last_name', ''),
            alias=user_data.get('alias'),
            date_of_birth=user_data.get('date_of_birth'),
            phone=user_data.get('phone', ''),
            country=user_data.get('country', ''),
            address_line_1=user_data.get('address_line_1', ''),
            address_line_2=user_data.get('address_line_2'),
            postcode=user_data.get('postcode', ''),
            image=user_data.get('image') or 'default.png',
            google_tokens=tokens,
            created_at=user_data.get('created_at')
        )
