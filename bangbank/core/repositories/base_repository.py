"""
Base Repository Class
Provides common database operations for all repositories
"""

from abc import ABC
from typing import List, Optional, Dict, Any
import logging
from mysql.connector import Error

from db.database import db_manager
from utils.exceptions import DatabaseException, ValidationException

logger = logging.getLogger(__name__)

class BaseRepository(ABC):
    """
    Base repository with common CRUD operations.

    Write methods accept an optional ``conn`` taken from
    ``db_manager.get_transaction()``; when given, the statement runs on that
    connection and is committed (or rolled back) together with the rest of
    the transaction.
    """

    def __init__(self, table_name: str, primary_key: str = 'id', db=None):
        self.table_name = table_name
        self.primary_key = primary_key
        self.db = db or db_manager

    def create(self, data: Dict[str, Any], conn=None) -> int:
        """Create a new record"""
        try:
            clean_data = {
                k: v for k, v in data.items()
                if v is not None and k != self.primary_key
            }

            if not clean_data:
                raise ValidationException("No data provided for creation")

            columns = ', '.join(clean_data.keys())
            placeholders = ', '.join(['%s'] * len(clean_data))
            values = tuple(clean_data.values())

            query = f"INSERT INTO {self.table_name} ({columns}) VALUES ({placeholders})"

            result = self.db.execute_query(query, values, conn=conn)
            logger.info(f"Created record in {self.table_name} with ID: {result}")
            return result

        except Error as e:
            logger.error(f"Error creating record in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to create record: {str(e)}")

    def find_by_id(self, record_id: int) -> Optional[Dict[str, Any]]:
        """Find record by primary key"""
        try:
            query = f"SELECT * FROM {self.table_name} WHERE {self.primary_key} = %s"
            return self.db.execute_query(query, (record_id,), fetch_one=True)

        except Error as e:
            logger.error(f"Error finding record by ID in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to find record: {str(e)}")

    def find_all(self, order_by: str = None) -> List[Dict[str, Any]]:
        """Find all records"""
        try:
            query = f"SELECT * FROM {self.table_name}"
            if order_by:
                query += f" ORDER BY {order_by}"
            result = self.db.execute_query(query, (), fetch_all=True)
            return result or []

        except Error as e:
            logger.error(f"Error finding all records in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to find records: {str(e)}")

    def update(self, record_id: int, data: Dict[str, Any], conn=None, allow_null: bool = False) -> bool:
        """Update record by primary key (None values skipped unless allow_null)"""
        try:
            clean_data = {
                k: v for k, v in data.items()
                if (allow_null or v is not None) and k != self.primary_key
            }

            if not clean_data:
                return False

            set_clause = ', '.join([f"{k} = %s" for k in clean_data.keys()])
            values = tuple(clean_data.values()) + (record_id,)

            query = f"UPDATE {self.table_name} SET {set_clause} WHERE {self.primary_key} = %s"

            self.db.execute_query(query, values, conn=conn)
            logger.info(f"Updated record in {self.table_name} with ID: {record_id}")
            return True

        except Error as e:
            logger.error(f"Error updating record in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to update record: {str(e)}")

    def delete(self, record_id: int, conn=None) -> bool:
        """Delete record by primary key"""
        try:
            query = f"DELETE FROM {self.table_name} WHERE {self.primary_key} = %s"
            self.db.execute_query(query, (record_id,), conn=conn)
            logger.info(f"Deleted record from {self.table_name} with ID: {record_id}")
            return True

        except Error as e:
            logger.error(f"Error deleting record from {self.table_name}: {e}")
            raise DatabaseException(f"Failed to delete record: {str(e)}")

    def find_by_field(self, field_name: str, field_value: Any) -> List[Dict[str, Any]]:
        """Find records by specific field"""
        try:
            query = f"SELECT * FROM {self.table_name} WHERE {field_name} = %s"
            result = self.db.execute_query(query, (field_value,), fetch_all=True)
            return result or []

        except Error as e:
            logger.error(f"Error finding records by {field_name} in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to find records: {str(e)}")

    def count(self, where_clause: str = None, params: tuple = None) -> int:
        """Count records with optional where clause"""
        try:
            query = f"SELECT COUNT(*) AS count FROM {self.table_name}"
            if where_clause:
                query += f" WHERE {where_clause}"

            result = self.db.execute_query(query, params, fetch_one=True)
            return result['count'] if result else 0

        except Error as e:
            logger.error(f"Error counting records in {self.table_name}: {e}")
            raise DatabaseException(f"Failed to count records: {str(e)}")

    def _query_all(self, query: str, params: tuple = ()) -> List[Dict[str, Any]]:
        try:
            return self.db.execute_query(query, params, fetch_all=True) or []
        except Error as e:
            logger.error(f"Query failed on {self.table_name}: {e}")
            raise DatabaseException(f"Failed to query {self.table_name}: {str(e)}")

    def _query_one(self, query: str, params: tuple = ()) -> Optional[Dict[str, Any]]:
        try:
            return self.db.execute_query(query, params, fetch_one=True)
        except Error as e:
            logger.error(f"Query failed on {self.table_name}: {e}")
            raise DatabaseException(f"Failed to query {self.table_name}: {str(e)}")

    def _execute(self, query: str, params: tuple = (), conn=None) -> int:
        """Run a write statement and return the affected row count"""
        try:
            return self.db.execute_rowcount(query, params, conn=conn)
        except Error as e:
            logger.error(f"Write failed on {self.table_name}: {e}")
            raise DatabaseException(f"Failed to update {self.table_name}: {str(e)}")
