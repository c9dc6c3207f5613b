"""
Database Configuration and Connection Management
Handles MySQL connection pooling and configuration for BangBank
"""

import mysql.connector
from mysql.connector import pooling, Error
from typing import Optional
import logging
from contextlib import contextmanager

from core import config

logger = logging.getLogger(__name__)

class DatabaseConfig:
    """Database configuration management"""

    def __init__(self):
        self.config = {
            'host': config.DB_HOST,
            'port': config.DB_PORT,
            'database': config.DB_NAME,
            'user': config.DB_USER,
            'password': config.DB_PASSWORD,
            'charset': 'utf8mb4',
            'collation': 'utf8mb4_unicode_ci',
            'autocommit': False,
            'pool_name': 'bangbank_pool',
            'pool_size': config.DB_POOL_SIZE,
            'pool_reset_session': True
        }

        # Created on first use so importing repositories never opens a socket
        self.connection_pool: Optional[pooling.MySQLConnectionPool] = None

    def _initialize_pool(self):
        """Initialize connection pool"""
        try:
            self.connection_pool = pooling.MySQLConnectionPool(**self.config)
            logger.info("Database connection pool initialized successfully")
        except Error as e:
            logger.error(f"Error creating connection pool: {e}")
            raise

    def get_connection(self):
        """Get connection from pool"""
        if self.connection_pool is None:
            self._initialize_pool()
        try:
            return self.connection_pool.get_connection()
        except Error as e:
            logger.error(f"Error getting connection from pool: {e}")
            raise

class DatabaseManager:
    """Database operations manager"""

    def __init__(self):
        self.db_config = DatabaseConfig()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections"""
        connection = None
        try:
            connection = self.db_config.get_connection()
            yield connection
        except Error as e:
            if connection:
                connection.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if connection and connection.is_connected():
                connection.close()

    @contextmanager
    def get_transaction(self):
        """
        Context manager for database transactions.

        Repositories must be handed the yielded connection (``conn=``) for their
        statements to join the transaction; anything raised inside the block
        rolls every statement back.
        """
        connection = None
        try:
            connection = self.db_config.get_connection()
            connection.start_transaction()
            yield connection
            connection.commit()
        except Exception as e:
            if connection:
                connection.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise
        finally:
            if connection and connection.is_connected():
                connection.close()

    def execute_query(self, query: str, params: tuple = None, fetch_one: bool = False,
                      fetch_all: bool = False, conn=None):
        """Execute a query and return results (lastrowid for writes)"""
        if conn is not None:
            return self._run(conn, query, params, fetch_one, fetch_all, commit=False)
        with self.get_connection() as connection:
            return self._run(connection, query, params, fetch_one, fetch_all, commit=True)

    def execute_rowcount(self, query: str, params: tuple = None, conn=None) -> int:
        """Execute a write and return the number of affected rows"""
        if conn is not None:
            cursor = conn.cursor()
            try:
                cursor.execute(query, params or ())
                return cursor.rowcount
            finally:
                cursor.close()
        with self.get_connection() as connection:
            cursor = connection.cursor()
            try:
                cursor.execute(query, params or ())
                connection.commit()
                return cursor.rowcount
            finally:
                cursor.close()

    @staticmethod
    def _run(connection, query, params, fetch_one, fetch_all, commit):
        cursor = connection.cursor(dictionary=True)
        try:
            cursor.execute(query, params or ())

            if fetch_one:
                return cursor.fetchone()
            elif fetch_all:
                return cursor.fetchall()
            else:
                if commit:
                    connection.commit()
                return cursor.lastrowid
        finally:
            cursor.close()

# Global database manager instance
db_manager = DatabaseManager()
