"""DynamoDB service wrapper for table operations."""

import os
from typing import Any

import boto3
from botocore.exceptions import ClientError

# Module-level singleton for connection reuse across requests
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Args:
        environment: Environment name. Only used on first call.

    Returns:
        Shared DynamoDBService instance
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService(environment)
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, environment: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            environment: Environment name (dev/prod). Defaults to ENVIRONMENT env var.
        """
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        # Allow override via DYNAMODB_TABLE_PREFIX for testing
        self.name_prefix = os.getenv("DYNAMODB_TABLE_PREFIX", f"bgo-{self.environment}")
        self._dynamodb = boto3.resource("dynamodb")

    def _table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        return self._dynamodb.Table(self._table_name(table))

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = True,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Use a strongly consistent read

        Returns:
            Item dict or None if not found
        """
        response = self._get_table(table).get_item(
            Key=key, ConsistentRead=consistent_read
        )
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
        expression_attribute_values: dict[str, Any] | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write
            expression_attribute_values: Values referenced by the condition

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values

            self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any] | None = None,
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item with expressions.

        Args:
            table: Table name without prefix
            key: Primary key dict
            update_expression: DynamoDB update expression
            expression_attribute_values: Values for expression
            expression_attribute_names: Names for expression (for reserved words)
            condition_expression: Optional condition for update

        Returns:
            Updated attributes or None if condition failed
        """
        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ReturnValues": "ALL_NEW",
            }
            if expression_attribute_values:
                kwargs["ExpressionAttributeValues"] = expression_attribute_values
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            response = self._get_table(table).update_item(**kwargs)
            attrs: dict[str, Any] | None = response.get("Attributes")
            return attrs
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            raise
