"""
Configuration module for loading environment variables.
All settings are read once at import time from the process environment.
"""
import os


class Config:
    """Application configuration loaded from environment variables."""

    # Terraform plan pricing
    AZURE_PROVIDER_NAME: str = os.getenv(
        "AZURE_PROVIDER_NAME",
        "registry.terraform.io/hashicorp/azurerm"
    )
    HOURS_PER_MONTH: int = 730
    HOURS_PER_YEAR: int = 8760

    # Azure Retail Prices API
    AZURE_PRICING_API_URL: str = os.getenv(
        "AZURE_PRICING_API_URL",
        "https://prices.azure.com/api/retail/prices"
    )
    AZURE_PRICING_TIMEOUT: float = float(os.getenv("AZURE_PRICING_TIMEOUT", "10"))
    PRICING_CACHE_TTL_SECONDS: int = int(os.getenv("PRICING_CACHE_TTL_SECONDS", "86400"))  # 24 hours

    # Catalog synchronization
    CATALOG_FEED_TIMEOUT: float = float(os.getenv("CATALOG_FEED_TIMEOUT", "60"))
    CATALOG_STORE: str = os.getenv("CATALOG_STORE", "dynamodb").lower()
    DYNAMO_TABLE: str = os.getenv("DYNAMO_TABLE", "")
    AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")

    # Optional archival dump of the full listing
    S3_BUCKET: str = os.getenv("S3_BUCKET", "")
    PRICE_DUMP_KEY: str = os.getenv("PRICE_DUMP_KEY", "prices.json")

    @classmethod
    def validate(cls) -> None:
        """
        Validates that required configuration values are set.

        Raises:
            ValueError: If any required configuration is missing or invalid.
        """
        if not cls.AZURE_PROVIDER_NAME:
            raise ValueError("AZURE_PROVIDER_NAME is required")

        if not cls.AZURE_PRICING_API_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"AZURE_PRICING_API_URL must be a valid URL (got: {cls.AZURE_PRICING_API_URL})"
            )

        if cls.CATALOG_STORE not in ("dynamodb", "memory"):
            raise ValueError(
                f"CATALOG_STORE must be 'dynamodb' or 'memory' (got: {cls.CATALOG_STORE})"
            )

        # The table is only needed when catalog groups are persisted to DynamoDB
        if cls.CATALOG_STORE == "dynamodb" and not cls.DYNAMO_TABLE:
            raise ValueError("DYNAMO_TABLE is required when CATALOG_STORE is 'dynamodb'")


config = Config()
