"""
Configuration and settings for the Azure VM Image Browser CLI.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Azure CLI
    az_cli_path: str = Field(default="az", alias="AZ_CLI_PATH")

    # Browsing defaults
    region: str = Field(default="westeurope", alias="IMAGE_BROWSER_REGION")
    page_size: int = Field(default=20, ge=1, alias="IMAGE_BROWSER_PAGE_SIZE")

    # Report output
    report_prefix: str = Field(default="azure-vm-image", alias="IMAGE_BROWSER_REPORT_PREFIX")
    output_dir: str = Field(default=".", alias="IMAGE_BROWSER_OUTPUT_DIR")
    recent_versions: int = Field(default=10, ge=1, alias="IMAGE_BROWSER_RECENT_VERSIONS")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Publishers owned by Microsoft all share this name prefix
MICROSOFT_PUBLISHER_PREFIX = "microsoft"

# Literal version token the Azure CLI resolves on its own
LATEST_VERSION_TOKEN = "latest"

APP_VERSION = "1.0.0"
