from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str = Field("sqlite:///./ops_dashboard.db")

    webhook_base_url: str = Field("https://n8n.food-u.live/webhook")
    orders_list_path: str = "/get-orders-list"
    order_details_path: str = "/get-order-details"
    fulfill_order_path: str = "/fulfill-order"
    cancel_order_path: str = "/cancel-order"
    orders_summary_path: str = "/get-orders-summary"
    products_list_path: str = "https://n8n1.food-u.live/webhook/get-all-products"
    update_product_path: str = "https://n8n1.food-u.live/webhook/update-product-info"

    request_timeout_seconds: float = 10.0
    currency_symbol: str = "₹"
    keep_failed_selected: bool = False

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("webhook_base_url")
    @classmethod
    def _base_url_not_blank(cls, value: str) -> str:
        value = (value or "").strip().rstrip("/")
        if not value:
            raise ValueError("WEBHOOK_BASE_URL cannot be empty")
        return value

    @field_validator("request_timeout_seconds")
    @classmethod
    def _timeout_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("REQUEST_TIMEOUT_SECONDS must be greater than 0")
        return value

    def url_for(self, path: str) -> str:
        # Absolute paths point at a different webhook host (products live on their own).
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.webhook_base_url}/{path.lstrip('/')}"


settings = Settings()
