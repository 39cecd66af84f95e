from functools import lru_cache
from pathlib import Path
from typing import Optional, Set

from pydantic_settings import BaseSettings, SettingsConfigDict

from expense_desk.models.constants import BASE_CURRENCY, CURRENCIES


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    DATA_DIR, DB_FILENAME, BASE_CURRENCY, VERIFICATION_CODE).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Basic app metadata
    app_name: str = "Expense Desk"
    debug: bool = True
    version: str = "0.1.0"

    # Data & persistence
    data_dir: Path = Path("data")
    db_filename: str = "app.sqlite3"
    db_path: Optional[Path] = None  # derived if not provided

    # Attachment storage (local blob directory)
    uploads_dirname: str = "uploads"
    uploads_dir: Optional[Path] = None  # derived if not provided
    public_uploads_base_url: str = "/uploads"

    # Ledger
    base_currency: str = BASE_CURRENCY
    supported_currencies: Set[str] = set(CURRENCIES)
    top_expenses_limit: int = 5

    # Registration / login
    allowed_email_domain: str = "pueblaequipo.com.ar"
    verification_code: str = "change-me"
    password_min_length: int = 6
    bcrypt_rounds: int = 12

    # Default administrator seeded on startup when none exists
    default_admin_email: Optional[str] = None
    default_admin_password: Optional[str] = None
    default_admin_name: str = "Administrador"
    default_admin_sector: str = "Administración"

    def init_post_load(self) -> None:
        """Finalize derived fields and ensure directories exist."""
        if self.db_path is None:
            self.db_path = self.data_dir / self.db_filename
        if self.uploads_dir is None:
            self.uploads_dir = self.data_dir / self.uploads_dirname
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        self.base_currency = self.base_currency.upper()
        self.supported_currencies = {c.upper() for c in self.supported_currencies}
        if self.base_currency not in self.supported_currencies:
            raise ValueError(
                f"Base currency '{self.base_currency}' must be one of {sorted(self.supported_currencies)}"
            )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
