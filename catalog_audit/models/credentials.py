from pydantic import BaseModel, ConfigDict, SecretStr


class Credentials(BaseModel):
    """API credentials resolved once per run."""

    model_config = ConfigDict(frozen=True)  # Make instances immutable

    api_key: SecretStr
    app_key: SecretStr
    site: str

    @property
    def base_url(self) -> str:
        return f"https://api.{self.site}"
